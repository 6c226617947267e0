# Файл: src/membership_client/config.py

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

# --- 1. Настройки PostgreSQL ---
class PostgresConfig(BaseModel):
    user: str = "postgres"
    password: str = "postgres"
    host: str = "localhost"
    port: int = 5432
    db: str = "education"

    pool_size: int = 5
    max_overflow: int = 5
    pool_timeout: int = 30
    pool_recycle: int = 1800
    pool_pre_ping: bool = True
    application_name: str = "membership_client"

    # Явный DSN перекрывает поля выше (например, sqlite+aiosqlite:// для тестов)
    dsn: Optional[str] = None

    def get_pg_dsn(self) -> str:
        """Собирает DSN для SQLAlchemy из полей этого объекта."""
        if self.dsn:
            return self.dsn
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.db}"

    @property
    def is_postgres(self) -> bool:
        return self.get_pg_dsn().startswith("postgresql")


# --- 2. Правила членства ---
class MembershipConfig(BaseModel):
    # Потолок: сколько групп одновременно может быть у пользователя
    max_groups_per_user: int = Field(3, ge=1)


# --- 3. Единый объект для явной передачи конфигурации ---
class MembershipClientConfig(BaseModel):
    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    membership: MembershipConfig = Field(default_factory=MembershipConfig)


# --- 4. Чтение из окружения и .env ---
class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="_",
        # POSTGRES_APPLICATION_NAME -> postgres.application_name
        env_nested_max_split=1,
        extra="ignore",
    )

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    membership: MembershipConfig = Field(default_factory=MembershipConfig)


_cached_settings: Optional[Settings] = None

def get_settings() -> Settings:
    """
    Возвращает синглтон-экземпляр настроек, создавая его при первом вызове.
    Это предотвращает ошибки валидации при импорте.
    """
    global _cached_settings
    if _cached_settings is None:
        _cached_settings = Settings()
    return _cached_settings


def reset_settings() -> None:
    """Сбрасывает кэш настроек (нужно тестам, которые меняют окружение)."""
    global _cached_settings
    _cached_settings = None
