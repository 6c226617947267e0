from __future__ import annotations

from typing import Annotated
from datetime import datetime

from sqlalchemy import MetaData, func, DateTime, event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase, mapped_column
from sqlalchemy.pool import NullPool, StaticPool

from ..config import PostgresConfig

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=convention)

CreatedAt = Annotated[datetime, mapped_column(DateTime(timezone=True), server_default=func.now())]
UpdatedAt = Annotated[datetime, mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())]


def _is_memory_sqlite(dsn: str) -> bool:
    url = make_url(dsn)
    return url.database in (None, "", ":memory:") or url.query.get("mode") == "memory"


def create_engine(config: PostgresConfig) -> AsyncEngine:
    """
    Создает AsyncEngine по конфигу.
    Для PostgreSQL включается пул соединений. Для SQLite в памяти - StaticPool
    (иначе у каждого соединения своя пустая БД), для файла SQLite - NullPool.
    В SQLite принудительно включается проверка внешних ключей, иначе CASCADE не работает.
    """
    dsn = config.get_pg_dsn()
    if config.is_postgres:
        return create_async_engine(
            dsn,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            pool_recycle=config.pool_recycle,
            pool_pre_ping=config.pool_pre_ping,
            connect_args={
                "server_settings": {
                    "application_name": config.application_name
                }
            },
        )

    poolclass = StaticPool if _is_memory_sqlite(dsn) else NullPool
    engine = create_async_engine(dsn, poolclass=poolclass)

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_fk(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


async def create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
