import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from membership_client.db import create_tables
from membership_client.exceptions import DatabaseError
from membership_client.repositories import GroupRepository, MembershipRepository, UserRepository
from membership_client.service import MembershipService

logger = logging.getLogger(__name__)


class MembershipClient:
    """
    Единая точка доступа: репозитории пользователей и групп плюс MembershipService.
    Правила членства живут только в self.memberships.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        user_repo: UserRepository,
        group_repo: GroupRepository,
        membership_repo: MembershipRepository,
        memberships: MembershipService,
    ):
        self._engine = engine
        self.user_repo = user_repo
        self.group_repo = group_repo
        self.membership_repo = membership_repo
        self.memberships = memberships

    async def init_db(self) -> None:
        """Создает таблицы (замена миграциям для dev и тестов)."""
        try:
            await create_tables(self._engine)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to create tables: {e}") from e
        logger.info("Database tables are ready")

    async def check_connections(self) -> dict[str, str]:
        """
        Проверяет доступность БД.
        Возвращает словарь со статусами.
        """
        statuses = {}
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            statuses["database"] = "ok"
        except (SQLAlchemyError, OSError) as e:
            statuses["database"] = f"failed: {e}"
        return statuses

    async def aclose(self) -> None:
        await self._engine.dispose()
