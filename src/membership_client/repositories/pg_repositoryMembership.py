# Файл: membership_client/repositories/pg_repositoryMembership.py

import asyncio
import logging
from contextlib import asynccontextmanager, nullcontext
from typing import AsyncIterator, Awaitable, Callable, Optional, TypeVar

from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession

from membership_client.db import UserORM, GroupORM, UserGroupMembershipORM
from membership_client.db.uow import AsyncUnitOfWork
from membership_client.exceptions import ConstraintViolation, DatabaseError, NotFoundError
from membership_client.models import GroupInDB, MembershipInDB, UserInDB

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _constraint_kind(e: IntegrityError) -> str:
    # PostgreSQL: "violates foreign key constraint", SQLite: "FOREIGN KEY constraint failed"
    return "foreign_key" if "foreign key" in str(e.orig).lower() else "unique"


class MembershipRepository:
    """
    Реализация MembershipStore поверх PostgreSQL (SQLAlchemy, async).

    Вне run_atomic каждый вызов открывает собственную транзакцию.
    Внутри run_atomic все вызовы идут через одну сессию одного AsyncUnitOfWork.

    serialize=True: транзакции этого репозитория выполняются строго по одной.
    Нужно там, где нет advisory-lock (SQLite): иначе параллельные join не видят
    друг друга, а в SQLite в памяти еще и делят одно соединение.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        uow: Optional[AsyncUnitOfWork] = None,
        serialize: bool = False,
    ):
        self._session_factory = session_factory
        self._uow = uow
        self._tx_lock: Optional[asyncio.Lock] = asyncio.Lock() if serialize else None

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncUnitOfWork]:
        async with self._tx_lock or nullcontext():
            async with AsyncUnitOfWork(self._session_factory) as uow:
                yield uow

    @asynccontextmanager
    async def _scope(self) -> AsyncIterator[AsyncSession]:
        if self._uow is not None:
            yield self._uow.session
            return
        async with self._transaction() as uow:
            yield uow.session

    async def run_atomic(self, work: Callable[["MembershipRepository"], Awaitable[T]]) -> T:
        """Выполняет work в одной транзакции: commit при успехе, rollback при любом исключении."""
        if self._uow is not None:
            # уже внутри транзакции
            return await work(self)
        async with self._transaction() as uow:
            return await work(MembershipRepository(self._session_factory, uow=uow))

    async def lock_user(self, user_id: int) -> None:
        if self._uow is None:
            # вне транзакции блокировка бессмысленна
            return
        await self._uow.advisory_lock_user(user_id)

    async def find_user(self, user_id: int) -> Optional[UserInDB]:
        async with self._scope() as session:
            user = await session.get(UserORM, user_id)
            return UserInDB.model_validate(user) if user else None

    async def find_group(self, group_id: int) -> Optional[GroupInDB]:
        async with self._scope() as session:
            group = await session.get(GroupORM, group_id)
            return GroupInDB.model_validate(group) if group else None

    async def find_membership(self, user_id: int, group_id: int) -> Optional[MembershipInDB]:
        stmt = select(UserGroupMembershipORM).where(
            UserGroupMembershipORM.user_id == user_id,
            UserGroupMembershipORM.group_id == group_id,
        )
        async with self._scope() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return MembershipInDB.model_validate(row) if row else None

    async def count_memberships(self, user_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(UserGroupMembershipORM)
            .where(UserGroupMembershipORM.user_id == user_id)
        )
        async with self._scope() as session:
            return (await session.execute(stmt)).scalar_one()

    async def list_group_ids(self, user_id: int) -> list[int]:
        stmt = (
            select(UserGroupMembershipORM.group_id)
            .where(UserGroupMembershipORM.user_id == user_id)
            .order_by(UserGroupMembershipORM.group_id)
        )
        async with self._scope() as session:
            return list((await session.execute(stmt)).scalars().all())

    async def insert_membership(self, user_id: int, group_id: int) -> MembershipInDB:
        row = UserGroupMembershipORM(user_id=user_id, group_id=group_id)
        async with self._scope() as session:
            try:
                session.add(row)
                # flush, чтобы нарушение уникальности всплыло здесь, а не на commit
                await session.flush()
            except IntegrityError as e:
                raise ConstraintViolation(
                    f"Membership ({user_id}, {group_id}) violates a constraint: {e.orig}",
                    kind=_constraint_kind(e),
                ) from e
            except SQLAlchemyError as e:
                logger.error(f"Failed to insert membership ({user_id}, {group_id}): {e}")
                raise DatabaseError(f"Failed to insert membership: {e}") from e
            return MembershipInDB(user_id=user_id, group_id=group_id)

    async def delete_membership(self, user_id: int, group_id: int) -> None:
        stmt = delete(UserGroupMembershipORM).where(
            UserGroupMembershipORM.user_id == user_id,
            UserGroupMembershipORM.group_id == group_id,
        )
        async with self._scope() as session:
            try:
                result = await session.execute(stmt)
            except SQLAlchemyError as e:
                logger.error(f"Failed to delete membership ({user_id}, {group_id}): {e}")
                raise DatabaseError(f"Failed to delete membership: {e}") from e
            if result.rowcount == 0:
                raise NotFoundError(f"User {user_id} is not a member of group {group_id}.")
