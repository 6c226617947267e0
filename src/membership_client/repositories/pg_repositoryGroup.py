# Файл: membership_client/repositories/pg_repositoryGroup.py

import logging
from typing import Optional, List
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession

from membership_client.db import GroupORM, UserGroupMembershipORM
from membership_client.exceptions import DatabaseError
from membership_client.models import GroupCreate, GroupInDB, GroupWithMembers

logger = logging.getLogger(__name__)

class GroupRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create_group(self, group_data: GroupCreate) -> GroupInDB:
        """Создает новую группу."""
        new_group = GroupORM(**group_data.model_dump())
        async with self._session_factory() as session:
            try:
                session.add(new_group)
                await session.commit()
                await session.refresh(new_group)
                logger.info(f"Created group '{new_group.name}' with id {new_group.id}")
                return GroupInDB.model_validate(new_group)
            except IntegrityError as e:
                await session.rollback()
                raise DatabaseError(f"Group '{group_data.name}' references a missing creator.") from e
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError(f"Failed to create group: {e}") from e

    async def get_group_by_id(self, group_id: int, with_members: bool = False) -> Optional[GroupInDB | GroupWithMembers]:
        """Находит группу по ID. Опционально подгружает ее участников."""
        async with self._session_factory() as session:
            query = select(GroupORM).where(GroupORM.id == group_id)
            if with_members:
                # selectinload - эффективный способ загрузить связанные объекты
                query = query.options(selectinload(GroupORM.users))

            group = (await session.execute(query)).scalar_one_or_none()
            if group is None:
                return None
            model = GroupWithMembers if with_members else GroupInDB
            return model.model_validate(group)

    async def list_groups(self) -> List[GroupInDB]:
        """Возвращает список всех групп."""
        async with self._session_factory() as session:
            result = await session.execute(select(GroupORM).order_by(GroupORM.id))
            return [GroupInDB.model_validate(g) for g in result.scalars().all()]

    async def get_user_groups(self, user_id: int) -> List[GroupInDB]:
        """Получает все группы, в которых состоит пользователь."""
        stmt = (
            select(GroupORM)
            .join(UserGroupMembershipORM, UserGroupMembershipORM.group_id == GroupORM.id)
            .where(UserGroupMembershipORM.user_id == user_id)
            .order_by(GroupORM.id)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [GroupInDB.model_validate(g) for g in result.scalars().all()]

    async def delete_group(self, group_id: int) -> bool:
        """Удаляет группу; членства в ней удаляются каскадом."""
        async with self._session_factory() as session:
            try:
                result = await session.execute(delete(GroupORM).where(GroupORM.id == group_id))
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Failed to delete group {group_id}: {e}")
                raise DatabaseError(f"Failed to delete group {group_id}: {e}") from e
            if result.rowcount:
                logger.info(f"Deleted group {group_id} and its memberships")
            return result.rowcount > 0
