# Файл: membership_client/repositories/pg_repositoryUser.py

import logging
from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession
from passlib.context import CryptContext # Для хеширования паролей

from membership_client.db import UserORM
from membership_client.exceptions import DatabaseError
from membership_client.models import UserCreate, UserInDB

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def get_password_hash(password: str) -> str:
    """Создает хеш из обычного пароля."""
    return pwd_context.hash(password)


class UserRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create_user(self, data: UserCreate) -> UserInDB:
        """Создает нового пользователя. Членство в группах создается отдельно, через MembershipService."""
        user = UserORM(
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            hashed_password=get_password_hash(data.password),
            role=data.role,
        )
        async with self._session_factory() as session:
            try:
                session.add(user)
                await session.commit()
                await session.refresh(user)
                logger.info(f"Created user {user.id} ({user.role.value})")
                return UserInDB.model_validate(user)
            except IntegrityError as e:
                await session.rollback()
                # Перевыбрасываем как кастомное исключение, чтобы API мог его поймать
                raise DatabaseError(f"User with email {data.email} already exists.") from e
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError(f"Failed to create user: {e}") from e

    async def get_by_id(self, user_id: int) -> Optional[UserInDB]:
        async with self._session_factory() as session:
            user = await session.get(UserORM, user_id)
            return UserInDB.model_validate(user) if user else None

    async def get_by_email(self, email: str) -> Optional[UserInDB]:
        """Находит пользователя по email."""
        async with self._session_factory() as session:
            result = await session.execute(select(UserORM).where(UserORM.email == email))
            user = result.scalar_one_or_none()
            return UserInDB.model_validate(user) if user else None

    async def delete_user(self, user_id: int) -> bool:
        """
        Удаляет пользователя. Его членства в группах удаляются каскадом (ON DELETE CASCADE).
        Возвращает False, если пользователя не было.
        """
        async with self._session_factory() as session:
            try:
                result = await session.execute(delete(UserORM).where(UserORM.id == user_id))
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Failed to delete user {user_id}: {e}")
                raise DatabaseError(f"Failed to delete user {user_id}: {e}") from e
            if result.rowcount:
                logger.info(f"Deleted user {user_id} and its memberships")
            return result.rowcount > 0
