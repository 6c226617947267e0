# Файл: src/membership_client/__init__.py

from typing import Optional
from sqlalchemy.ext.asyncio import async_sessionmaker
from .client import MembershipClient
from .config import get_settings, MembershipClientConfig, PostgresConfig, MembershipConfig
from .db import create_engine
from .repositories import (
    UserRepository,
    GroupRepository,
    MembershipRepository,
    InMemoryMembershipStore,
    MembershipStore,
)
from .service import MembershipService
from .models import MembershipOutcome, MembershipResult, Role

from .exceptions import *

def create_membership_client(config: Optional[MembershipClientConfig] = None) -> MembershipClient:
    """
    Фабричная функция для создания и конфигурации MembershipClient.

    :param config: Единый объект с настройками.
                   Если не предоставлен, используются переменные окружения.
    :return: Сконфигурированный экземпляр MembershipClient.
    """
    if config is None:
        s = get_settings()
        config = MembershipClientConfig(postgres=s.postgres, membership=s.membership)

    engine = create_engine(config.postgres)
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)

    # advisory-lock есть только в PostgreSQL; в остальных СУБД транзакции членства идут по одной
    membership_repo = MembershipRepository(session_factory, serialize=not config.postgres.is_postgres)
    service = MembershipService(
        membership_repo,
        max_groups_per_user=config.membership.max_groups_per_user,
    )
    return MembershipClient(
        engine=engine,
        user_repo=UserRepository(session_factory),
        group_repo=GroupRepository(session_factory),
        membership_repo=membership_repo,
        memberships=service,
    )

__all__ = [
    "MembershipClient", "create_membership_client",
    "MembershipClientConfig", "PostgresConfig", "MembershipConfig",
    "MembershipService", "MembershipStore", "InMemoryMembershipStore",
    "MembershipOutcome", "MembershipResult", "Role",
    "MembershipClientError", "DatabaseError", "NotFoundError", "ConstraintViolation", "MembershipRejected",
]
