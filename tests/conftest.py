from types import SimpleNamespace

import pytest
import pytest_asyncio

from membership_client import (
    InMemoryMembershipStore,
    MembershipClientConfig,
    MembershipService,
    PostgresConfig,
    create_membership_client,
)
from membership_client.models import GroupCreate, Role, UserCreate

SQLITE_MEMORY_DSN = "sqlite+aiosqlite://"


class MemoryBackend:
    """Хранилище в памяти + сервис поверх него."""

    name = "memory"

    def __init__(self):
        self.store = InMemoryMembershipStore()
        self.service = MembershipService(self.store)

    async def add_user(self, email: str, role: Role = Role.student):
        return self.store.add_user(UserCreate(first_name="Test", last_name="User", email=email, password="123", role=role))

    async def add_group(self, name: str, created_by_user_id: int | None = None):
        return self.store.add_group(GroupCreate(name=name, created_by_user_id=created_by_user_id))

    async def delete_user(self, user_id: int) -> bool:
        return self.store.delete_user(user_id)

    async def delete_group(self, group_id: int) -> bool:
        return self.store.delete_group(group_id)


class SqlBackend:
    """SQLAlchemy-репозитории на SQLite в памяти + сервис из фабрики."""

    name = "sql"

    def __init__(self, client):
        self.client = client
        self.store = client.membership_repo
        self.service = client.memberships

    async def add_user(self, email: str, role: Role = Role.student):
        return await self.client.user_repo.create_user(
            UserCreate(first_name="Test", last_name="User", email=email, password="123", role=role)
        )

    async def add_group(self, name: str, created_by_user_id: int | None = None):
        return await self.client.group_repo.create_group(GroupCreate(name=name, created_by_user_id=created_by_user_id))

    async def delete_user(self, user_id: int) -> bool:
        return await self.client.user_repo.delete_user(user_id)

    async def delete_group(self, group_id: int) -> bool:
        return await self.client.group_repo.delete_group(group_id)


@pytest_asyncio.fixture(scope="function")
async def sql_client():
    """
    MembershipClient на SQLite в памяти с уже созданными таблицами.
    Каждый тест получает чистую БД.
    """
    client = create_membership_client(MembershipClientConfig(postgres=PostgresConfig(dsn=SQLITE_MEMORY_DSN)))
    await client.init_db()
    yield client
    await client.aclose()


@pytest_asyncio.fixture(scope="function", params=["memory", "sql"])
async def backend(request):
    """Один и тот же тест прогоняется на обоих хранилищах."""
    if request.param == "memory":
        yield MemoryBackend()
        return
    client = create_membership_client(MembershipClientConfig(postgres=PostgresConfig(dsn=SQLITE_MEMORY_DSN)))
    await client.init_db()
    yield SqlBackend(client)
    await client.aclose()


@pytest_asyncio.fixture(scope="function")
async def seeded(backend):
    """
    Один студент уже состоит в двух группах (One, Two); группа Three существует,
    но пользователь в ней не состоит.
    """
    user = await backend.add_user("test@edu.dk")
    g1 = await backend.add_group("Group One", created_by_user_id=user.id)
    g2 = await backend.add_group("Group Two", created_by_user_id=user.id)
    g3 = await backend.add_group("Group Three", created_by_user_id=user.id)
    # напрямую через хранилище, минуя правила
    await backend.store.insert_membership(user.id, g1.id)
    await backend.store.insert_membership(user.id, g2.id)
    return SimpleNamespace(backend=backend, service=backend.service, user=user, g1=g1, g2=g2, g3=g3)
