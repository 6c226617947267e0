"""
Контракт хранилища, которым пользуется MembershipService.

Держим его маленьким и независимым от фреймворка, чтобы тесты могли
подставлять простые фейки (см. memory_repository.InMemoryMembershipStore).
"""
from __future__ import annotations

from typing import Awaitable, Callable, Optional, Protocol, TypeVar

from ..models import GroupInDB, MembershipInDB, UserInDB

T = TypeVar("T")


class MembershipStore(Protocol):
    """Хранилище пар (user_id, group_id) плюс чтение пользователей и групп.

    insert_membership бросает ConstraintViolation, если пара уже есть
    (или ссылка на пользователя/группу битая); delete_membership бросает
    NotFoundError, если пары нет.

    run_atomic выполняет `work` в одной транзакции и передает ему хранилище,
    привязанное к этой транзакции: либо все изменения видны вместе, либо ни одно.
    lock_user сериализует изменения членства одного пользователя до конца транзакции.
    """

    async def find_user(self, user_id: int) -> Optional[UserInDB]: ...

    async def find_group(self, group_id: int) -> Optional[GroupInDB]: ...

    async def find_membership(self, user_id: int, group_id: int) -> Optional[MembershipInDB]: ...

    async def count_memberships(self, user_id: int) -> int: ...

    async def list_group_ids(self, user_id: int) -> list[int]: ...

    async def insert_membership(self, user_id: int, group_id: int) -> MembershipInDB: ...

    async def delete_membership(self, user_id: int, group_id: int) -> None: ...

    async def lock_user(self, user_id: int) -> None: ...

    async def run_atomic(self, work: Callable[["MembershipStore"], Awaitable[T]]) -> T: ...


__all__ = ["MembershipStore"]
