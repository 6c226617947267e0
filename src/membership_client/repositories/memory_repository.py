# Файл: membership_client/repositories/memory_repository.py

import asyncio
import itertools
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from membership_client.exceptions import ConstraintViolation, NotFoundError
from membership_client.models import (
    GroupCreate,
    GroupInDB,
    MembershipInDB,
    UserCreate,
    UserInDB,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _State:
    """Общие данные хранилища. Все представления (транзакции) работают с одним _State."""

    def __init__(self):
        self.users: dict[int, UserInDB] = {}
        self.groups: dict[int, GroupInDB] = {}
        self.memberships: set[tuple[int, int]] = set()
        # блокировка живет, пока ее держат или ждут; счетчик - держатель плюс ожидающие
        self.user_locks: dict[int, asyncio.Lock] = {}
        self.lock_users: dict[int, int] = {}
        self.user_ids = itertools.count(1)
        self.group_ids = itertools.count(1)


class InMemoryMembershipStore:
    """
    Реализация MembershipStore в памяти процесса. Для тестов и локальных прогонов.

    Транзакция ведет журнал отмены: при исключении внутри run_atomic
    изменения откатываются в обратном порядке, чужие изменения не трогаются.
    """

    def __init__(self, _state: Optional[_State] = None, _in_tx: bool = False):
        self._state = _state or _State()
        self._undo: Optional[list[tuple[str, tuple[int, int]]]] = [] if _in_tx else None
        self._held: list[int] = []

    # ――― наполнение (вне правил членства) ――― #

    def add_user(self, data: UserCreate) -> UserInDB:
        user = UserInDB(id=next(self._state.user_ids), **data.model_dump(exclude={"password"}))
        self._state.users[user.id] = user
        return user

    def add_group(self, data: GroupCreate) -> GroupInDB:
        group = GroupInDB(id=next(self._state.group_ids), **data.model_dump())
        self._state.groups[group.id] = group
        return group

    def delete_user(self, user_id: int) -> bool:
        """Удаляет пользователя вместе с его членствами (каскад). Созданные им группы остаются без создателя."""
        if self._state.users.pop(user_id, None) is None:
            return False
        self._state.memberships = {p for p in self._state.memberships if p[0] != user_id}
        for gid, group in self._state.groups.items():
            if group.created_by_user_id == user_id:
                self._state.groups[gid] = group.model_copy(update={"created_by_user_id": None})
        return True

    def delete_group(self, group_id: int) -> bool:
        """Удаляет группу вместе с членствами в ней (каскад)."""
        if self._state.groups.pop(group_id, None) is None:
            return False
        self._state.memberships = {p for p in self._state.memberships if p[1] != group_id}
        return True

    # ――― контракт MembershipStore ――― #

    async def run_atomic(self, work: Callable[["InMemoryMembershipStore"], Awaitable[T]]) -> T:
        if self._undo is not None:
            return await work(self)
        tx = type(self)(self._state, _in_tx=True)
        try:
            return await work(tx)
        except BaseException:
            tx._rollback()
            raise
        finally:
            tx._release()

    async def lock_user(self, user_id: int) -> None:
        if self._undo is None:
            return
        if user_id in self._held:
            return
        lock = self._state.user_locks.setdefault(user_id, asyncio.Lock())
        self._state.lock_users[user_id] = self._state.lock_users.get(user_id, 0) + 1
        try:
            await lock.acquire()
        except BaseException:
            self._forget_lock(user_id)
            raise
        self._held.append(user_id)

    async def find_user(self, user_id: int) -> Optional[UserInDB]:
        return self._state.users.get(user_id)

    async def find_group(self, group_id: int) -> Optional[GroupInDB]:
        return self._state.groups.get(group_id)

    async def find_membership(self, user_id: int, group_id: int) -> Optional[MembershipInDB]:
        if (user_id, group_id) in self._state.memberships:
            return MembershipInDB(user_id=user_id, group_id=group_id)
        return None

    async def count_memberships(self, user_id: int) -> int:
        return sum(1 for u, _ in self._state.memberships if u == user_id)

    async def list_group_ids(self, user_id: int) -> list[int]:
        return sorted(g for u, g in self._state.memberships if u == user_id)

    async def insert_membership(self, user_id: int, group_id: int) -> MembershipInDB:
        pair = (user_id, group_id)
        if pair in self._state.memberships:
            raise ConstraintViolation(f"Membership {pair} already exists.", kind="unique")
        if user_id not in self._state.users or group_id not in self._state.groups:
            raise ConstraintViolation(f"Membership {pair} references a missing row.", kind="foreign_key")
        self._state.memberships.add(pair)
        self._log("insert", pair)
        return MembershipInDB(user_id=user_id, group_id=group_id)

    async def delete_membership(self, user_id: int, group_id: int) -> None:
        pair = (user_id, group_id)
        if pair not in self._state.memberships:
            raise NotFoundError(f"User {user_id} is not a member of group {group_id}.")
        self._state.memberships.discard(pair)
        self._log("delete", pair)

    # ――― журнал транзакции ――― #

    def _log(self, op: str, pair: tuple[int, int]) -> None:
        if self._undo is not None:
            self._undo.append((op, pair))

    def _rollback(self) -> None:
        for op, pair in reversed(self._undo):
            if op == "insert":
                self._state.memberships.discard(pair)
            else:
                self._state.memberships.add(pair)
        logger.debug(f"Rolled back {len(self._undo)} membership change(s)")
        self._undo.clear()

    def _release(self) -> None:
        while self._held:
            user_id = self._held.pop()
            self._state.user_locks[user_id].release()
            self._forget_lock(user_id)

    def _forget_lock(self, user_id: int) -> None:
        left = self._state.lock_users[user_id] - 1
        if left:
            self._state.lock_users[user_id] = left
        else:
            del self._state.lock_users[user_id]
            del self._state.user_locks[user_id]
