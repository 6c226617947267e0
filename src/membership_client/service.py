# Файл: membership_client/service.py

import logging
from typing import Awaitable, Callable

from membership_client.exceptions import ConstraintViolation, MembershipRejected, NotFoundError
from membership_client.models import MembershipOutcome, MembershipResult
from membership_client.repositories.ports import MembershipStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_GROUPS_PER_USER = 3


class MembershipService:
    """
    Единственное место, где проверяются правила членства:

    - пользователь не может вступить в одну группу дважды;
    - пользователь состоит не более чем в `max_groups_per_user` группах (роль не важна);
    - членство ссылается только на существующих пользователя и группу.

    Все изменения идут через store.run_atomic: проверки и запись видны как одна
    единица работы. Отказы возвращаются как MembershipResult, а не исключения.
    Ошибки инфраструктуры (DatabaseError) пробрасываются вызывающему.
    """

    def __init__(self, store: MembershipStore, max_groups_per_user: int = DEFAULT_MAX_GROUPS_PER_USER):
        if max_groups_per_user < 1:
            raise ValueError("max_groups_per_user must be positive")
        self._store = store
        self.max_groups_per_user = max_groups_per_user

    # ――― изменения ――― #

    async def join(self, user_id: int, group_id: int) -> MembershipResult:
        """Absent -> Present. Проверки: пользователь, группа, дубликат, потолок."""

        async def _work(tx: MembershipStore) -> None:
            await tx.lock_user(user_id)
            if await tx.find_user(user_id) is None:
                raise MembershipRejected(MembershipOutcome.user_not_found, f"User {user_id} not found")
            if await tx.find_group(group_id) is None:
                raise MembershipRejected(MembershipOutcome.group_not_found, f"Group {group_id} not found")
            if await tx.find_membership(user_id, group_id) is not None:
                raise MembershipRejected(
                    MembershipOutcome.already_member, f"User {user_id} is already a member of group {group_id}"
                )
            if await tx.count_memberships(user_id) >= self.max_groups_per_user:
                raise self._limit_exceeded(user_id)
            await tx.insert_membership(user_id, group_id)
            # параллельная вставка мимо блокировки: откатываем свою
            if await tx.count_memberships(user_id) > self.max_groups_per_user:
                raise self._limit_exceeded(user_id)

        return await self._apply(_work, MembershipOutcome.created, user_id, group_id)

    async def leave(self, user_id: int, group_id: int) -> MembershipResult:
        """Present -> Absent. Выход из группы, где пользователя нет, - это NOT_A_MEMBER, а не тихий no-op."""

        async def _work(tx: MembershipStore) -> None:
            await tx.lock_user(user_id)
            if await tx.find_membership(user_id, group_id) is None:
                raise self._not_a_member(user_id, group_id)
            await tx.delete_membership(user_id, group_id)

        return await self._apply(_work, MembershipOutcome.removed, user_id, group_id)

    async def reassign(self, user_id: int, from_group_id: int, to_group_id: int) -> MembershipResult:
        """
        Атомарно заменяет членство в from_group_id на членство в to_group_id.
        Число групп не меняется, поэтому потолок не перепроверяется.
        При любом отказе пользователь остается в from_group_id.
        """

        async def _work(tx: MembershipStore) -> None:
            await tx.lock_user(user_id)
            if await tx.find_membership(user_id, from_group_id) is None:
                raise self._not_a_member(user_id, from_group_id)
            if await tx.find_membership(user_id, to_group_id) is not None:
                raise MembershipRejected(
                    MembershipOutcome.already_member, f"User {user_id} is already a member of group {to_group_id}"
                )
            if await tx.find_group(to_group_id) is None:
                raise MembershipRejected(MembershipOutcome.group_not_found, f"Group {to_group_id} not found")
            await tx.delete_membership(user_id, from_group_id)
            await tx.insert_membership(user_id, to_group_id)

        return await self._apply(
            _work, MembershipOutcome.reassigned, user_id, to_group_id, from_group_id=from_group_id
        )

    # ――― запросы ――― #

    async def count_memberships(self, user_id: int) -> int:
        return await self._store.count_memberships(user_id)

    async def is_member(self, user_id: int, group_id: int) -> bool:
        return await self._store.find_membership(user_id, group_id) is not None

    async def list_group_ids(self, user_id: int) -> list[int]:
        return await self._store.list_group_ids(user_id)

    # ――― внутреннее ――― #

    def _limit_exceeded(self, user_id: int) -> MembershipRejected:
        return MembershipRejected(
            MembershipOutcome.group_limit_exceeded,
            f"User {user_id} already belongs to {self.max_groups_per_user} groups",
        )

    @staticmethod
    def _not_a_member(user_id: int, group_id: int) -> MembershipRejected:
        return MembershipRejected(
            MembershipOutcome.not_a_member, f"User {user_id} is not a member of group {group_id}"
        )

    async def _apply(
        self,
        work: Callable[[MembershipStore], Awaitable[None]],
        success: MembershipOutcome,
        user_id: int,
        group_id: int,
        from_group_id: int | None = None,
    ) -> MembershipResult:
        def _result(outcome: MembershipOutcome, detail: str = "") -> MembershipResult:
            return MembershipResult(
                outcome=outcome, user_id=user_id, group_id=group_id, from_group_id=from_group_id, detail=detail
            )

        try:
            await self._store.run_atomic(work)
        except MembershipRejected as e:
            logger.warning(f"{success.value} rejected: {e.outcome.value} ({e.detail})")
            return _result(e.outcome, e.detail)
        except ConstraintViolation as e:
            outcome = await self._outcome_for_violation(e, user_id)
            logger.warning(f"{success.value} rejected by storage constraint: {outcome.value} ({e})")
            return _result(outcome, str(e))
        except NotFoundError as e:
            # строку удалили между проверкой и удалением
            logger.warning(f"{success.value} rejected: {MembershipOutcome.not_a_member.value} ({e})")
            return _result(MembershipOutcome.not_a_member, str(e))

        logger.info(f"{success.value}: user={user_id} group={group_id}" + (
            f" from={from_group_id}" if from_group_id is not None else ""
        ))
        return _result(success)

    async def _outcome_for_violation(self, e: ConstraintViolation, user_id: int) -> MembershipOutcome:
        if e.kind == "unique":
            return MembershipOutcome.already_member
        # внешний ключ: пользователь или группа исчезли во время операции
        if await self._store.find_user(user_id) is None:
            return MembershipOutcome.user_not_found
        return MembershipOutcome.group_not_found
