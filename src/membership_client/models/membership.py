# Файл: membership_client/models/membership.py

from __future__ import annotations
import enum
from pydantic import BaseModel


class MembershipOutcome(str, enum.Enum):
    # успешные исходы
    created = "CREATED"
    removed = "REMOVED"
    reassigned = "REASSIGNED"
    # отказы
    user_not_found = "USER_NOT_FOUND"
    group_not_found = "GROUP_NOT_FOUND"
    already_member = "ALREADY_MEMBER"
    not_a_member = "NOT_A_MEMBER"
    group_limit_exceeded = "GROUP_LIMIT_EXCEEDED"

    @property
    def is_success(self) -> bool:
        return self in _SUCCESS


_SUCCESS = {MembershipOutcome.created, MembershipOutcome.removed, MembershipOutcome.reassigned}


class MembershipInDB(BaseModel):
    user_id: int
    group_id: int

    model_config = {"from_attributes": True}


class MembershipResult(BaseModel):
    """Типизированный результат операции над членством. Отказ - это значение, а не исключение."""
    outcome: MembershipOutcome
    user_id: int
    group_id: int
    # для reassign: группа, из которой переводили
    from_group_id: int | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome.is_success
