from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models.membership import MembershipOutcome


class MembershipClientError(Exception):
    """Base class."""


class DatabaseError(MembershipClientError):
    pass
class NotFoundError(MembershipClientError):
    pass


class ConstraintViolation(DatabaseError):
    """Нарушено ограничение БД. kind: 'unique' (пара уже есть) или 'foreign_key'."""

    def __init__(self, message: str, kind: str = "unique"):
        self.kind = kind
        super().__init__(message)


class MembershipRejected(MembershipClientError):
    """
    Правило членства не выполнено. Бросается внутри единицы работы,
    чтобы откатить транзакцию; сервис превращает его в MembershipResult.
    """

    def __init__(self, outcome: "MembershipOutcome", detail: str = ""):
        self.outcome = outcome
        self.detail = detail
        super().__init__(detail or outcome.value)


__all__ = [
    "MembershipClientError",
    "DatabaseError",
    "NotFoundError",
    "ConstraintViolation",
    "MembershipRejected",
]
