from __future__ import annotations
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, CreatedAt

if TYPE_CHECKING:
    from .users import UserORM
    from .groups import GroupORM


class UserGroupMembershipORM(Base):
    __tablename__ = "user_group_membership"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    group_id: Mapped[int] = mapped_column(ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[CreatedAt]

    __table_args__ = (UniqueConstraint("user_id", "group_id", name="uq_user_group_membership"),)

    user: Mapped["UserORM"] = relationship(back_populates="memberships")
    group: Mapped["GroupORM"] = relationship(back_populates="memberships")
