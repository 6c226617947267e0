from __future__ import annotations
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, CreatedAt, UpdatedAt

if TYPE_CHECKING:
    from .users import UserORM
    from .user_group_membership import UserGroupMembershipORM


class GroupORM(Base):
    __tablename__ = "groups"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    # Создатель группы; сама группа переживает удаление создателя
    created_by_user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[CreatedAt]
    edited_at: Mapped[UpdatedAt]
    memberships: Mapped[List["UserGroupMembershipORM"]] = relationship(
            back_populates="group", cascade="all, delete-orphan", passive_deletes=True
        )
    users: Mapped[List["UserORM"]] = relationship(
            secondary="user_group_membership",
            viewonly=True # Только для чтения
        )
