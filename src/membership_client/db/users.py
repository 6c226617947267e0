from __future__ import annotations
from typing import List, TYPE_CHECKING

from sqlalchemy import String, Enum as PgEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, CreatedAt
from ..models.user import Role

if TYPE_CHECKING:
    from .groups import GroupORM
    from .user_group_membership import UserGroupMembershipORM


class UserORM(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    # Роль пассивна: на правила членства не влияет
    role: Mapped[Role] = mapped_column(PgEnum(Role, name="user_role"), default=Role.student, nullable=False)
    created_at: Mapped[CreatedAt]

    memberships: Mapped[List["UserGroupMembershipORM"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    groups: Mapped[List["GroupORM"]] = relationship(
        "GroupORM", secondary="user_group_membership", viewonly=True
    )
