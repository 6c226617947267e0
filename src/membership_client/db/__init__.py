# membership_client/db/__init__.py

from .base import Base, create_engine, create_tables

from .users import UserORM
from .groups import GroupORM
from .user_group_membership import UserGroupMembershipORM

__all__ = [
    "Base",
    "create_engine",
    "create_tables",
    "UserORM",
    "GroupORM",
    "UserGroupMembershipORM",
]
