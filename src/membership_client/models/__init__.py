from .user import Role, UserCreate, UserInDB
from .group import GroupCreate, GroupInDB, GroupWithMembers, UserInfo
from .membership import MembershipOutcome, MembershipInDB, MembershipResult

__all__ = [
    "Role", "UserCreate", "UserInDB",
    "GroupCreate", "GroupInDB", "GroupWithMembers", "UserInfo",
    "MembershipOutcome", "MembershipInDB", "MembershipResult",
]
