from .ports import MembershipStore
from .pg_repositoryUser import UserRepository
from .pg_repositoryGroup import GroupRepository
from .pg_repositoryMembership import MembershipRepository
from .memory_repository import InMemoryMembershipStore

__all__ = [
    "MembershipStore",
    "UserRepository",
    "GroupRepository",
    "MembershipRepository",
    "InMemoryMembershipStore",
]
