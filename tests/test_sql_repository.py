import asyncio

import pytest

from membership_client.exceptions import ConstraintViolation, DatabaseError, NotFoundError
from membership_client.models import GroupCreate, GroupWithMembers, MembershipOutcome, Role, UserCreate

pytestmark = pytest.mark.asyncio


async def _seed(client, n_groups: int = 3):
    user = await client.user_repo.create_user(
        UserCreate(first_name="Test", last_name="User", email="test@edu.dk", password="123", role=Role.teacher)
    )
    groups = [
        await client.group_repo.create_group(GroupCreate(name=f"Group {i}", created_by_user_id=user.id))
        for i in range(n_groups)
    ]
    return user, groups


async def test_user_password_is_hashed_and_role_kept(sql_client):
    user, _ = await _seed(sql_client, n_groups=0)

    found = await sql_client.user_repo.get_by_email("test@edu.dk")

    assert found.id == user.id
    assert found.role == Role.teacher
    assert await sql_client.membership_repo.find_user(user.id) == found
    assert await sql_client.user_repo.get_by_id(user.id) == found
    assert await sql_client.user_repo.get_by_id(999) is None


async def test_duplicate_email_is_rejected(sql_client):
    await _seed(sql_client, n_groups=0)

    with pytest.raises(DatabaseError):
        await sql_client.user_repo.create_user(
            UserCreate(first_name="Other", last_name="User", email="test@edu.dk", password="x")
        )


async def test_unique_constraint_is_a_backstop(sql_client):
    repo = sql_client.membership_repo
    user, (g1, *_) = await _seed(sql_client)
    await repo.insert_membership(user.id, g1.id)

    with pytest.raises(ConstraintViolation) as exc:
        await repo.insert_membership(user.id, g1.id)

    assert exc.value.kind == "unique"
    assert await repo.count_memberships(user.id) == 1


async def test_foreign_key_constraint_rejects_missing_user(sql_client):
    _, (g1, *_) = await _seed(sql_client)

    with pytest.raises(ConstraintViolation) as exc:
        await sql_client.membership_repo.insert_membership(999, g1.id)

    assert exc.value.kind == "foreign_key"


async def test_delete_missing_membership_raises_not_found(sql_client):
    user, (g1, *_) = await _seed(sql_client)

    with pytest.raises(NotFoundError):
        await sql_client.membership_repo.delete_membership(user.id, g1.id)


async def test_run_atomic_rolls_back_on_error(sql_client):
    repo = sql_client.membership_repo
    user, (g1, g2, g3) = await _seed(sql_client)
    await repo.insert_membership(user.id, g1.id)

    async def work(tx):
        await tx.delete_membership(user.id, g1.id)
        await tx.insert_membership(user.id, g2.id)
        # внутри транзакции изменения уже видны
        assert await tx.list_group_ids(user.id) == [g2.id]
        await tx.insert_membership(user.id, g2.id)

    with pytest.raises(ConstraintViolation):
        await repo.run_atomic(work)

    assert await repo.list_group_ids(user.id) == [g1.id]


async def test_run_atomic_commits_together(sql_client):
    repo = sql_client.membership_repo
    user, (g1, g2, _) = await _seed(sql_client)

    async def work(tx):
        await tx.lock_user(user.id)
        await tx.insert_membership(user.id, g1.id)
        await tx.insert_membership(user.id, g2.id)
        return await tx.count_memberships(user.id)

    assert await repo.run_atomic(work) == 2
    assert await repo.list_group_ids(user.id) == [g1.id, g2.id]


async def test_group_members_and_user_groups(sql_client):
    user, (g1, g2, g3) = await _seed(sql_client)
    await sql_client.memberships.join(user.id, g1.id)
    await sql_client.memberships.join(user.id, g3.id)

    group = await sql_client.group_repo.get_group_by_id(g1.id, with_members=True)
    user_groups = await sql_client.group_repo.get_user_groups(user.id)

    assert isinstance(group, GroupWithMembers)
    assert [u.email for u in group.users] == ["test@edu.dk"]
    assert [g.id for g in user_groups] == [g1.id, g3.id]
    assert [g.name for g in await sql_client.group_repo.list_groups()] == ["Group 0", "Group 1", "Group 2"]


async def test_check_connections(sql_client):
    assert await sql_client.check_connections() == {"database": "ok"}


async def test_sequential_writes_on_shared_connection_are_kept(sql_client):
    """Запись через один репозиторий не откатывает уже закоммиченные записи другого."""
    a = await sql_client.group_repo.create_group(GroupCreate(name="A"))
    b = await sql_client.group_repo.create_group(GroupCreate(name="B"))
    user, _ = await _seed(sql_client, n_groups=0)
    c = await sql_client.group_repo.create_group(GroupCreate(name="C", created_by_user_id=user.id))
    d = await sql_client.group_repo.create_group(GroupCreate(name="D"))

    assert len({a.id, b.id, c.id, d.id}) == 4
    assert [g.name for g in await sql_client.group_repo.list_groups()] == ["A", "B", "C", "D"]
    assert await sql_client.user_repo.get_by_id(user.id) is not None


async def test_concurrent_joins_never_exceed_ceiling(sql_client):
    user, groups = await _seed(sql_client, n_groups=6)

    results = await asyncio.gather(*(sql_client.memberships.join(user.id, g.id) for g in groups))

    outcomes = [r.outcome for r in results]
    assert outcomes.count(MembershipOutcome.created) == 3
    assert outcomes.count(MembershipOutcome.group_limit_exceeded) == 3
    assert await sql_client.membership_repo.count_memberships(user.id) == 3
    created = sorted(r.group_id for r in results if r.outcome == MembershipOutcome.created)
    assert await sql_client.membership_repo.list_group_ids(user.id) == created
