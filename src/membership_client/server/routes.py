# Файл: membership_client/server/routes.py
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel

from membership_client.models import MembershipOutcome, MembershipResult
from membership_client.service import MembershipService

router = APIRouter(prefix="/users/{user_id}/groups", tags=["Group Membership"])

# Отказы правил -> HTTP-коды. Успешные исходы сюда не попадают.
REJECTION_STATUS: dict[MembershipOutcome, int] = {
    MembershipOutcome.user_not_found: status.HTTP_404_NOT_FOUND,
    MembershipOutcome.group_not_found: status.HTTP_404_NOT_FOUND,
    MembershipOutcome.not_a_member: status.HTTP_404_NOT_FOUND,
    MembershipOutcome.already_member: status.HTTP_409_CONFLICT,
    MembershipOutcome.group_limit_exceeded: 422,
}


class UserGroupsResponse(BaseModel):
    user_id: int
    group_ids: list[int]
    count: int


def get_membership_service(request: Request) -> MembershipService:
    return request.app.state.membership_service


Service = Annotated[MembershipService, Depends(get_membership_service)]


def _unwrap(result: MembershipResult) -> MembershipResult:
    if not result.ok:
        raise HTTPException(
            status_code=REJECTION_STATUS[result.outcome],
            detail={"outcome": result.outcome.value, "message": result.detail},
        )
    return result


@router.get("", response_model=UserGroupsResponse)
async def list_user_groups(user_id: int, service: Service):
    group_ids = await service.list_group_ids(user_id)
    return UserGroupsResponse(user_id=user_id, group_ids=group_ids, count=len(group_ids))


@router.post("/{group_id}", response_model=MembershipResult, status_code=status.HTTP_201_CREATED)
async def join_group(user_id: int, group_id: int, service: Service):
    """Вступление в группу. 404 - нет пользователя/группы, 409 - уже в группе, 422 - достигнут потолок."""
    return _unwrap(await service.join(user_id, group_id))


@router.delete("/{group_id}", response_model=MembershipResult)
async def leave_group(user_id: int, group_id: int, service: Service):
    return _unwrap(await service.leave(user_id, group_id))


@router.put("/{from_group_id}/reassign/{to_group_id}", response_model=MembershipResult)
async def reassign_group(user_id: int, from_group_id: int, to_group_id: int, service: Service):
    """Атомарный перевод из одной группы в другую."""
    return _unwrap(await service.reassign(user_id, from_group_id, to_group_id))
