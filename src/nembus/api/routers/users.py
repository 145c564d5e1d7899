"""Tenant user endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from nembus.api.dependencies import get_tenant_data_access
from nembus.api.schemas.response import APIResponse
from nembus.api.schemas.user import UserListResponse, UserResponse
from nembus.db.data_access import TenantDataAccess
from nembus.db.repositories.user import UserRepository

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get(
    "",
    response_model=APIResponse[UserListResponse],
    summary="List users",
)
async def list_users(
    data_access: Annotated[TenantDataAccess, Depends(get_tenant_data_access)],
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> APIResponse[UserListResponse]:
    async with data_access.session() as session:
        repo = UserRepository(session)
        users = await repo.list(limit=limit, offset=offset)
        total = await repo.count()

    page = UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        limit=limit,
        offset=offset,
    )
    return APIResponse.ok(page, message="users retrieved")


@router.get(
    "/{user_id}",
    response_model=APIResponse[UserResponse],
    summary="Get user",
    responses={404: {"model": APIResponse}},
)
async def get_user(
    user_id: int,
    data_access: Annotated[TenantDataAccess, Depends(get_tenant_data_access)],
):
    async with data_access.session() as session:
        user = await UserRepository(session).get(user_id)
        found = UserResponse.model_validate(user) if user is not None else None

    if found is None:
        body = APIResponse.error(404, "user not found")
        return JSONResponse(status_code=404, content=body.model_dump())

    return APIResponse.ok(found, message="user retrieved")
