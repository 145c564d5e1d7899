"""User schemas. The password hash is never part of any of them."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class UserResponse(BaseModel):
    """Public view of a tenant user."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int | None = None
    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    employee_code: str | None = None
    is_active: bool | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total: int
    limit: int
    offset: int
