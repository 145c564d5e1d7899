"""Models stored in each tenant database."""

from typing import Any

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import PortableJSON, TenantBase, TimestampMixin


class User(TimestampMixin, TenantBase):
    """Staff user of a tenant (POS operator, manager, admin)."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    organization_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    employee_code: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Tri-state: NULL is treated as not active
    is_active: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    metadata_: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", PortableJSON(), nullable=True
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
