"""Database repositories for tenant data."""

from .user import UserRepository

__all__ = ["UserRepository"]
