"""Data access layer: repository interfaces."""

from accounts.dal.user_store import UserStore

__all__ = [
    "UserStore",
]
