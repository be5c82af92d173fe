"""In-memory user management service."""

from __future__ import annotations

from typing import Any

from .models import User, UserCandidate
from .results import ErrorKind, Result, StoreError
from .store import UserStore


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP application."""

    from .api import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "ErrorKind",
    "Result",
    "StoreError",
    "User",
    "UserCandidate",
    "UserStore",
    "create_app",
]
