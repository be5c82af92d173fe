"""Domain models for the user management service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class User:
    """Represents a user record held by the in-memory store."""

    id: int
    first_name: str
    last_name: str
    email: str
    phone_number: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class UserCandidate:
    """Unvalidated input submitted for creating or replacing a user."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None


__all__ = ["User", "UserCandidate"]
