"""Thread-safe in-memory storage for user records."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from .models import User, UserCandidate
from .results import ErrorKind, Result
from .validation import validate_candidate

logger = logging.getLogger("usermanager.store")

DEFAULT_NEXT_ID = 3

_INVALID_ID_MESSAGE = "User ID must be a positive integer"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _normalise_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _not_found(user_id: int) -> str:
    return f"User with ID {user_id} not found"


class UserStore:
    """Holds user records and enforces id and email invariants.

    Every public operation runs inside a single lock, so validation, the
    uniqueness check and the mutation it guards are observed atomically by
    concurrent callers. Records handed out are copies; callers cannot mutate
    stored state.
    """

    def __init__(
        self,
        seed: Iterable[Tuple[int, UserCandidate]] = (),
        *,
        next_id: int = DEFAULT_NEXT_ID,
    ) -> None:
        if next_id < 1:
            raise ValueError("next_id must be a positive integer")
        self._lock = threading.Lock()
        self._users: List[User] = []
        self._next_id = next_id
        for user_id, candidate in seed:
            self._add_seed(user_id, candidate)

    def _add_seed(self, user_id: int, candidate: UserCandidate) -> None:
        if user_id < 1:
            raise ValueError(f"Seed user id must be positive, got {user_id}")
        violations = validate_candidate(candidate)
        if violations:
            details = "; ".join(
                f"{name}: {', '.join(messages)}" for name, messages in violations.items()
            )
            raise ValueError(f"Seed user {user_id} is invalid ({details})")
        if self._find_locked(user_id) is not None:
            raise ValueError(f"Duplicate seed user id {user_id}")
        if self._email_taken_locked(candidate.email):
            raise ValueError(f"Duplicate seed user email {candidate.email!r}")

        self._users.append(self._build_locked(user_id, candidate))
        self._next_id = max(self._next_id, user_id + 1)

    def count(self) -> int:
        with self._lock:
            return len(self._users)

    def list_users(self) -> Result[List[User]]:
        """Return a snapshot of every record in insertion order."""

        with self._lock:
            snapshot = [replace(user) for user in self._users]
        logger.info("Successfully retrieved %s users", len(snapshot))
        return Result.success(snapshot)

    def get_user(self, user_id: int) -> Result[User]:
        if user_id <= 0:
            logger.warning("Invalid user ID requested: %s", user_id)
            return Result.failure(ErrorKind.INVALID_ARGUMENT, _INVALID_ID_MESSAGE)

        with self._lock:
            user = self._find_locked(user_id)
            if user is None:
                logger.warning("User with ID %s not found", user_id)
                return Result.failure(ErrorKind.NOT_FOUND, _not_found(user_id))
            return Result.success(replace(user))

    def create_user(self, candidate: UserCandidate) -> Result[User]:
        violations = validate_candidate(candidate)
        if violations:
            logger.warning("Invalid user creation request: %s", violations)
            return Result.failure(
                ErrorKind.VALIDATION_FAILED, "One or more fields are invalid", violations
            )

        with self._lock:
            if self._email_taken_locked(candidate.email):
                logger.warning(
                    "Attempt to create user with duplicate email: %s",
                    _normalise_email(candidate.email),
                )
                return Result.failure(
                    ErrorKind.CONFLICT, "A user with this email already exists"
                )

            user = self._build_locked(self._next_id, candidate)
            self._next_id += 1
            self._users.append(user)
            created = replace(user)

        logger.info("Successfully created user with ID: %s, Email: %s", created.id, created.email)
        return Result.success(created)

    def update_user(self, user_id: int, candidate: UserCandidate) -> Result[User]:
        """Replace every mutable field of an existing record."""

        if user_id <= 0:
            logger.warning("Invalid user ID for update: %s", user_id)
            return Result.failure(ErrorKind.INVALID_ARGUMENT, _INVALID_ID_MESSAGE)

        violations = validate_candidate(candidate)
        if violations:
            logger.warning("Invalid update request for user %s: %s", user_id, violations)
            return Result.failure(
                ErrorKind.VALIDATION_FAILED, "One or more fields are invalid", violations
            )

        with self._lock:
            user = self._find_locked(user_id)
            if user is None:
                logger.warning("User with ID %s not found for update", user_id)
                return Result.failure(ErrorKind.NOT_FOUND, _not_found(user_id))

            if self._email_taken_locked(candidate.email, exclude_id=user_id):
                logger.warning(
                    "Attempt to update user %s with duplicate email: %s",
                    user_id,
                    _normalise_email(candidate.email),
                )
                return Result.failure(
                    ErrorKind.CONFLICT, "Another user with this email already exists"
                )

            user.first_name = (candidate.first_name or "").strip()
            user.last_name = (candidate.last_name or "").strip()
            user.email = _normalise_email(candidate.email)
            user.phone_number = _clean(candidate.phone_number)
            user.updated_at = _utcnow()
            updated = replace(user)

        logger.info("Successfully updated user with ID: %s", user_id)
        return Result.success(updated)

    def delete_user(self, user_id: int) -> Result[User]:
        """Remove a record and return a copy of it. Ids are never recycled."""

        if user_id <= 0:
            logger.warning("Invalid user ID for deletion: %s", user_id)
            return Result.failure(ErrorKind.INVALID_ARGUMENT, _INVALID_ID_MESSAGE)

        with self._lock:
            user = self._find_locked(user_id)
            if user is None:
                logger.warning("User with ID %s not found for deletion", user_id)
                return Result.failure(ErrorKind.NOT_FOUND, _not_found(user_id))
            self._users.remove(user)

        logger.info("Successfully deleted user with ID: %s, Email: %s", user_id, user.email)
        return Result.success(replace(user))

    def _find_locked(self, user_id: int) -> Optional[User]:
        for user in self._users:
            if user.id == user_id:
                return user
        return None

    def _email_taken_locked(self, email: Optional[str], *, exclude_id: int | None = None) -> bool:
        normalised = _normalise_email(email)
        return any(
            user.email == normalised and user.id != exclude_id for user in self._users
        )

    def _build_locked(self, user_id: int, candidate: UserCandidate) -> User:
        return User(
            id=user_id,
            first_name=(candidate.first_name or "").strip(),
            last_name=(candidate.last_name or "").strip(),
            email=_normalise_email(candidate.email),
            phone_number=_clean(candidate.phone_number),
            created_at=_utcnow(),
        )


__all__ = ["DEFAULT_NEXT_ID", "UserStore"]
