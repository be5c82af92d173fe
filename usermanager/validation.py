"""Field-level validation for user candidates."""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional

from email_validator import EmailNotValidError, validate_email

from .models import UserCandidate

_MIN_NAME_LENGTH = 2
_MAX_NAME_LENGTH = 50
_MAX_EMAIL_LENGTH = 100
_MAX_PHONE_LENGTH = 20
_NAME_PATTERN = re.compile(r"^[a-zA-Z\s\-']+$")
_PHONE_PATTERN = re.compile(
    r"^\+?[\s().\-]*(?:[0-9][\s().\-]*)+(?:(?:x|ext\.?)\s?[0-9]+)?$",
    re.IGNORECASE,
)


def _strip(value: Optional[str]) -> str:
    return value.strip() if value else ""


def _validate_name(value: Optional[str], label: str) -> List[str]:
    cleaned = _strip(value)
    if not cleaned:
        return [f"{label} is required"]

    errors: List[str] = []
    if not _MIN_NAME_LENGTH <= len(cleaned) <= _MAX_NAME_LENGTH:
        errors.append(
            f"{label} must be between {_MIN_NAME_LENGTH} and {_MAX_NAME_LENGTH} characters"
        )
    if not _NAME_PATTERN.fullmatch(cleaned):
        errors.append(f"{label} can only contain letters, spaces, hyphens, and apostrophes")
    return errors


def validate_first_name(value: Optional[str]) -> List[str]:
    return _validate_name(value, "First name")


def validate_last_name(value: Optional[str]) -> List[str]:
    return _validate_name(value, "Last name")


def validate_email_address(value: Optional[str]) -> List[str]:
    cleaned = _strip(value)
    if not cleaned:
        return ["Email is required"]

    errors: List[str] = []
    try:
        validate_email(cleaned, check_deliverability=False, globally_deliverable=False)
    except EmailNotValidError:
        errors.append("Invalid email format")
    if len(cleaned) > _MAX_EMAIL_LENGTH:
        errors.append(f"Email cannot exceed {_MAX_EMAIL_LENGTH} characters")
    return errors


def validate_phone_number(value: Optional[str]) -> List[str]:
    """Phone numbers are optional; blank values are treated as absent."""

    cleaned = _strip(value)
    if not cleaned:
        return []

    errors: List[str] = []
    if not _PHONE_PATTERN.fullmatch(cleaned):
        errors.append("Invalid phone number format")
    if len(cleaned) > _MAX_PHONE_LENGTH:
        errors.append(f"Phone number cannot exceed {_MAX_PHONE_LENGTH} characters")
    return errors


_FIELD_VALIDATORS: Dict[str, tuple[Callable[[UserCandidate], Optional[str]], Callable[[Optional[str]], List[str]]]] = {
    "firstName": (lambda candidate: candidate.first_name, validate_first_name),
    "lastName": (lambda candidate: candidate.last_name, validate_last_name),
    "email": (lambda candidate: candidate.email, validate_email_address),
    "phoneNumber": (lambda candidate: candidate.phone_number, validate_phone_number),
}


def validate_candidate(candidate: UserCandidate) -> Dict[str, List[str]]:
    """Return every violation found in ``candidate`` keyed by wire field name.

    All fields are checked; an empty mapping means the candidate is acceptable.
    """

    violations: Dict[str, List[str]] = {}
    for field_name, (accessor, validator) in _FIELD_VALIDATORS.items():
        messages = validator(accessor(candidate))
        if messages:
            violations[field_name] = messages
    return violations


__all__ = [
    "validate_candidate",
    "validate_email_address",
    "validate_first_name",
    "validate_last_name",
    "validate_phone_number",
]
