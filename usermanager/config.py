"""Configuration management for the user management service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from .models import UserCandidate
from .store import DEFAULT_NEXT_ID, UserStore


@dataclass(frozen=True)
class SeedUser:
    """A record loaded into the store when the service starts."""

    id: int
    first_name: str
    last_name: str
    email: str
    phone_number: Optional[str] = None

    @staticmethod
    def from_dict(data: Dict[str, object]) -> "SeedUser":
        """Create a :class:`SeedUser` from raw dictionary data."""
        if not isinstance(data, dict):
            raise ValueError("Each seed user must be a mapping of field names to values")
        required_fields = {"id", "first_name", "last_name", "email"}
        missing = required_fields - data.keys()
        if missing:
            raise ValueError(f"Missing required seed user fields: {', '.join(sorted(missing))}")

        try:
            user_id = int(data["id"])  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Seed user id must be an integer, got {data['id']!r}") from exc

        phone = data.get("phone_number")
        return SeedUser(
            id=user_id,
            first_name=str(data["first_name"]),
            last_name=str(data["last_name"]),
            email=str(data["email"]),
            phone_number=str(phone) if phone is not None else None,
        )

    def to_candidate(self) -> UserCandidate:
        return UserCandidate(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            phone_number=self.phone_number,
        )


DEFAULT_SEED_USERS: Tuple[SeedUser, ...] = (
    SeedUser(1, "John", "Doe", "john.doe@example.com", "123-456-7890"),
    SeedUser(2, "Jane", "Smith", "jane.smith@example.com", "098-765-4321"),
)


def _env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "TRACE")


def _parse_log_level(value: object) -> str:
    level = str(value).strip().upper() or "INFO"
    if level not in _LOG_LEVELS:
        raise ValueError(
            f"Unknown log level {value!r}; expected one of {', '.join(_LOG_LEVELS)}"
        )
    return level


def _parse_proxies(value: object) -> List[str] | str:
    if value is None:
        return "*"
    if isinstance(value, str):
        hosts = [item.strip() for item in value.split(",") if item.strip()]
    elif isinstance(value, (list, tuple)):
        hosts = [str(item).strip() for item in value if str(item).strip()]
    else:
        raise ValueError("trusted_proxies must be a comma separated string or a list")
    if not hosts or hosts == ["*"]:
        return "*"
    return hosts


@dataclass(frozen=True)
class ServiceConfig:
    """Settings for the HTTP service and the initial store contents."""

    seed_users: Tuple[SeedUser, ...] = DEFAULT_SEED_USERS
    next_id: int = DEFAULT_NEXT_ID
    log_level: str = "INFO"
    expose_error_details: bool = False
    trusted_proxies: List[str] | str = "*"

    @staticmethod
    def from_dict(data: Dict[str, object]) -> "ServiceConfig":
        seeds_raw = data.get("seed_users")
        if seeds_raw is None:
            seeds = DEFAULT_SEED_USERS
        elif isinstance(seeds_raw, list):
            seeds = tuple(SeedUser.from_dict(item) for item in seeds_raw)
        else:
            raise ValueError("'seed_users' must be a list of user definitions")

        try:
            next_id = int(data.get("next_id", DEFAULT_NEXT_ID))  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError("'next_id' must be an integer") from exc
        if next_id < 1:
            raise ValueError("'next_id' must be a positive integer")

        log_level = _parse_log_level(data.get("log_level", "INFO"))

        return ServiceConfig(
            seed_users=seeds,
            next_id=next_id,
            log_level=log_level,
            expose_error_details=_env_flag(str(data.get("expose_error_details", False))),
            trusted_proxies=_parse_proxies(data.get("trusted_proxies")),
        )

    def with_env_overrides(self, environ: Optional[Dict[str, str]] = None) -> "ServiceConfig":
        env = os.environ if environ is None else environ
        log_level = env.get("USERS_LOG_LEVEL")
        proxies = env.get("USERS_TRUSTED_PROXIES")
        return ServiceConfig(
            seed_users=self.seed_users,
            next_id=self.next_id,
            log_level=_parse_log_level(log_level) if log_level else self.log_level,
            expose_error_details=_env_flag(
                env.get("USERS_EXPOSE_ERROR_DETAILS"), self.expose_error_details
            ),
            trusted_proxies=_parse_proxies(proxies) if proxies else self.trusted_proxies,
        )

    def build_store(self) -> UserStore:
        """Create a store pre-populated with the configured seed users."""

        return UserStore(
            ((seed.id, seed.to_candidate()) for seed in self.seed_users),
            next_id=self.next_id,
        )


def load_service_config(config_path: Path) -> ServiceConfig:
    """Load service settings from a YAML file, falling back to defaults."""
    if not config_path.exists():
        return ServiceConfig()

    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping at the top level")
    return ServiceConfig.from_dict(raw)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "users.yaml").resolve(strict=False)
    return candidate


__all__ = [
    "DEFAULT_SEED_USERS",
    "SeedUser",
    "ServiceConfig",
    "load_service_config",
    "resolve_config_path",
]
