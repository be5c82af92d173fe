from __future__ import annotations

from pathlib import Path

import pytest

from usermanager.config import (
    DEFAULT_SEED_USERS,
    SeedUser,
    ServiceConfig,
    load_service_config,
    resolve_config_path,
)


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "users.yaml"
    path.write_text(content, encoding="utf-8")
    return path


def test_missing_file_falls_back_to_defaults(tmp_path: Path) -> None:
    config = load_service_config(tmp_path / "absent.yaml")

    assert config == ServiceConfig()
    assert config.seed_users == DEFAULT_SEED_USERS
    store = config.build_store()
    assert [user.id for user in store.list_users().value] == [1, 2]


def test_loads_seed_users_and_counter(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
next_id: 10
log_level: debug
seed_users:
  - id: 4
    first_name: Grace
    last_name: Hopper
    email: Grace@Example.com
""",
    )

    config = load_service_config(path)
    assert config.next_id == 10
    assert config.log_level == "DEBUG"
    assert config.seed_users == (SeedUser(4, "Grace", "Hopper", "Grace@Example.com"),)

    store = config.build_store()
    assert store.get_user(4).value.email == "grace@example.com"


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    assert load_service_config(_write(tmp_path, "")) == ServiceConfig()


def test_rejects_seed_user_missing_fields(tmp_path: Path) -> None:
    path = _write(tmp_path, "seed_users:\n  - id: 1\n    first_name: Ada\n")

    with pytest.raises(ValueError, match="email, last_name"):
        load_service_config(path)


def test_rejects_non_list_seed_users(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="seed_users"):
        load_service_config(_write(tmp_path, "seed_users: nope\n"))


def test_rejects_non_positive_counter(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="next_id"):
        load_service_config(_write(tmp_path, "next_id: 0\n"))


def test_rejects_non_mapping_document(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="mapping"):
        load_service_config(_write(tmp_path, "- just\n- a list\n"))


def test_parses_error_detail_flag_and_proxies(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "expose_error_details: 'yes'\ntrusted_proxies:\n  - 10.0.0.1\n  - 10.0.0.2\n",
    )

    config = load_service_config(path)
    assert config.expose_error_details is True
    assert config.trusted_proxies == ["10.0.0.1", "10.0.0.2"]


def test_environment_overrides() -> None:
    config = ServiceConfig().with_env_overrides(
        {
            "USERS_LOG_LEVEL": "warning",
            "USERS_EXPOSE_ERROR_DETAILS": "true",
            "USERS_TRUSTED_PROXIES": "127.0.0.1, 10.1.1.1",
        }
    )

    assert config.log_level == "WARNING"
    assert config.expose_error_details is True
    assert config.trusted_proxies == ["127.0.0.1", "10.1.1.1"]


def test_environment_overrides_keep_values_when_unset() -> None:
    original = ServiceConfig(log_level="ERROR", expose_error_details=True)

    assert original.with_env_overrides({}) == original


def test_resolve_config_path_prefers_environment(tmp_path: Path) -> None:
    target = tmp_path / "custom.yaml"

    assert resolve_config_path(str(target)) == target.resolve()
    assert resolve_config_path(None).name == "users.yaml"


def test_bundled_configuration_is_valid() -> None:
    config = load_service_config(resolve_config_path(None))

    assert config.seed_users == DEFAULT_SEED_USERS
    assert config.next_id == 3


def test_rejects_unknown_log_level_in_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Unknown log level"):
        load_service_config(_write(tmp_path, "log_level: verbose\n"))


def test_rejects_unknown_log_level_from_environment() -> None:
    with pytest.raises(ValueError, match="Unknown log level"):
        ServiceConfig().with_env_overrides({"USERS_LOG_LEVEL": "verbose"})
