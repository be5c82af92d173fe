"""Tests for the interactive administration console helpers."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import main
from usermanager.api import create_app
from usermanager.config import ServiceConfig


@pytest.fixture()
def client() -> Iterator[TestClient]:
    config = ServiceConfig()
    app = create_app(store=config.build_store(), config=config)
    with TestClient(app) as test_client:
        yield test_client


def _feed_input(monkeypatch: pytest.MonkeyPatch, *answers: str) -> None:
    replies = iter(answers)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(replies))


def test_list_users_prints_table(client: TestClient, capsys: pytest.CaptureFixture[str]) -> None:
    main._list_users(client)

    output = capsys.readouterr().out
    assert "2 user(s) found:" in output
    assert "John Doe" in output
    assert "jane.smith@example.com" in output


def test_add_user_creates_record(
    client: TestClient, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _feed_input(monkeypatch, "Ada", "Lovelace", "Ada@Example.com", "")

    main._add_user(client)

    output = capsys.readouterr().out
    assert "Created user #3: Ada Lovelace <ada@example.com>" in output
    assert client.get("/users/3").status_code == 200


def test_add_user_reports_validation_errors(
    client: TestClient, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _feed_input(monkeypatch, "Ada", "L", "not-an-email", "")

    main._add_user(client)

    output = capsys.readouterr().out
    assert "Service rejected the request (400):" in output
    assert "lastName: Last name must be between 2 and 50 characters" in output
    assert "email: Invalid email format" in output


def test_add_user_can_be_cancelled(
    client: TestClient, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _feed_input(monkeypatch, "")

    main._add_user(client)

    assert "User creation cancelled." in capsys.readouterr().out
    assert len(client.get("/users").json()) == 2


def test_delete_user_reports_outcome(
    client: TestClient, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _feed_input(monkeypatch, "2")
    main._delete_user(client)
    assert "User with ID 2 has been successfully deleted" in capsys.readouterr().out

    _feed_input(monkeypatch, "2")
    main._delete_user(client)
    assert "Service responded with 404: User with ID 2 not found" in capsys.readouterr().out


def test_delete_user_rejects_non_numeric_input(
    client: TestClient, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _feed_input(monkeypatch, "two")

    main._delete_user(client)

    assert "User ID must be a whole number." in capsys.readouterr().out


def test_connection_failures_are_reported(capsys: pytest.CaptureFixture[str]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with httpx.Client(transport=httpx.MockTransport(handler), base_url="http://service") as offline:
        main._list_users(offline)

    assert "Failed to contact user service: connection refused" in capsys.readouterr().out
