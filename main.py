"""Command-line interface for the user management service."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from typing import Sequence

import httpx

from usermanager.config import ServiceConfig, load_service_config, resolve_config_path

logger = logging.getLogger("usermanager.main")

_DEFAULT_SERVICE_URL = "http://localhost:8000"


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=None,
        help="Path to the YAML configuration (default: USERS_CONFIG_PATH or config/users.yaml)",
    )

    parser = argparse.ArgumentParser(description="User management service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser(
        "serve", parents=[common], help="Start the HTTP service"
    )
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for the HTTP API (default: 8000)",
    )
    serve_parser.add_argument(
        "--ssl-certfile",
        default=None,
        help="Path to the TLS certificate chain in PEM format",
    )
    serve_parser.add_argument(
        "--ssl-keyfile",
        default=None,
        help="Path to the TLS private key in PEM format",
    )

    admin_parser = subparsers.add_parser(
        "admin", parents=[common], help="Launch the interactive administration console"
    )
    admin_parser.add_argument(
        "--service-url",
        default=None,
        help=f"Base URL of a running service (default: {_DEFAULT_SERVICE_URL})",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "admin"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _load_config(path: str | None) -> ServiceConfig:
    config_path = resolve_config_path(path or os.getenv("USERS_CONFIG_PATH"))
    config = load_service_config(config_path).with_env_overrides()
    logger.debug("Loaded configuration from %s", config_path)
    return config


def _serve(
    *,
    config: ServiceConfig,
    host: str,
    port: int,
    ssl_certfile: str | None,
    ssl_keyfile: str | None,
) -> None:
    from usermanager.api import create_app
    import uvicorn

    if bool(ssl_certfile) ^ bool(ssl_keyfile):
        raise SystemExit("Both --ssl-certfile and --ssl-keyfile must be provided together.")

    store = config.build_store()
    protocol = "https" if ssl_certfile and ssl_keyfile else "http"
    logger.info(
        "Starting user management API on %s://%s:%s with %s seeded users",
        protocol,
        host,
        port,
        store.count(),
    )

    app = create_app(store=store, config=config)
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=config.log_level.lower(),
        ssl_certfile=ssl_certfile,
        ssl_keyfile=ssl_keyfile,
    )


def _run_admin_cli(service_url: str | None = None) -> None:
    """Provide an interactive console against a running service."""

    base_url = (service_url or _DEFAULT_SERVICE_URL).rstrip("/")

    print("User Management Administration Console")
    print(f"Connected to {base_url}. Press Ctrl+C at any time to exit.\n")

    with httpx.Client(base_url=base_url, timeout=10.0) as client:
        try:
            while True:
                print("Select an option:")
                print("  1) List all users")
                print("  2) Add a new user")
                print("  3) Delete a user")
                print("  4) Exit")

                choice = input("Enter choice [1-4]: ").strip()

                if choice == "1":
                    _list_users(client)
                elif choice == "2":
                    _add_user(client)
                elif choice == "3":
                    _delete_user(client)
                elif choice == "4":
                    print("Goodbye!")
                    return
                else:
                    print("Invalid selection. Please choose a number from the menu.\n")

                print()
        except KeyboardInterrupt:
            print("\nExiting administration console.")


def _print_error(response: httpx.Response) -> None:
    try:
        payload = response.json()
    except ValueError:
        print(f"Service responded with {response.status_code}: {response.text.strip()}")
        return

    if isinstance(payload, dict) and "message" in payload:
        print(f"Service responded with {response.status_code}: {payload['message']}")
        return
    if isinstance(payload, dict):
        print(f"Service rejected the request ({response.status_code}):")
        for field, messages in payload.items():
            for message in messages if isinstance(messages, list) else [messages]:
                print(f"  {field}: {message}")
        return
    print(f"Service responded with {response.status_code}: {payload}")


def _list_users(client: httpx.Client) -> None:
    try:
        response = client.get("/users")
    except httpx.HTTPError as exc:
        print(f"Failed to contact user service: {exc}")
        return

    if response.status_code != 200:
        _print_error(response)
        return

    users = response.json()
    if not users:
        print("No users are currently registered.")
        return

    print(f"{len(users)} user(s) found:")
    print(f"{'ID':>4}  {'Name':<24}  {'Email':<32}  Phone")
    print("-" * 80)
    for user in users:
        name = f"{user['firstName']} {user['lastName']}"
        phone = user.get("phoneNumber") or "-"
        print(f"{user['id']:>4}  {name:<24}  {user['email']:<32}  {phone}")


def _add_user(client: httpx.Client) -> None:
    print("\nCreate a new user (leave the first name blank to cancel).")
    first_name = input("First name: ").strip()
    if not first_name:
        print("User creation cancelled.")
        return

    payload = {
        "firstName": first_name,
        "lastName": input("Last name: ").strip(),
        "email": input("Email address: ").strip(),
        "phoneNumber": input("Phone number (optional): ").strip() or None,
    }

    try:
        response = client.post("/users", json=payload)
    except httpx.HTTPError as exc:
        print(f"Failed to contact user service: {exc}")
        return

    if response.status_code != 201:
        _print_error(response)
        return

    user = response.json()
    print(f"Created user #{user['id']}: {user['firstName']} {user['lastName']} <{user['email']}>")


def _delete_user(client: httpx.Client) -> None:
    raw = input("User ID to delete: ").strip()
    try:
        user_id = int(raw)
    except ValueError:
        print("User ID must be a whole number.")
        return

    try:
        response = client.delete(f"/users/{user_id}")
    except httpx.HTTPError as exc:
        print(f"Failed to contact user service: {exc}")
        return

    if response.status_code != 200:
        _print_error(response)
        return

    print(response.json().get("message", f"User {user_id} deleted."))


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    args = _parse_args(argv)
    config = _load_config(args.config)

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.command == "serve":
        _serve(
            config=config,
            host=args.host,
            port=args.port,
            ssl_certfile=args.ssl_certfile,
            ssl_keyfile=args.ssl_keyfile,
        )
    elif args.command == "admin":
        _run_admin_cli(args.service_url)


if __name__ == "__main__":
    main()
