"""FastAPI application exposing the user store over HTTP."""
from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from .config import ServiceConfig, load_service_config, resolve_config_path
from .models import User, UserCandidate
from .results import ErrorKind, StoreError
from .store import UserStore

logger = logging.getLogger("usermanager.api")

_FAULT_MESSAGE = "An unexpected error occurred while processing the request."
_FAULT_HIDDEN_DETAILS = "Internal server error. Check the service logs for more information."
_MAX_DETAILS_LENGTH = 200

_STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.FAULT: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class UserRequest(BaseModel):
    """Request body for creating or replacing a user.

    Constraints are enforced by the store so that every violation is reported
    together; the model only checks that values are strings.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None

    def to_candidate(self) -> UserCandidate:
        return UserCandidate(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            phone_number=self.phone_number,
        )


class UserResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    first_name: str
    last_name: str
    email: str
    phone_number: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]


class MessageResponse(BaseModel):
    message: str


def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        phone_number=user.phone_number,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _error_response(error: StoreError) -> JSONResponse:
    if error.kind is ErrorKind.VALIDATION_FAILED:
        content: object = error.field_errors
    else:
        content = {"message": error.message}
    return JSONResponse(status_code=_STATUS_BY_KIND[error.kind], content=content)


def _field_name(location: tuple) -> str:
    # Integer entries are list indices or JSON decode offsets.
    parts = [
        str(part)
        for part in location
        if not isinstance(part, int) and part not in ("body", "path", "query")
    ]
    if not parts:
        return "body"
    name = ".".join(parts)
    return "id" if name == "user_id" else name


def _fault_details(exc: Exception, expose: bool) -> str:
    if not expose:
        return _FAULT_HIDDEN_DETAILS
    summary = str(exc).strip().splitlines()[0] if str(exc).strip() else type(exc).__name__
    if len(summary) > _MAX_DETAILS_LENGTH:
        summary = summary[: _MAX_DETAILS_LENGTH - 3] + "..."
    return summary


def _load_default_config() -> ServiceConfig:
    config_path = resolve_config_path(os.getenv("USERS_CONFIG_PATH"))
    return load_service_config(config_path).with_env_overrides()


def register_user_routes(app: FastAPI, *, get_store: Callable[[], UserStore]) -> None:
    """Expose the user CRUD endpoints on the provided FastAPI application."""

    @app.get("/healthz")
    def healthcheck(store: UserStore = Depends(get_store)) -> Dict[str, object]:
        return {"status": "ok", "users": store.count()}

    @app.get("/users", response_model=List[UserResponse])
    def list_users(store: UserStore = Depends(get_store)):
        result = store.list_users()
        return [_user_to_response(user) for user in result.value or []]

    @app.get("/users/{user_id}", response_model=UserResponse, name="get_user")
    def get_user(user_id: int, store: UserStore = Depends(get_store)):
        result = store.get_user(user_id)
        if result.error is not None:
            return _error_response(result.error)
        return _user_to_response(result.value)

    @app.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
    def create_user(
        payload: UserRequest,
        request: Request,
        response: Response,
        store: UserStore = Depends(get_store),
    ):
        result = store.create_user(payload.to_candidate())
        if result.error is not None:
            return _error_response(result.error)

        user = result.value
        response.headers["Location"] = str(request.url_for("get_user", user_id=user.id))
        return _user_to_response(user)

    @app.put("/users/{user_id}", response_model=UserResponse)
    def update_user(
        user_id: int,
        payload: UserRequest,
        store: UserStore = Depends(get_store),
    ):
        result = store.update_user(user_id, payload.to_candidate())
        if result.error is not None:
            return _error_response(result.error)
        return _user_to_response(result.value)

    @app.delete("/users/{user_id}", response_model=MessageResponse)
    def delete_user(user_id: int, store: UserStore = Depends(get_store)):
        result = store.delete_user(user_id)
        if result.error is not None:
            return _error_response(result.error)
        return MessageResponse(message=f"User with ID {user_id} has been successfully deleted")


def create_app(
    *,
    store: UserStore | None = None,
    config: ServiceConfig | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application around an injected :class:`UserStore`."""

    if config is None:
        config = _load_default_config()
    if store is None:
        store = config.build_store()

    app = FastAPI(
        title="User Management API",
        description="In-memory CRUD service for user records",
        version="1.0.0",
    )
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=config.trusted_proxies)
    app.state.store = store
    app.state.config = config

    def get_store() -> UserStore:
        return store

    register_user_routes(app, get_store=get_store)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors: Dict[str, List[str]] = {}
        for error in exc.errors():
            errors.setdefault(_field_name(tuple(error.get("loc", ()))), []).append(
                str(error.get("msg", "Invalid value"))
            )
        logger.warning(
            "Rejected malformed request %s %s: %s", request.method, request.url.path, errors
        )
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=errors)

    @app.middleware("http")
    async def handle_unexpected_errors(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception(
                "Unhandled error while processing %s %s", request.method, request.url.path
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "statusCode": status.HTTP_500_INTERNAL_SERVER_ERROR,
                    "message": _FAULT_MESSAGE,
                    "details": _fault_details(exc, config.expose_error_details),
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            )

    return app


__all__ = ["UserRequest", "UserResponse", "create_app", "register_user_routes"]
