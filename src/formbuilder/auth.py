from __future__ import annotations

from typing import Protocol

from fastapi import HTTPException, Request

from formbuilder.config import Settings
from formbuilder.protocols import CurrentUser

USER_HEADER = "X-User-Id"


class StaticUser:
    def __init__(self, user_id: str | None) -> None:
        self._user_id = user_id

    def id(self) -> str | None:
        return self._user_id


class AuthProvider(Protocol):
    def current_user(self, request: Request) -> CurrentUser: ...


class NoAuthProvider:
    """Every request acts as the configured local user."""

    def __init__(self, user_id: str) -> None:
        self._user = StaticUser(user_id)

    def current_user(self, request: Request) -> CurrentUser:
        return self._user


class HeaderAuthProvider:
    """Trusts the user id set by an authenticating reverse proxy."""

    def current_user(self, request: Request) -> CurrentUser:
        value = request.headers.get(USER_HEADER, "").strip()
        return StaticUser(value or None)


def get_auth_provider(settings: Settings) -> AuthProvider:
    if settings.auth_mode == "header":
        return HeaderAuthProvider()
    return NoAuthProvider(settings.default_user_id)


def require_user(request: Request) -> str:
    user_id = request.app.state.auth_provider.current_user(request).id()
    if not user_id:
        raise HTTPException(status_code=401, detail="Sign in to manage forms")
    return user_id
