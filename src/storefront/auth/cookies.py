# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Set-Cookie / Cookie header values for the session token."""

from __future__ import annotations

from typing import Optional

from starlette.requests import cookie_parser
from starlette.responses import Response

from storefront.auth.session import DEFAULT_MAX_AGE_SECONDS

COOKIE_NAME = "auth_token"
MAX_AGE_SECONDS = DEFAULT_MAX_AGE_SECONDS


def cookie_settings(secure: bool = False) -> dict:
    return {"path": "/", "httponly": True, "samesite": "Lax", "secure": secure}


def _set_cookie_header(value: str, max_age: int, secure: bool) -> str:
    resp = Response()
    resp.set_cookie(COOKIE_NAME, value, max_age=max_age, **cookie_settings(secure))
    return resp.headers["set-cookie"]


def encode(token: str, *, secure: bool = False) -> str:
    return _set_cookie_header(token, MAX_AGE_SECONDS, secure)


def clear(*, secure: bool = False) -> str:
    return _set_cookie_header("", 0, secure)


def decode(header: Optional[str]) -> Optional[str]:
    """Return the session token from a Cookie header, or None."""
    if not header or not isinstance(header, str):
        return None
    return cookie_parser(header).get(COOKIE_NAME) or None
