# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Union

from fastapi import Request
from fastapi.responses import RedirectResponse

from storefront.auth import cookies
from storefront.auth.session import Identity, SessionCodec

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"


class Role(enum.Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"


LANDING_BY_ROLE = {Role.ADMIN: "/admin", Role.CUSTOMER: "/products"}


def role_of(identity: Identity) -> Role:
    return Role.ADMIN if identity.is_admin else Role.CUSTOMER


def landing_for(identity: Identity) -> str:
    return LANDING_BY_ROLE[role_of(identity)]


@dataclass(frozen=True)
class Authenticated:
    identity: Identity
    ok = True


@dataclass(frozen=True)
class Redirect:
    target: str
    reason: str  # "unauthenticated" | "forbidden"
    ok = False


AuthOutcome = Union[Authenticated, Redirect]


class AuthGate:
    """Resolves the session identity from request headers and enforces roles.

    Denials come back as ``Redirect`` values; callers must return them
    instead of continuing with the request.
    """

    def __init__(self, codec: SessionCodec) -> None:
        self.codec = codec

    def authenticate(self, headers: Mapping[str, str]) -> Optional[Identity]:
        """``headers`` is a Starlette ``Headers`` (or any mapping with lower-case keys)."""
        token = cookies.decode(headers.get("cookie"))
        if not token:
            return None
        return self.codec.verify(token)

    def require_authenticated(self, headers: Mapping[str, str]) -> AuthOutcome:
        identity = self.authenticate(headers)
        if identity is None:
            return Redirect(target=LOGIN_PATH, reason="unauthenticated")
        return Authenticated(identity=identity)

    def require_role(self, headers: Mapping[str, str], role: Role) -> AuthOutcome:
        outcome = self.require_authenticated(headers)
        if not outcome.ok:
            return outcome
        actual = role_of(outcome.identity)
        if actual is not role:
            return Redirect(target=LANDING_BY_ROLE[actual], reason="forbidden")
        return outcome


# --- FastAPI glue ---


def get_gate(request: Request) -> AuthGate:
    return request.app.state.gate


def check_authenticated(request: Request) -> AuthOutcome:
    return _logged(request, get_gate(request).require_authenticated(request.headers))


def check_role(request: Request, role: Role) -> AuthOutcome:
    return _logged(request, get_gate(request).require_role(request.headers, role))


def current_user_optional(request: Request) -> Optional[Identity]:
    u = getattr(request.state, "user", None)
    if u is not None:
        return u
    return get_gate(request).authenticate(request.headers)


def redirect_response(outcome: Redirect) -> RedirectResponse:
    return RedirectResponse(url=outcome.target, status_code=303)


def _logged(request: Request, outcome: AuthOutcome) -> AuthOutcome:
    if not outcome.ok:
        logger.info("Access denied (%s) on %s -> %s", outcome.reason, request.url.path, outcome.target)
    return outcome
