# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from itsdangerous import BadData, URLSafeTimedSerializer

DEFAULT_MAX_AGE_SECONDS = 7 * 24 * 60 * 60  # 7 days
DEFAULT_SALT = "storefront.session.v1"


@dataclass(frozen=True)
class Identity:
    """Authenticated principal, without any password material."""

    user_id: int
    username: str
    is_admin: bool


class SessionCodec:
    """Issues and verifies signed, expiring session tokens.

    The payload carries the identity plus an absolute ``exp`` timestamp;
    both are covered by the signature. Every verification failure
    (malformed, foreign secret, tampered, expired) yields ``None``.
    """

    def __init__(
        self,
        secret: str,
        *,
        max_age: int = DEFAULT_MAX_AGE_SECONDS,
        salt: str = DEFAULT_SALT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("Session secret must not be empty")
        self.max_age = int(max_age)
        self._clock = clock
        self._serializer = URLSafeTimedSerializer(secret_key=secret, salt=salt)

    def issue(self, identity: Identity) -> str:
        exp = int(self._clock()) + self.max_age
        return self._serializer.dumps(
            {
                "uid": identity.user_id,
                "u": identity.username,
                "adm": identity.is_admin,
                "exp": exp,
            }
        )

    def verify(self, token: Optional[str]) -> Optional[Identity]:
        if not token:
            return None
        try:
            data = self._serializer.loads(token, max_age=self.max_age)
        except BadData:
            return None
        return self._identity_from_payload(data)

    def _identity_from_payload(self, data: Any) -> Optional[Identity]:
        if not isinstance(data, dict):
            return None
        uid = data.get("uid")
        username = data.get("u")
        is_admin = data.get("adm")
        exp = data.get("exp")
        if isinstance(uid, bool) or not isinstance(uid, int):
            return None
        if not isinstance(username, str) or not username.strip():
            return None
        if not isinstance(is_admin, bool):
            return None
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            return None
        if self._clock() >= exp:
            return None
        return Identity(user_id=uid, username=username, is_admin=is_admin)
