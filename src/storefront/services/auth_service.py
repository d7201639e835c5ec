# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

from storefront.auth.passwords import hash_password, verify_password
from storefront.auth.session import Identity, SessionCodec
from storefront.forms import LoginCommand, SignupCommand
from storefront.infra.users_repo import CredentialRecord, get_user, insert_user

logger = logging.getLogger(__name__)


class InvalidCredentials(ValueError):
    """Unknown username or wrong password (deliberately not told apart)."""


def _identity(record: CredentialRecord) -> Identity:
    return Identity(user_id=record.user_id, username=record.username, is_admin=record.is_admin)


def authenticate(users_path: Path, username: str, password: str) -> Optional[Identity]:
    record = get_user(users_path, username)
    if not record:
        return None
    if not verify_password(record.password_hash, password):
        return None
    return _identity(record)


def signup(users_path: Path, cmd: SignupCommand, codec: SessionCodec) -> Tuple[Identity, str]:
    """Create a customer account and return its identity plus a fresh token.

    Raises ``UsernameTaken`` when the display name is already registered.
    """
    password_hash = hash_password(cmd.password)
    user_id = insert_user(users_path, cmd.username, password_hash, is_admin=False)
    identity = Identity(user_id=user_id, username=cmd.username, is_admin=False)
    logger.info("New account %r (user_id=%s)", identity.username, identity.user_id)
    return identity, codec.issue(identity)


def login(users_path: Path, cmd: LoginCommand, codec: SessionCodec) -> Tuple[Identity, str]:
    identity = authenticate(users_path, cmd.username, cmd.password)
    if identity is None:
        logger.info("Failed login for %r", cmd.username)
        raise InvalidCredentials("Invalid username or password")
    logger.info("Login %r (admin=%s)", identity.username, identity.is_admin)
    return identity, codec.issue(identity)
