# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

import yaml


@dataclass(frozen=True)
class CredentialRecord:
    user_id: int
    username: str
    password_hash: str
    is_admin: bool


class UsernameTaken(ValueError):
    """Display names are unique."""


_CACHE: Dict[Path, Tuple[float, Dict[str, CredentialRecord]]] = {}
_WRITE_LOCK = threading.Lock()


def _read_raw(path: Path) -> dict:
    if not path.exists():
        return {"version": 1, "users": {}}
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raw = {}
    if not isinstance(raw.get("users"), dict):
        raw["users"] = {}
    return raw


def _load_users_file(path: Path) -> Dict[str, CredentialRecord]:
    users = _read_raw(path)["users"]
    out: Dict[str, CredentialRecord] = {}
    for uname, udata in users.items():
        if not isinstance(udata, dict):
            continue
        username = str(uname).strip()
        if not username:
            continue
        try:
            user_id = int(udata.get("user_id"))
        except (TypeError, ValueError):
            continue
        out[username] = CredentialRecord(
            user_id=user_id,
            username=username,
            password_hash=str(udata.get("password_hash") or "").strip(),
            is_admin=bool(udata.get("is_admin", False)),
        )
    return out


def get_users(path: Path) -> Dict[str, CredentialRecord]:
    path = Path(path)
    mtime = path.stat().st_mtime if path.exists() else 0.0

    cached = _CACHE.get(path)
    if cached and mtime and cached[0] == mtime:
        return cached[1]

    users = _load_users_file(path)
    _CACHE[path] = (mtime, users)
    return users


def get_user(path: Path, username: str) -> Optional[CredentialRecord]:
    u = (username or "").strip()
    if not u:
        return None
    return get_users(path).get(u)


def insert_user(path: Path, username: str, password_hash: str, is_admin: bool = False) -> int:
    """Insert a credential record and return its assigned user_id."""
    path = Path(path)
    username = (username or "").strip()
    if not username:
        raise ValueError("Username must not be empty")

    with _WRITE_LOCK:
        raw = _read_raw(path)
        users = raw["users"]
        if username in users:
            raise UsernameTaken("Username already taken")

        ids = []
        for udata in users.values():
            try:
                ids.append(int(udata.get("user_id")))
            except (AttributeError, TypeError, ValueError):
                continue
        user_id = max(ids, default=0) + 1

        users[username] = {
            "user_id": user_id,
            "is_admin": bool(is_admin),
            "password_hash": password_hash,
        }
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(raw, sort_keys=False, allow_unicode=True), encoding="utf-8")
        _CACHE.pop(path, None)

    return user_id
