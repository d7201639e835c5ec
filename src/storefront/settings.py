# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Process configuration, read once from the environment at startup."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

_TRUTHY = {"1", "true", "yes", "y"}


@dataclass(frozen=True)
class DemoAccount:
    username: str
    password: str


@dataclass(frozen=True)
class Settings:
    secret_key: str
    data_dir: Path = Path("data")
    cookie_secure: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    demo_admin: Optional[DemoAccount] = None
    demo_customer: Optional[DemoAccount] = None

    @property
    def users_path(self) -> Path:
        return self.data_dir / "users.yml"

    @property
    def catalog_path(self) -> Path:
        return self.data_dir / "catalog.xlsx"


def _flag(value: Optional[str]) -> bool:
    return (value or "false").strip().lower() in _TRUTHY


def _demo(env: Mapping[str, str], prefix: str) -> Optional[DemoAccount]:
    username = (env.get(f"{prefix}_USERNAME") or "").strip()
    password = env.get(f"{prefix}_PASSWORD") or ""
    if username and password:
        return DemoAccount(username=username, password=password)
    return None


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment; a missing secret is fatal."""
    env = os.environ if env is None else env
    secret = env.get("STOREFRONT_SECRET_KEY") or env.get("SECRET_KEY")
    if not secret:
        raise RuntimeError("Missing STOREFRONT_SECRET_KEY (or SECRET_KEY) in environment")

    return Settings(
        secret_key=secret,
        data_dir=Path(env.get("STOREFRONT_DATA_DIR", "data")).resolve(),
        cookie_secure=_flag(env.get("STOREFRONT_COOKIE_SECURE")),
        log_level=(env.get("STOREFRONT_LOG_LEVEL") or "INFO").upper(),
        host=env.get("STOREFRONT_HOST", "0.0.0.0"),
        port=int(env.get("STOREFRONT_PORT", "8000")),
        reload=_flag(env.get("STOREFRONT_RELOAD")),
        demo_admin=_demo(env, "DEMO_ADMIN"),
        demo_customer=_demo(env, "DEMO_CUSTOMER"),
    )
