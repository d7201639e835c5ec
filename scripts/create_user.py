#!/usr/bin/env python3
from __future__ import annotations

from getpass import getpass

from storefront.auth.passwords import hash_password
from storefront.infra.users_repo import UsernameTaken, insert_user
from storefront.settings import load_settings


def main() -> None:
    settings = load_settings()

    username = input("Username: ").strip()
    admin_in = input("Administrator? [y/N]: ").strip().lower()
    is_admin = admin_in in {"y", "yes"}

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")
    if len(pw1) < 6:
        raise SystemExit("Password must be at least 6 characters")

    try:
        user_id = insert_user(settings.users_path, username, hash_password(pw1), is_admin=is_admin)
    except UsernameTaken as e:
        raise SystemExit(str(e))
    print(f"OK -> {settings.users_path} (user_id={user_id})")


if __name__ == "__main__":
    main()
