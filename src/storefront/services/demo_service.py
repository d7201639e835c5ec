# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Demo accounts shown on the login page, and sample data seeding."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict

from storefront.auth.passwords import hash_password
from storefront.infra import catalog_repo
from storefront.infra.users_repo import get_user, insert_user
from storefront.settings import DemoAccount, Settings

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS = [
    ("Handmade Ceramic Mug", "24.99"),
    ("Leather Journal", "34.50"),
    ("Scented Candle Set", "18.00"),
    ("Wooden Cutting Board", "42.00"),
    ("Knitted Wool Scarf", "28.75"),
    ("Artisan Soap Collection", "15.99"),
    ("Hand-painted Greeting Cards", "12.50"),
    ("Macrame Plant Hanger", "22.00"),
]


def demo_accounts(settings: Settings) -> Dict[str, DemoAccount]:
    accounts: Dict[str, DemoAccount] = {}
    if settings.demo_admin:
        accounts["admin"] = settings.demo_admin
    if settings.demo_customer:
        accounts["customer"] = settings.demo_customer
    return accounts


def _ensure_user(settings: Settings, account: DemoAccount, *, is_admin: bool) -> int:
    existing = get_user(settings.users_path, account.username)
    if existing:
        logger.info("User %r already exists, skipping", account.username)
        return existing.user_id
    user_id = insert_user(settings.users_path, account.username, hash_password(account.password), is_admin=is_admin)
    logger.info("Created %s user %r", "admin" if is_admin else "customer", account.username)
    return user_id


def seed_demo_data(settings: Settings) -> None:
    """Create the demo users, one shop and the sample products.

    Falls back to admin/admin123 and customer/customer123 when the demo
    accounts are not configured.
    """
    admin = settings.demo_admin or DemoAccount("admin", "admin123")
    customer = settings.demo_customer or DemoAccount("customer", "customer123")

    admin_id = _ensure_user(settings, admin, is_admin=True)
    _ensure_user(settings, customer, is_admin=False)

    path = settings.catalog_path
    catalog_repo.ensure_catalog(path)
    shop_id = catalog_repo.first_shop(path)
    if shop_id is None:
        shop_id = catalog_repo.create_shop(path, admin_id)
        logger.info("Created shop %s", shop_id)

    if not catalog_repo.read_products(path).empty:
        logger.info("Catalog already has products, skipping samples")
        return
    for name, price in SAMPLE_PRODUCTS:
        catalog_repo.append_product(path, shop_id, name, Decimal(price))
    logger.info("Added %d sample products", len(SAMPLE_PRODUCTS))
