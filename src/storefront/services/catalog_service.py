# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from storefront.auth.session import Identity
from storefront.forms import AddProductCommand, BuyCommand
from storefront.infra import catalog_repo

logger = logging.getLogger(__name__)


class UnknownProduct(ValueError):
    """The product does not exist (or was already bought)."""


def list_products(path: Path) -> pd.DataFrame:
    catalog_repo.ensure_catalog(path)
    return catalog_repo.read_products(path)


def list_shops(path: Path) -> pd.DataFrame:
    catalog_repo.ensure_catalog(path)
    return catalog_repo.read_shops(path)


def add_product(path: Path, admin: Identity, cmd: AddProductCommand) -> int:
    """Insert a product into the first shop, creating a shop owned by ``admin`` if none exists."""
    catalog_repo.ensure_catalog(path)
    shop_id = catalog_repo.first_shop(path)
    if shop_id is None:
        shop_id = catalog_repo.create_shop(path, admin.user_id)
        logger.info("Created shop %s for admin %r", shop_id, admin.username)
    product_id = catalog_repo.append_product(path, shop_id, cmd.name, cmd.price)
    logger.info("Product %s (%r, %s) added by %r", product_id, cmd.name, cmd.price, admin.username)
    return product_id


def buy(path: Path, buyer: Identity, cmd: BuyCommand) -> None:
    """Buying removes the listing; there is no payment step."""
    catalog_repo.ensure_catalog(path)
    if not catalog_repo.delete_product(path, cmd.product_id):
        raise UnknownProduct("Unknown product")
    logger.info("Product %s bought by %r", cmd.product_id, buyer.username)
