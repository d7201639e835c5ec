#!/usr/bin/env python3
"""Seed demo users, a shop and sample products into the data dir."""
from __future__ import annotations

import logging

from storefront.services.demo_service import seed_demo_data
from storefront.settings import load_settings


def main() -> None:
    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(message)s")
    seed_demo_data(settings)
    print(f"OK -> {settings.data_dir}")


if __name__ == "__main__":
    main()
