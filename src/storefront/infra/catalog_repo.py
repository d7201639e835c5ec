# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Shops and products, stored as sheets of one Excel workbook.

Writes go through openpyxl (so manual formatting survives), reads through
pandas. All ids are positive integers assigned as max(id) + 1.
"""

from __future__ import annotations

import threading
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pandas as pd
from openpyxl import Workbook, load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from storefront.core.utils import norm_key, normalize_columns

SHOPS = "Shops"
PRODUCTS = "Products"

SHEETS: dict[str, list[str]] = {
    SHOPS: ["shop_id", "admin_id"],
    PRODUCTS: ["product_id", "shop_id", "name", "price"],
}

_LOCK = threading.RLock()


def ensure_catalog(path: Path) -> None:
    """Create the workbook (and any missing sheet) with its header row."""
    path = Path(path)
    with _LOCK:
        if path.exists():
            wb = load_workbook(path)
            missing = [s for s in SHEETS if s not in wb.sheetnames]
            if not missing:
                return
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            wb = Workbook()
            wb.remove(wb.active)
            missing = list(SHEETS)

        for sheet in missing:
            ws = wb.create_sheet(sheet)
            ws.append(SHEETS[sheet])
        wb.save(path)


def _headers(ws: Worksheet) -> dict[str, int]:
    headers: dict[str, int] = {}
    for col in range(1, ws.max_column + 1):
        v = ws.cell(row=1, column=col).value
        if v is None:
            continue
        headers[norm_key(v)] = col
    return headers


def _sheet(wb, sheet: str) -> tuple[Worksheet, dict[str, int]]:
    if sheet not in wb.sheetnames:
        raise ValueError(f"Missing sheet '{sheet}' in catalog workbook.")
    ws = wb[sheet]
    headers = _headers(ws)
    missing = [c for c in SHEETS[sheet] if c not in headers]
    if missing:
        raise ValueError(f"Sheet '{sheet}' is missing columns: {', '.join(missing)}")
    return ws, headers


def _as_int(v: object) -> Optional[int]:
    try:
        return int(str(v).strip())
    except (TypeError, ValueError):
        return None


def _ids(ws: Worksheet, col: int) -> list[tuple[int, int]]:
    """(row, id) pairs for every data row with a valid id."""
    out = []
    for row in range(2, ws.max_row + 1):
        n = _as_int(ws.cell(row=row, column=col).value)
        if n is not None:
            out.append((row, n))
    return out


def _append(path: Path, sheet: str, id_col: str, values: dict[str, object]) -> int:
    with _LOCK:
        wb = load_workbook(path)
        ws, headers = _sheet(wb, sheet)
        existing = _ids(ws, headers[id_col])
        new_id = max((n for _, n in existing), default=0) + 1
        new_row = max((r for r, _ in existing), default=1) + 1

        row = {id_col: new_id, **values}
        for key, value in row.items():
            cell = ws.cell(row=new_row, column=headers[norm_key(key)])
            cell.value = value
            if isinstance(value, str):
                # openpyxl would otherwise store "=..." as a formula
                cell.data_type = "s"
        wb.save(path)
    return new_id


def read_sheet(path: Path, sheet: str) -> pd.DataFrame:
    """Read a sheet into a normalised dataframe of strings."""
    with _LOCK:
        df = pd.read_excel(path, sheet_name=sheet, dtype=str).fillna("")
    df = normalize_columns(df)
    id_col = SHEETS[sheet][0]
    return df[df[id_col].astype(str).str.strip() != ""].reset_index(drop=True)


def read_products(path: Path) -> pd.DataFrame:
    return read_sheet(path, PRODUCTS)


def read_shops(path: Path) -> pd.DataFrame:
    return read_sheet(path, SHOPS)


def first_shop(path: Path) -> Optional[int]:
    """Lowest shop_id in the catalog, or None when there are no shops."""
    with _LOCK:
        wb = load_workbook(path)
        ws, headers = _sheet(wb, SHOPS)
        ids = [n for _, n in _ids(ws, headers["shop_id"])]
    return min(ids) if ids else None


def create_shop(path: Path, admin_id: int) -> int:
    return _append(path, SHOPS, "shop_id", {"admin_id": int(admin_id)})


def append_product(path: Path, shop_id: int, name: str, price: Decimal) -> int:
    return _append(
        path,
        PRODUCTS,
        "product_id",
        {"shop_id": int(shop_id), "name": name, "price": f"{Decimal(price):.2f}"},
    )


def delete_product(path: Path, product_id: int) -> bool:
    """Remove a product row. Returns False when no such product exists."""
    with _LOCK:
        wb = load_workbook(path)
        ws, headers = _sheet(wb, PRODUCTS)
        for row, n in _ids(ws, headers["product_id"]):
            if n == int(product_id):
                ws.delete_rows(row)
                wb.save(path)
                return True
    return False
