# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Typed commands built from submitted HTML forms.

Every POST body goes through ``parse_form`` before any service runs; a
rejected form surfaces as ``InvalidInput`` with a user-facing message.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any, ClassVar, Dict, Mapping, Type, TypeVar

from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError, field_validator

INTENT_LOGOUT = "logout"
INTENT_BUY = "buy"
INTENT_ADD_PRODUCT = "add-product"

_CENT = Decimal("0.01")
# decimal(10,2)
_MAX_PRICE = Decimal("100000000")


class InvalidInput(ValueError):
    """A submitted form failed validation."""


class _Command(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    required_message: ClassVar[str] = "All fields are required"
    # field name -> message shown when that field is rejected
    messages: ClassVar[Dict[str, str]] = {}


class SignupCommand(_Command):
    username: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=255)]
    password: str = Field(min_length=6)

    required_message: ClassVar[str] = "Username and password are required"
    messages: ClassVar[Dict[str, str]] = {
        "username": "Username must be at least 3 characters",
        "password": "Password must be at least 6 characters",
    }


class LoginCommand(_Command):
    username: Annotated[str, StringConstraints(strip_whitespace=True)]
    password: str

    required_message: ClassVar[str] = "Username and password are required"


class AddProductCommand(_Command):
    name: Annotated[str, StringConstraints(strip_whitespace=True, max_length=255)]
    price: Decimal = Field(gt=0, max_digits=10)

    required_message: ClassVar[str] = "Product name and price are required"
    messages: ClassVar[Dict[str, str]] = {
        "name": "Product name must be at most 255 characters",
        "price": "Price must be a positive number",
    }

    @field_validator("name")
    @classmethod
    def _printable(cls, v: str) -> str:
        if ILLEGAL_CHARACTERS_RE.search(v):
            raise ValueError("Product name contains invalid characters")
        return v

    @field_validator("price")
    @classmethod
    def _two_places(cls, v: Decimal) -> Decimal:
        v = v.quantize(_CENT)
        if v <= 0 or v >= _MAX_PRICE:
            raise ValueError("Price must be a positive number")
        return v


class BuyCommand(_Command):
    product_id: int = Field(gt=0)

    required_message: ClassVar[str] = "Unknown product"
    messages: ClassVar[Dict[str, str]] = {"product_id": "Unknown product"}


C = TypeVar("C", bound=_Command)


def _blank(field: str, value: Any) -> bool:
    if value is None:
        return True
    if not isinstance(value, str):
        return False
    # Passwords are taken verbatim; whitespace counts.
    return value == "" if field == "password" else not value.strip()


def parse_form(model: Type[C], form: Mapping[str, Any]) -> C:
    """Validate a form mapping into ``model`` or raise InvalidInput."""
    data = {name: form.get(name) for name in model.model_fields}
    if any(_blank(k, v) for k, v in data.items()):
        raise InvalidInput(model.required_message)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        if first.get("type") == "value_error":
            raise InvalidInput(str(first["ctx"]["error"])) from e
        loc = first.get("loc") or ("",)
        raise InvalidInput(model.messages.get(str(loc[0]), "Invalid input")) from e
