# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from storefront.auth import cookies
from storefront.auth.session import Identity, SessionCodec
from storefront.core.utils import df_to_csv_stream
from storefront.forms import (
    INTENT_ADD_PRODUCT,
    INTENT_BUY,
    INTENT_LOGOUT,
    AddProductCommand,
    BuyCommand,
    LoginCommand,
    SignupCommand,
    parse_form,
)
from storefront.infra import catalog_repo
from storefront.permissions import (
    LOGIN_PATH,
    AuthGate,
    Role,
    check_authenticated,
    check_role,
    current_user_optional,
    landing_for,
    redirect_response,
)
from storefront.services import auth_service, catalog_service
from storefront.services.demo_service import demo_accounts
from storefront.settings import Settings, load_settings

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

router = APIRouter()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application. Without a signing secret this raises before any route exists."""
    settings = settings or load_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    catalog_repo.ensure_catalog(settings.catalog_path)

    codec = SessionCodec(settings.secret_key)

    app = FastAPI(title="Storefront")
    app.state.settings = settings
    app.state.codec = codec
    app.state.gate = AuthGate(codec)

    @app.middleware("http")
    async def _auth_middleware(request: Request, call_next):
        request.state.user = current_user_optional(request)
        return await call_next(request)

    app.include_router(router)
    logger.info("Storefront ready (data dir %s)", settings.data_dir)
    return app


def _settings(request: Request) -> Settings:
    return request.app.state.settings


def _render(request: Request, template_name: str, ctx: dict):
    """TemplateResponse wrapper injecting the current user."""
    base_ctx = {"current_user": getattr(request.state, "user", None)}
    return templates.TemplateResponse(request, template_name, {**base_ctx, **(ctx or {})})


def _with_session(request: Request, url: str, token: str) -> RedirectResponse:
    resp = RedirectResponse(url=url, status_code=303)
    resp.headers.append("set-cookie", cookies.encode(token, secure=_settings(request).cookie_secure))
    return resp


def _logout(request: Request, user: Optional[Identity]) -> RedirectResponse:
    if user:
        logger.info("Logout %r", user.username)
    resp = RedirectResponse(url=LOGIN_PATH, status_code=303)
    resp.headers.append("set-cookie", cookies.clear(secure=_settings(request).cookie_secure))
    return resp


def _products(request: Request) -> list[dict]:
    return catalog_service.list_products(_settings(request).catalog_path).to_dict(orient="records")


# ------------------ Routes ------------------


@router.get("/")
def index(request: Request):
    user = current_user_optional(request)
    if user:
        return RedirectResponse(url=landing_for(user), status_code=303)
    return RedirectResponse(url=LOGIN_PATH, status_code=303)


@router.get("/login", response_class=HTMLResponse)
def login_get(request: Request):
    if current_user_optional(request):
        return RedirectResponse(url="/products", status_code=303)
    return _render(request, "login.html", {"demo_accounts": demo_accounts(_settings(request)), "error": ""})


@router.post("/login")
async def login_post(request: Request):
    form = await request.form()
    try:
        cmd = parse_form(LoginCommand, form)
        identity, token = auth_service.login(_settings(request).users_path, cmd, request.app.state.codec)
    except ValueError as e:
        return _render(
            request,
            "login.html",
            {
                "demo_accounts": demo_accounts(_settings(request)),
                "error": str(e),
                "username": str(form.get("username") or ""),
            },
        )
    return _with_session(request, landing_for(identity), token)


@router.get("/signup", response_class=HTMLResponse)
def signup_get(request: Request):
    if current_user_optional(request):
        return RedirectResponse(url="/products", status_code=303)
    return _render(request, "signup.html", {"error": ""})


@router.post("/signup")
async def signup_post(request: Request):
    form = await request.form()
    try:
        cmd = parse_form(SignupCommand, form)
        identity, token = auth_service.signup(_settings(request).users_path, cmd, request.app.state.codec)
    except ValueError as e:
        return _render(request, "signup.html", {"error": str(e), "username": str(form.get("username") or "")})
    return _with_session(request, landing_for(identity), token)


@router.post("/logout")
def logout_post(request: Request):
    return _logout(request, current_user_optional(request))


@router.get("/products", response_class=HTMLResponse)
def products_get(request: Request):
    outcome = check_authenticated(request)
    if not outcome.ok:
        return redirect_response(outcome)
    return _render(request, "products.html", {"user": outcome.identity, "products": _products(request), "error": ""})


@router.post("/products")
async def products_post(request: Request):
    outcome = check_authenticated(request)
    if not outcome.ok:
        return redirect_response(outcome)
    user = outcome.identity

    form = await request.form()
    intent = form.get("intent")

    if intent == INTENT_LOGOUT:
        return _logout(request, user)

    error = ""
    if intent == INTENT_BUY:
        try:
            cmd = parse_form(BuyCommand, form)
            catalog_service.buy(_settings(request).catalog_path, user, cmd)
            return RedirectResponse(url="/products", status_code=303)
        except ValueError as e:
            error = str(e)

    return _render(request, "products.html", {"user": user, "products": _products(request), "error": error})


def _admin_page(request: Request, user: Identity, *, error: str = "", success: str = ""):
    path = _settings(request).catalog_path
    return _render(
        request,
        "admin.html",
        {
            "user": user,
            "products": _products(request),
            "shops": catalog_service.list_shops(path).to_dict(orient="records"),
            "error": error,
            "success": success,
        },
    )


@router.get("/admin", response_class=HTMLResponse)
def admin_get(request: Request):
    outcome = check_role(request, Role.ADMIN)
    if not outcome.ok:
        return redirect_response(outcome)
    return _admin_page(request, outcome.identity)


@router.post("/admin")
async def admin_post(request: Request):
    outcome = check_role(request, Role.ADMIN)
    if not outcome.ok:
        return redirect_response(outcome)
    user = outcome.identity

    form = await request.form()
    intent = form.get("intent")

    if intent == INTENT_LOGOUT:
        return _logout(request, user)

    if intent == INTENT_ADD_PRODUCT:
        try:
            cmd = parse_form(AddProductCommand, form)
            catalog_service.add_product(_settings(request).catalog_path, user, cmd)
        except ValueError as e:
            return _admin_page(request, user, error=str(e))
        return _admin_page(request, user, success="Product added successfully!")

    return _admin_page(request, user)


@router.get("/admin/products.csv")
def export_products(request: Request):
    outcome = check_role(request, Role.ADMIN)
    if not outcome.ok:
        return redirect_response(outcome)
    df = catalog_service.list_products(_settings(request).catalog_path)
    return df_to_csv_stream(df, "products.csv")
