"""
Auth Routes: users and auto-login links.

- POST /api/auto-login          {user_id} → login link
- POST /api/auto-login/redeem   {token} → user
- POST /api/auth/register       {email, password, name?, role?}
- POST /api/auth/login          {email, password}
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from src.app.dependencies import error_response, get_config, get_store
from src.app.services.auth import AuthService
from src.domain.errors import ServiceError

logger = logging.getLogger(__name__)

api_router = APIRouter()


def build_auth_service(request: Request) -> AuthService:
    return AuthService(
        store=get_store(request),
        config=get_config(request),
        clock=getattr(request.app.state, "clock", None),
    )


# =============================================================================
# Auto-login
# =============================================================================


@api_router.post("/auto-login", response_model=None)
async def create_auto_login(
    request: Request,
    payload: dict[str, Any] | None = Body(None),
) -> dict[str, Any] | JSONResponse:
    """
    Issue a single-use login link.

    Errors:
        400 user_id missing; 401 unknown user
    """
    try:
        return build_auth_service(request).issue_login_token((payload or {}).get("user_id"))
    except ServiceError as e:
        return error_response(e)


@api_router.api_route(
    "/auto-login",
    methods=["GET", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def auto_login_method_not_allowed() -> JSONResponse:
    return JSONResponse(status_code=405, content={"error": "Method not allowed"})


@api_router.post("/auto-login/redeem", response_model=None)
async def redeem_auto_login(
    request: Request,
    payload: dict[str, Any] | None = Body(None),
) -> dict[str, Any] | JSONResponse:
    """
    Exchange a login token for its user.

    Errors:
        400 token missing; 401 invalid/used/expired; 404 user gone
    """
    try:
        user = build_auth_service(request).redeem_login_token((payload or {}).get("token"))
    except ServiceError as e:
        return error_response(e)

    return {"user": user}


# =============================================================================
# Users
# =============================================================================


@api_router.post("/auth/register", status_code=201, response_model=None)
async def register(
    request: Request,
    payload: dict[str, Any] | None = Body(None),
) -> dict[str, Any] | JSONResponse:
    """
    Errors:
        400 email/password missing; 409 duplicate email
    """
    body = payload or {}
    try:
        user = build_auth_service(request).register(
            body.get("email"),
            body.get("password"),
            name=body.get("name"),
            role=body.get("role"),
        )
    except ServiceError as e:
        return error_response(e)

    return {"user": user}


@api_router.post("/auth/login", response_model=None)
async def login(
    request: Request,
    payload: dict[str, Any] | None = Body(None),
) -> dict[str, Any] | JSONResponse:
    body = payload or {}
    try:
        user = build_auth_service(request).login(body.get("email"), body.get("password"))
    except ServiceError as e:
        return error_response(e)

    return {"user": user}
