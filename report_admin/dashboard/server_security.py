"""Security and CSRF helpers for dashboard server."""

from __future__ import annotations

import base64
import binascii
import secrets

from aiohttp import web

from .server_helpers import CSRF_COOKIE_NAME

_AUTH_HEADERS = {"WWW-Authenticate": 'Basic realm="Report Admin"'}


class DashboardServerSecurityMixin:
    """Auth + CSRF helpers."""

    @web.middleware
    async def _admin_auth_middleware(self, request: web.Request, handler):  # type: ignore[override]
        path = request.path or ""
        if not path.startswith("/admin"):
            return await handler(request)

        if not self.config.admin_password:
            raise web.HTTPForbidden(text="Admin dashboard not configured (set DASHBOARD_ADMIN_PASSWORD).")

        auth = request.headers.get("Authorization", "")
        if not auth.startswith("Basic "):
            raise web.HTTPUnauthorized(headers=_AUTH_HEADERS, text="Authentication required.")

        try:
            raw = base64.b64decode(auth.split(" ", 1)[1]).decode("utf-8")
            user, password = raw.split(":", 1)
        except (binascii.Error, UnicodeDecodeError, ValueError):
            raise web.HTTPUnauthorized(headers=_AUTH_HEADERS, text="Invalid Authorization header.")

        if not (
            secrets.compare_digest(user, self.config.admin_user)
            and secrets.compare_digest(password, self.config.admin_password)
        ):
            raise web.HTTPUnauthorized(headers=_AUTH_HEADERS, text="Invalid credentials.")

        return await handler(request)

    def _get_or_set_csrf(self, request: web.Request, response: web.StreamResponse) -> str:
        token = (request.cookies.get(CSRF_COOKIE_NAME) or "").strip()
        if not token:
            token = secrets.token_urlsafe(32)
            response.set_cookie(
                CSRF_COOKIE_NAME,
                token,
                path="/admin",
                httponly=True,
                samesite="Strict",
                secure=(request.url.scheme == "https"),
            )
        return token

    async def _require_csrf(self, request: web.Request):
        cookie = (request.cookies.get(CSRF_COOKIE_NAME) or "").strip()
        data = await request.post()
        sent = (data.get("csrf") or "").strip()
        if not cookie or not sent or sent != cookie:
            raise web.HTTPForbidden(text="CSRF check failed.")
        return data

    def _require_csrf_header(self, request: web.Request) -> None:
        cookie = (request.cookies.get(CSRF_COOKIE_NAME) or "").strip()
        sent = (request.headers.get("X-CSRF-Token") or "").strip()
        if not cookie or not sent or sent != cookie:
            raise web.HTTPForbidden(text="CSRF check failed.")

    async def _read_json(self, request: web.Request, *, allow_empty: bool = False) -> dict:
        if allow_empty:
            if not request.can_read_body or request.content_length in (None, 0):
                return {}
        try:
            data = await request.json()
        except ValueError:
            raise web.HTTPBadRequest(text="Invalid JSON payload")
        if not isinstance(data, dict):
            raise web.HTTPBadRequest(text="Invalid JSON payload")
        return data
