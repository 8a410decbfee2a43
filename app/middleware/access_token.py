"""Echo a freshly issued access token back to the client.

Login and every authenticated request issue a new token (sliding session).
When one was issued during the request it is copied into the
``X-Access-Token`` response header so clients can replace their cached token
without reading the response body.
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware

from app.packages.ivr.core.security import consume_refreshed_token


class AccessTokenHeaderMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):  # pragma: no cover - framework glue
        response = await call_next(request)
        token = consume_refreshed_token()
        if token:
            response.headers["X-Access-Token"] = token
        return response
