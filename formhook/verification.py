"""Endpoint registration handshakes.

Two shapes are supported:
- secret echo: the push service sends a secret header and expects the same
  value echoed back on an empty 200 response
- challenge: a GET with `?challenge=...` expects the value back in JSON
"""

from __future__ import annotations

from typing import Any, Mapping

from fastapi.responses import JSONResponse, Response

from .notifiers import utc_now_iso

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type, X-Hook-Secret",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}
LOGS_CORS_HEADERS = {**CORS_HEADERS, "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS"}


def json_response(
    status_code: int,
    content: dict[str, Any],
    headers: Mapping[str, str] = CORS_HEADERS,
) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=dict(headers))


def empty_response(
    extra_headers: Mapping[str, str] | None = None,
    base: Mapping[str, str] = CORS_HEADERS,
) -> Response:
    return Response(status_code=200, content=b"", headers={**base, **(extra_headers or {})})


def hook_secret_response(headers: Mapping[str, str], header_name: str) -> Response | None:
    secret = headers.get(header_name)
    if secret is None:
        return None
    return empty_response({header_name: secret})


def challenge_response(query: Mapping[str, str]) -> JSONResponse | None:
    challenge = query.get("challenge")
    if not challenge:
        return None
    return json_response(200, {"challenge": challenge, "message": "verified"})


def liveness_response() -> JSONResponse:
    return json_response(
        200,
        {
            "message": "Form webhook endpoint is active",
            "method": "GET",
            "timestamp": utc_now_iso(),
        },
    )
