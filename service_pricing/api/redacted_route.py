"""
Redacted Route — the response-shaping stage for worker callers.

Routers built with ``route_class=RedactedRoute`` run every fully rendered
JSON response through the FieldRedactor when the caller's role is the
configured redacted role. Handlers stay unaware of it.

Fail-closed: if redaction raises, the original body is dropped and a generic
500 is returned instead.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Coroutine

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from service_pricing.access.gate import resolve_caller
from service_pricing.access.redaction import FieldRedactor
from service_pricing.config import get_settings

logger = logging.getLogger(__name__)

WITHHELD_MESSAGE = "Response could not be prepared"

_DROPPED_HEADERS = {"content-length", "content-type"}


def _is_json(response: Response) -> bool:
    return (response.media_type or response.headers.get("content-type", "")).startswith("application/json")


def redact_response(response: Response, redactor: FieldRedactor) -> Response:
    """Re-render ``response`` with redacted fields removed."""
    if not _is_json(response):
        return response
    try:
        payload = json.loads(response.body) if response.body else None
        redacted = redactor.redact(payload)
    except Exception:
        logger.exception("Redaction failed; response withheld")
        return JSONResponse(status_code=500, content={"success": False, "message": WITHHELD_MESSAGE})

    headers = {k: v for k, v in response.headers.items() if k.lower() not in _DROPPED_HEADERS}
    return JSONResponse(
        content=redacted,
        status_code=response.status_code,
        headers=headers,
        background=response.background,
    )


class RedactedRoute(APIRoute):

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        original_handler = super().get_route_handler()

        async def redacting_handler(request: Request) -> Response:
            response = await original_handler(request)
            caller = resolve_caller(request)
            redactor = FieldRedactor(redacted_role=get_settings().redacted_role)
            if caller is None or not redactor.applies_to(caller.role):
                return response
            return redact_response(response, redactor)

        return redacting_handler
