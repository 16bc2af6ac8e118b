"""
Response emitter: the single exit point of the contact endpoint.

Bodies are exactly ``{"success": true}`` or
``{"success": false, "error": "..."}``; preflight answers are empty.
"""

from __future__ import annotations

from fastapi import Response, status
from fastapi.responses import JSONResponse

from contact_relay.models import OutcomeResponse


def emit(
    success: bool,
    error: str = "",
    status_code: int = status.HTTP_200_OK,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    outcome = OutcomeResponse(success=success, error=None if success else error)
    return JSONResponse(
        content=outcome.to_body(),
        status_code=status_code,
        headers=headers,
        media_type="application/json",
    )


def emit_preflight(headers: dict[str, str] | None = None) -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers=headers)
