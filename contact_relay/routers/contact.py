"""
Contact form endpoint.

Registered for every common method so that the request gate decides what
happens: OPTIONS is a preflight (204), anything but POST is a 405, and a
POST runs the full pipeline.  Failures are raised as ContactError and
rendered by the handler installed in ``contact_relay.main``.
"""

from fastapi import APIRouter, Request

from contact_relay.cors import cors_headers, is_preflight, require_post
from contact_relay.dependencies import AppSettings, ClientIP, Pipeline
from contact_relay.responses import emit, emit_preflight

router = APIRouter(prefix="/api", tags=["contact"])

CONTACT_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.api_route(
    "/contact",
    methods=CONTACT_METHODS,
    operation_id="submitContact",
    summary="Relay a contact-form submission by email",
)
async def submit_contact(
    request: Request,
    settings: AppSettings,
    pipeline: Pipeline,
    client_ip: ClientIP,
):
    headers = cors_headers(request.headers.get("origin"), settings)

    if is_preflight(request.method):
        return emit_preflight(headers)
    require_post(request.method)

    form = await request.form()
    await pipeline.submit(form, client_ip)
    return emit(True, headers=headers)
