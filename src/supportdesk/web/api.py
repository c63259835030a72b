"""REST API routes: the three pipeline triggers plus dashboard reads."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from supportdesk import handlers
from supportdesk.gateway import AlreadySentError, NotFoundError
from supportdesk.handlers import HandlerContext
from supportdesk.schema import to_utc_iso

logger = logging.getLogger(__name__)

router = APIRouter(tags=["api"])


class FetchEmailsRequest(BaseModel):
    user_id: str


class ProcessEmailRequest(BaseModel):
    sender_email: str
    subject: str
    body: str
    user_id: str
    received_at: datetime | None = None


class SendResponseRequest(BaseModel):
    response_id: str
    final_response: str
    recipient_email: str


class EditResponseRequest(BaseModel):
    edited_response: str


def get_context(request: Request) -> HandlerContext:
    return request.app.state.context


def _error(exc: Exception) -> JSONResponse:
    if isinstance(exc, NotFoundError):
        return JSONResponse({"error": str(exc)}, status_code=404)
    if isinstance(exc, AlreadySentError):
        return JSONResponse({"error": str(exc)}, status_code=409)
    logger.exception("Request failed")
    return JSONResponse({"error": str(exc) or type(exc).__name__}, status_code=500)


@router.post("/fetch-emails")
def fetch_emails(body: FetchEmailsRequest, request: Request):
    """Ingest unread mail for a user and run it through the pipeline."""
    try:
        return handlers.handle_fetch_emails(get_context(request), body.user_id)
    except Exception as e:
        return _error(e)


@router.post("/process-email")
def process_email(body: ProcessEmailRequest, request: Request):
    """Classify, store and draft a reply for a single submitted email."""
    try:
        result = handlers.handle_process_email(
            get_context(request),
            sender_email=body.sender_email,
            subject=body.subject,
            body=body.body,
            user_id=body.user_id,
            received_at=to_utc_iso(body.received_at) if body.received_at else None,
        )
        return result.to_dict()
    except Exception as e:
        return _error(e)


@router.post("/send-response")
def send_response(body: SendResponseRequest, request: Request):
    """Send the final reply and mark the response sent."""
    try:
        return handlers.handle_send_response(
            get_context(request),
            response_id=body.response_id,
            final_response=body.final_response,
            recipient_email=body.recipient_email,
        )
    except Exception as e:
        return _error(e)


@router.get("/emails")
def list_emails(user_id: str, request: Request, limit: int | None = None):
    try:
        return handlers.list_emails(get_context(request), user_id, limit=limit)
    except Exception as e:
        return _error(e)


@router.get("/responses")
def list_responses(user_id: str, request: Request):
    try:
        return handlers.list_responses(get_context(request), user_id)
    except Exception as e:
        return _error(e)


@router.patch("/responses/{response_id}")
def edit_response(response_id: str, body: EditResponseRequest, request: Request):
    """Replace the draft text of an unsent response."""
    try:
        return handlers.edit_response(get_context(request), response_id, body.edited_response)
    except Exception as e:
        return _error(e)


@router.get("/analytics")
def get_analytics(user_id: str, request: Request, days: int = 7):
    try:
        return handlers.analytics_summary(get_context(request), user_id, days=days)
    except Exception as e:
        return _error(e)


@router.get("/health")
def health(request: Request):
    ctx = get_context(request)
    return {"status": "ok", "model": ctx.model}
