"""
api/routes/contact.py -- Contact form endpoints.

Routes:
  POST   /api/contact        -- public; store a message; 201
  GET    /api/contact        -- admin; list messages, newest first
  DELETE /api/contact/{id}   -- admin; 204, or 404 if unknown
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.models import (
    ContactCreate,
    ContactCreatedResponse,
    ContactListResponse,
    ContactMessageResponse,
    ErrorDetail,
)
from auth.dependencies import require_admin
from auth.models import User
from contact.store import ContactStore

logger = logging.getLogger("lrm2e.api")

router = APIRouter()


@router.post("/contact", response_model=ContactCreatedResponse, status_code=201)
def create_message(request: Request, body: ContactCreate) -> ContactCreatedResponse:
    """Store a message from the public contact form."""
    store: ContactStore = request.app.state.contact
    saved = store.create_message(body.to_message())
    logger.info("Contact message id=%s received", saved.id)
    return ContactCreatedResponse(data=ContactMessageResponse.from_message(saved))


@router.get("/contact", response_model=ContactListResponse)
def list_messages(request: Request, current_user: User = Depends(require_admin)) -> ContactListResponse:
    """List contact messages. Admin only."""
    store: ContactStore = request.app.state.contact
    return ContactListResponse(data=[ContactMessageResponse.from_message(m) for m in store.list_messages()])


@router.delete("/contact/{message_id}", status_code=204)
def delete_message(
    request: Request,
    message_id: int,
    current_user: User = Depends(require_admin),
) -> Response:
    """Delete a contact message. Admin only."""
    store: ContactStore = request.app.state.contact
    if not store.delete_message(message_id):
        raise HTTPException(
            status_code=404,
            detail=ErrorDetail(code="not_found", message="Message not found.").model_dump(),
        )
    return Response(status_code=204)
