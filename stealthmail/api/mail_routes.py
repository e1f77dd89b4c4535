from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel

from stealthmail.api.deps import bearer_token, enforce_create_limit, get_mail_client
from stealthmail.api.errors import GatewayError
from stealthmail.models.results import ErrorKind
from stealthmail.providers.mail_client import MailTmClient


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/mail", tags=["mail"])


class DeleteMailboxRequest(BaseModel):
    email: Optional[str] = None


def _require(value: Optional[str], message: str) -> str:
    if not value or not value.strip():
        raise GatewayError(ErrorKind.INPUT, message)
    return value.strip()


@router.post("/create", status_code=201, dependencies=[Depends(enforce_create_limit)])
def create_mailbox(client: MailTmClient = Depends(get_mail_client)):
    """Create a new temporary email address."""
    result = client.create_account()
    if not result.success:
        raise GatewayError.from_result(result, "Failed to create temporary email")

    mailbox = result.data
    logger.info("Mailbox created: %s", mailbox.address)
    return {
        "success": True,
        "email": mailbox.address,
        "id": mailbox.external_id,
        "token": mailbox.auth_token,
        "createdAt": mailbox.created_at.isoformat(),
        "expiresAt": mailbox.expires_at.isoformat(),
        "message": "Temporary email created successfully",
    }


@router.get("/inbox")
def list_inbox(
    email: Optional[str] = Query(default=None),
    token: Optional[str] = Depends(bearer_token),
    client: MailTmClient = Depends(get_mail_client),
):
    """Get inbox messages for a temporary email."""
    email = _require(email, "Email address is required")
    logger.info("Fetching inbox for %s (token: %s)", email, "yes" if token else "no")

    result = client.list_messages(email, token)
    if not result.success:
        raise GatewayError.from_result(result, "Failed to fetch messages")

    return {
        "success": True,
        "messages": [m.to_wire() for m in result.data],
        "total": len(result.data),
        "email": email,
    }


@router.get("/message/{message_id}")
def get_message(
    message_id: str,
    token: Optional[str] = Depends(bearer_token),
    client: MailTmClient = Depends(get_mail_client),
):
    """Get a specific message by ID."""
    message_id = _require(message_id, "Message ID is required")
    result = client.get_message(message_id, token)
    if not result.success:
        raise GatewayError.from_result(result, "Failed to fetch message")
    return {"success": True, "message": result.data.to_wire()}


@router.delete("/delete")
def delete_mailbox(
    body: Optional[DeleteMailboxRequest] = Body(default=None),
    token: Optional[str] = Depends(bearer_token),
    client: MailTmClient = Depends(get_mail_client),
):
    """Delete a temporary email address."""
    email = _require(body.email if body else None, "Email address is required")
    result = client.delete_account(email, token)
    if not result.success:
        raise GatewayError.from_result(result, "Failed to delete email")
    return {"success": True, "message": "Email deleted successfully"}


@router.get("/domains")
def list_domains(client: MailTmClient = Depends(get_mail_client)):
    """Get available email domains."""
    result = client.get_domains()
    if not result.success:
        raise GatewayError.from_result(result, "Failed to fetch domains")
    return {
        "success": True,
        "domains": [d.model_dump(by_alias=True) for d in result.data],
    }
