from __future__ import annotations

from typing import Iterator, Optional

from fastapi import Depends, Header, Request

from stealthmail.api.errors import RateLimitExceeded
from stealthmail.config import Settings
from stealthmail.providers.mail_client import MailTmClient
from stealthmail.providers.notion_client import NotionContentClient


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_mail_client(settings: Settings = Depends(get_settings)) -> Iterator[MailTmClient]:
    client = MailTmClient(settings.mail_api_base_url, timeout=settings.mail_api_timeout)
    try:
        yield client
    finally:
        client.close()


def get_content_client(settings: Settings = Depends(get_settings)) -> NotionContentClient:
    return NotionContentClient(settings.notion_token, settings.notion_database_id)


def bearer_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    if not authorization:
        return None
    token = authorization.strip()
    if token.lower().startswith("bearer "):
        token = token[7:].strip()
    return token or None


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def enforce_create_limit(request: Request) -> None:
    retry_after = request.app.state.create_limiter.hit(client_key(request))
    if retry_after is not None:
        raise RateLimitExceeded("Too many email creation attempts, please try again later.", retry_after)
