from __future__ import annotations

import json
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

from stealthmail.api.app import create_app
from stealthmail.api.deps import get_content_client, get_mail_client
from stealthmail.config import Settings
from stealthmail.providers.mail_client import MailTmClient
from stealthmail.providers.notion_client import NotionContentClient


PROVIDER_URL = "https://mail.provider.test"
TOKEN = "tok-123"
ACCOUNT_ID = "acc-1"


def provider_message(message_id: str = "m1", subject: str = "Welcome") -> Dict[str, Any]:
    return {
        "id": message_id,
        "from": {"address": "sender@example.com", "name": "Sender"},
        "to": [{"address": "quickfox1@mail.test", "name": ""}],
        "subject": subject,
        "intro": "Thanks for signing up",
        "text": "Thanks for signing up, here is your code.",
        "html": ["<p>Thanks for signing up</p>"],
        "createdAt": "2025-10-01T10:00:00+00:00",
        "updatedAt": "2025-10-01T10:00:00+00:00",
        "seen": False,
        "flagged": False,
        "isDeleted": False,
    }


class FakeMailTm:
    """In-memory stand-in for the mail.tm REST API, used as an httpx MockTransport handler."""

    def __init__(self, domains: Optional[List[Dict[str, Any]]] = None, messages: Optional[List[Dict[str, Any]]] = None):
        self.domains = domains if domains is not None else [
            {"id": "d1", "domain": "inactive.test", "isActive": False},
            {"id": "d2", "domain": "mail.test", "isActive": True},
        ]
        self.messages = messages if messages is not None else []
        self.calls: List[Tuple[str, str]] = []
        self.failures: Dict[Tuple[str, str], Tuple[int, Dict[str, Any]]] = {}
        self.created: List[Dict[str, Any]] = []

    def fail(self, method: str, path: str, status: int, body: Optional[Dict[str, Any]] = None) -> None:
        self.failures[(method, path)] = (status, body or {})

    def _authorized(self, request: httpx.Request) -> bool:
        return request.headers.get("Authorization") == f"Bearer {TOKEN}"

    def __call__(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        self.calls.append((method, path))

        if (method, path) in self.failures:
            status, body = self.failures[(method, path)]
            return httpx.Response(status, json=body)

        if method == "GET" and path == "/domains":
            return httpx.Response(200, json={"hydra:member": self.domains, "hydra:totalItems": len(self.domains)})
        if method == "POST" and path == "/accounts":
            body = json.loads(request.content)
            self.created.append(body)
            return httpx.Response(201, json={"id": ACCOUNT_ID, "address": body["address"]})
        if method == "POST" and path == "/token":
            return httpx.Response(200, json={"id": ACCOUNT_ID, "token": TOKEN})

        if not self._authorized(request):
            return httpx.Response(401, json={"code": 401, "message": "JWT Token not found"})

        if method == "GET" and path == "/messages":
            return httpx.Response(200, json={"hydra:member": self.messages})
        if method == "GET" and path.startswith("/messages/"):
            message_id = path.rsplit("/", 1)[-1]
            for msg in self.messages:
                if msg["id"] == message_id:
                    return httpx.Response(200, json=msg)
            return httpx.Response(404, json={"hydra:description": "Not Found"})
        if method == "GET" and path == "/me":
            return httpx.Response(200, json={"id": ACCOUNT_ID})
        if method == "DELETE" and path == f"/accounts/{ACCOUNT_ID}":
            return httpx.Response(204)
        return httpx.Response(404, json={"hydra:description": "Not Found"})


def make_settings(**overrides: Any) -> Settings:
    base = Settings(
        mail_api_base_url=PROVIDER_URL,
        mail_api_timeout=5,
        notion_token=None,
        notion_database_id=None,
        environment="development",
        allowed_origins=["http://localhost:3000"],
        rate_limit_window_seconds=900,
        rate_limit_max=100,
        create_rate_limit_window_seconds=60,
        create_rate_limit_max=10,
        host="127.0.0.1",
        port=3001,
        gateway_url="http://testserver",
    )
    return replace(base, **overrides)


def build_app(fake: FakeMailTm, settings: Optional[Settings] = None, content: Optional[NotionContentClient] = None):
    app = create_app(settings or make_settings())

    def _mail_client():
        client = MailTmClient(PROVIDER_URL, timeout=5, transport=httpx.MockTransport(fake))
        try:
            yield client
        finally:
            client.close()

    app.dependency_overrides[get_mail_client] = _mail_client
    app.dependency_overrides[get_content_client] = lambda: content or NotionContentClient(None, None)
    return app


@pytest.fixture
def fake_mailtm() -> FakeMailTm:
    return FakeMailTm()


@pytest.fixture
def mail_client(fake_mailtm: FakeMailTm):
    client = MailTmClient(PROVIDER_URL, timeout=5, transport=httpx.MockTransport(fake_mailtm))
    yield client
    client.close()


@pytest.fixture
def api(fake_mailtm: FakeMailTm) -> TestClient:
    return TestClient(build_app(fake_mailtm))
