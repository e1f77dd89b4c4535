from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from stealthmail.models.mail_models import Mailbox, Message
from stealthmail.utils.dates import parse_iso

logger = logging.getLogger(__name__)


class GatewayError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GatewayClient:
    """Async HTTP client for the Stealth Mail gateway's mail routes."""

    def __init__(self, base_url: str, timeout: float = 30, transport: httpx.AsyncBaseTransport | None = None):
        """
        Initialize gateway client.

        Args:
            base_url: Root URL of the gateway (e.g., http://localhost:3001)
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used by tests to route into an in-process app
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def _call(self, method: str, path: str, token: Optional[str] = None, **kwargs: Any) -> Dict[str, Any]:
        """Call a gateway route and unwrap its envelope."""
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            response = await self.client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Gateway HTTP error: %s", e)
            raise GatewayError(str(e)) from e
        try:
            data = response.json()
        except ValueError as e:
            raise GatewayError(f"Gateway returned invalid JSON ({response.status_code})", response.status_code) from e
        if response.status_code >= 400 or not data.get("success", False):
            raise GatewayError(data.get("error") or f"Gateway error {response.status_code}", response.status_code)
        return data

    async def create_mailbox(self) -> Mailbox:
        data = await self._call("POST", "/api/mail/create")
        return Mailbox(
            address=data["email"],
            external_id=data.get("id"),
            auth_token=data.get("token") or None,
            created_at=parse_iso(data["createdAt"]),
            expires_at=parse_iso(data["expiresAt"]),
        )

    async def fetch_inbox(self, email: str, token: Optional[str]) -> List[Message]:
        data = await self._call("GET", "/api/mail/inbox", token=token, params={"email": email})
        return [Message(**m) for m in data.get("messages", [])]

    async def get_message(self, message_id: str, token: Optional[str]) -> Message:
        data = await self._call("GET", f"/api/mail/message/{message_id}", token=token)
        return Message(**data["message"])

    async def delete_mailbox(self, email: str, token: Optional[str]) -> None:
        await self._call("DELETE", "/api/mail/delete", token=token, json={"email": email})

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
