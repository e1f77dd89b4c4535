from __future__ import annotations

import logging
import secrets
import string
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from stealthmail.models.mail_models import Domain, Mailbox, Message
from stealthmail.models.results import Err, ErrorKind, Ok, Result


logger = logging.getLogger(__name__)


ADJECTIVES = ["quick", "lazy", "jumpy", "silent", "bright", "dark", "fast", "slow"]
NOUNS = ["fox", "cat", "dog", "bird", "fish", "bear", "wolf", "lion"]
PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*"


def generate_username() -> str:
    adjective = secrets.choice(ADJECTIVES)
    noun = secrets.choice(NOUNS)
    return f"{adjective}{noun}{secrets.randbelow(1000)}"


def generate_password(length: int = 12) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def _collection(payload: Any) -> List[Dict[str, Any]]:
    """mail.tm answers with a hydra collection, older mirrors with a bare list."""
    if isinstance(payload, dict):
        members = payload.get("hydra:member")
        return members if isinstance(members, list) else []
    if isinstance(payload, list):
        return payload
    return []


def _address(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        return value.get("address")
    if isinstance(value, list):
        return _address(value[0]) if value else None
    return value


def _provider_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        for key in ("message", "hydra:description", "detail"):
            val = body.get(key)
            if isinstance(val, str) and val.strip():
                return val.strip()
    return fallback


def _error_from_exception(exc: Exception, fallback: str) -> Err:
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        reason = _provider_message(exc.response, fallback)
        if status == 404:
            return Err(reason, ErrorKind.NOT_FOUND)
        if status in (401, 403):
            return Err(reason, ErrorKind.AUTH)
        if 400 <= status < 500:
            return Err(reason, ErrorKind.INPUT)
        return Err(reason, ErrorKind.UPSTREAM)
    return Err(str(exc) or fallback, ErrorKind.UPSTREAM)


def _to_message(raw: Dict[str, Any], mailbox_address: Optional[str] = None) -> Message:
    return Message(
        id=raw.get("id", ""),
        from_address=_address(raw.get("from")),
        to=_address(raw.get("to")) or mailbox_address,
        subject=raw.get("subject"),
        intro=raw.get("intro"),
        text=raw.get("text"),
        html=_html_body(raw.get("html")),
        created_at=raw.get("createdAt"),
        updated_at=raw.get("updatedAt"),
        seen=bool(raw.get("seen", False)),
        flagged=bool(raw.get("flagged", False)),
        is_deleted=bool(raw.get("isDeleted", False)),
        retention=raw.get("retention"),
        retention_date=raw.get("retentionDate"),
        attachments=raw.get("attachments") or [],
    )


def _html_body(value: Any) -> Optional[str]:
    # mail.tm sends html as a list of parts
    if isinstance(value, list):
        return "".join(part for part in value if isinstance(part, str)) or None
    return value


class MailTmClient:
    """HTTP client for the mail.tm temporary mailbox API."""

    def __init__(self, base_url: str, timeout: float = 30, transport: httpx.BaseTransport | None = None):
        """
        Initialize the provider client.

        Args:
            base_url: Provider root, e.g. https://api.mail.tm
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": "Stealth-Mail/1.0",
            },
        )

    def _request(self, method: str, path: str, token: str | None = None, **kwargs: Any) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        logger.info("mail.tm request: %s %s", method, path)
        response = self.client.request(method, path, headers=headers, **kwargs)
        logger.info("mail.tm response: %s %s", response.status_code, path)
        response.raise_for_status()
        return response

    def get_domains(self) -> Result[List[Domain]]:
        try:
            response = self._request("GET", "/domains")
            domains = [
                Domain(id=d.get("id", ""), domain=d["domain"], is_active=bool(d.get("isActive", False)))
                for d in _collection(response.json())
                if d.get("domain")
            ]
            logger.info("mail.tm: found %d domains", len(domains))
            return Ok(domains)
        except Exception as exc:  # noqa: BLE001
            logger.error("mail.tm domain listing failed: %s", exc)
            return _error_from_exception(exc, "Failed to fetch domains")

    def create_account(self) -> Result[Mailbox]:
        domains_result = self.get_domains()
        if not domains_result.success:
            return domains_result
        domains = domains_result.data
        if not domains:
            return Err("No available domains", ErrorKind.UPSTREAM)

        domain = next((d for d in domains if d.is_active), domains[0])
        address = f"{generate_username()}@{domain.domain}"
        password = generate_password()
        logger.info("mail.tm: creating account %s", address)

        try:
            account = self._request("POST", "/accounts", json={"address": address, "password": password}).json()
            token = self._request("POST", "/token", json={"address": address, "password": password}).json().get("token")
        except Exception as exc:  # noqa: BLE001
            logger.error("mail.tm account creation failed: %s", exc)
            return _error_from_exception(exc, "Failed to create email account")

        return Ok(
            Mailbox.issued(
                address=address,
                external_id=account.get("id"),
                auth_token=token,
                created_at=datetime.now(timezone.utc),
            )
        )

    def list_messages(self, email: str, token: str | None) -> Result[List[Message]]:
        if not token:
            logger.info("mail.tm: no token for %s, inbox is empty", email)
            return Ok([])
        try:
            response = self._request("GET", "/messages", token=token)
            messages = [_to_message(raw, email) for raw in _collection(response.json())]
            logger.info("mail.tm: %d messages for %s", len(messages), email)
            return Ok(messages)
        except Exception as exc:  # noqa: BLE001
            logger.error("mail.tm message listing failed: %s", exc)
            return _error_from_exception(exc, "Failed to fetch messages")

    def get_message(self, message_id: str, token: str | None) -> Result[Message]:
        if not token:
            return Err("Authentication token required", ErrorKind.AUTH)
        try:
            response = self._request("GET", f"/messages/{message_id}", token=token)
            return Ok(_to_message(response.json()))
        except Exception as exc:  # noqa: BLE001
            logger.error("mail.tm message fetch failed: %s", exc)
            return _error_from_exception(exc, "Message not found")

    def delete_account(self, email: str, token: str | None) -> Result[None]:
        if not token:
            return Err("Authentication token required", ErrorKind.AUTH)
        try:
            account_id = self._request("GET", "/me", token=token).json().get("id")
            if not account_id:
                return Err("Account not found", ErrorKind.NOT_FOUND)
            self._request("DELETE", f"/accounts/{account_id}", token=token)
            logger.info("mail.tm: deleted account %s", email)
            return Ok(None)
        except Exception as exc:  # noqa: BLE001
            logger.error("mail.tm account deletion failed: %s", exc)
            return _error_from_exception(exc, "Failed to delete account")

    def close(self):
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
