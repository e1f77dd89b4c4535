"""Client-side mailbox lifecycle.

The controller owns one mailbox at a time and moves it through
``uninitialized -> creating -> active -> expired``, with ``deleted`` as a
terminal state reachable from ``active``. While active it runs two asyncio
tasks: a one-second countdown and an inbox poll. Both are bound to the
mailbox generation that started them and are cancelled whenever the mailbox
is replaced, so a slow poll for an old mailbox can never overwrite the inbox
of a newer one.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from enum import Enum
from typing import Callable, List, Optional, Protocol

from stealthmail.models.mail_models import Mailbox, Message
from stealthmail.utils.dates import utc_now


logger = logging.getLogger(__name__)

MAILBOX_SECONDS = 600
POLL_INTERVAL_SECONDS = 30
PLACEHOLDER_DOMAIN = "stealthmail.com"


class MailboxState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CREATING = "creating"
    ACTIVE = "active"
    EXPIRED = "expired"
    DELETED = "deleted"


class MailboxApi(Protocol):
    async def create_mailbox(self) -> Mailbox: ...

    async def fetch_inbox(self, email: str, token: Optional[str]) -> List[Message]: ...

    async def get_message(self, message_id: str, token: Optional[str]) -> Message: ...

    async def delete_mailbox(self, email: str, token: Optional[str]) -> None: ...


async def _drain(tasks: List[asyncio.Task]) -> None:
    for task in tasks:
        try:
            await task
        except asyncio.CancelledError:
            pass


def placeholder_mailbox(domain: str = PLACEHOLDER_DOMAIN) -> Mailbox:
    """A local-only address shown when the provider is unreachable. It never receives mail."""
    return Mailbox.issued(address=f"{secrets.token_hex(6)}@{domain}", created_at=utc_now(), synthetic=True)


class MailboxController:
    def __init__(
        self,
        api: MailboxApi,
        countdown_seconds: int = MAILBOX_SECONDS,
        tick_seconds: float = 1.0,
        poll_interval: float = POLL_INTERVAL_SECONDS,
    ):
        self.api = api
        self.countdown_seconds = countdown_seconds
        self.tick_seconds = tick_seconds
        self.poll_interval = poll_interval

        self.state = MailboxState.UNINITIALIZED
        self.mailbox: Optional[Mailbox] = None
        self.messages: List[Message] = []
        self.seconds_left = countdown_seconds
        self.generation = 0

        self._countdown_task: Optional[asyncio.Task] = None
        self._poll_task: Optional[asyncio.Task] = None
        self._listeners: List[Callable[["MailboxController"], None]] = []

    def subscribe(self, listener: Callable[["MailboxController"], None]) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # -- lifecycle ---------------------------------------------------------

    async def start(self) -> None:
        if self.state != MailboxState.UNINITIALIZED:
            return
        await self._create()

    async def refresh(self) -> None:
        if self.state in (MailboxState.CREATING, MailboxState.DELETED):
            logger.warning("Refresh ignored while %s", self.state.value)
            return
        await self._create()

    async def delete(self) -> None:
        if self.state != MailboxState.ACTIVE or self.mailbox is None:
            logger.warning("Delete ignored while %s", self.state.value)
            return

        mailbox = self.mailbox
        retired = self._retire()
        self.state = MailboxState.DELETED
        self.mailbox = None
        self.messages = []
        self._notify()
        await _drain(retired)

        if mailbox.synthetic or not mailbox.auth_token:
            return
        try:
            await self.api.delete_mailbox(mailbox.address, mailbox.auth_token)
            logger.info("Deleted mailbox %s", mailbox.address)
        except Exception as exc:  # noqa: BLE001
            logger.error("Mailbox delete failed for %s: %s", mailbox.address, exc)

    async def close(self) -> None:
        await _drain(self._retire())

    async def _create(self) -> None:
        self._retire()
        generation = self.generation
        self.state = MailboxState.CREATING
        self.mailbox = None
        self.messages = []
        self._notify()

        try:
            mailbox = await self.api.create_mailbox()
        except Exception as exc:  # noqa: BLE001
            logger.error("Mailbox creation failed, showing a placeholder address: %s", exc)
            mailbox = placeholder_mailbox()

        if generation != self.generation:
            # closed while the create call was in flight; the new mailbox is dropped
            logger.info("Discarding mailbox %s created after close", mailbox.address)
            if self.state == MailboxState.CREATING:
                self.state = MailboxState.UNINITIALIZED
                self._notify()
            return

        self.mailbox = mailbox
        self.seconds_left = self.countdown_seconds
        self.state = MailboxState.ACTIVE
        self._countdown_task = asyncio.create_task(self._run_countdown(generation))
        if mailbox.auth_token:
            self._poll_task = asyncio.create_task(self._run_polling(generation))
        logger.info("Mailbox active: %s (polling: %s)", mailbox.address, "yes" if mailbox.auth_token else "no")
        self._notify()

    def _retire(self) -> List[asyncio.Task]:
        """Invalidate the current generation and cancel its timers."""
        self.generation += 1
        tasks = [t for t in (self._countdown_task, self._poll_task) if t is not None]
        current = asyncio.current_task()
        for task in tasks:
            if task is not current:
                task.cancel()
        self._countdown_task = None
        self._poll_task = None
        return [t for t in tasks if t is not current]

    # -- countdown ---------------------------------------------------------

    def tick(self) -> None:
        if self.state != MailboxState.ACTIVE:
            return
        self.seconds_left = max(0, self.seconds_left - 1)
        if self.seconds_left == 0:
            self.state = MailboxState.EXPIRED
            if self._poll_task is not None:
                self._poll_task.cancel()
                self._poll_task = None
            logger.info("Mailbox expired: %s", self.mailbox.address if self.mailbox else "?")
        self._notify()

    async def _run_countdown(self, generation: int) -> None:
        while self.generation == generation and self.state == MailboxState.ACTIVE:
            await asyncio.sleep(self.tick_seconds)
            if self.generation != generation:
                return
            self.tick()

    # -- inbox -------------------------------------------------------------

    async def poll_once(self, generation: Optional[int] = None) -> bool:
        """Fetch the inbox once. Returns True when the message list was replaced."""
        generation = self.generation if generation is None else generation
        mailbox = self.mailbox
        if self.state != MailboxState.ACTIVE or mailbox is None or not mailbox.auth_token:
            return False

        try:
            messages = await self.api.fetch_inbox(mailbox.address, mailbox.auth_token)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Inbox poll failed for %s, keeping %d messages: %s", mailbox.address, len(self.messages), exc)
            return False

        if generation != self.generation or self.state != MailboxState.ACTIVE:
            logger.info("Discarding stale inbox response for %s", mailbox.address)
            return False

        self.messages = messages
        self._notify()
        return True

    async def _run_polling(self, generation: int) -> None:
        while self.generation == generation and self.state == MailboxState.ACTIVE:
            await self.poll_once(generation)
            await asyncio.sleep(self.poll_interval)

    async def open_message(self, message_id: str) -> Optional[Message]:
        local = next((m for m in self.messages if m.id == message_id), None)
        mailbox = self.mailbox
        detail = local
        if mailbox is not None and mailbox.auth_token:
            try:
                detail = await self.api.get_message(message_id, mailbox.auth_token)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Message fetch failed for %s: %s", message_id, exc)

        if detail is None:
            return None
        self.messages = [m.model_copy(update={"seen": True}) if m.id == message_id else m for m in self.messages]
        self._notify()
        return detail.model_copy(update={"seen": True})

    def remove_message(self, message_id: str) -> None:
        self.messages = [m for m in self.messages if m.id != message_id]
        self._notify()
