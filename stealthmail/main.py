from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional, Tuple

import httpx
import uvicorn

from stealthmail.api.app import create_app
from stealthmail.config import Settings
from stealthmail.controller import MAILBOX_SECONDS, MailboxController, MailboxState
from stealthmail.gateway_client import GatewayClient
from stealthmail.presentation import render_inbox_text


logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("stealthmail")


def serve(settings: Settings) -> int:
    logger.info("Stealth Mail API listening on %s:%d", settings.host, settings.port)
    logger.info("API documentation: http://localhost:%d/api/docs", settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level="info")
    return 0


async def watch(
    gateway_url: str,
    countdown_seconds: int = MAILBOX_SECONDS,
    tick_seconds: float = 1.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """Create a mailbox through the gateway and print the inbox until it expires."""
    last_seen: Optional[Tuple[str, str, Tuple[Tuple[str, bool], ...]]] = None
    done = asyncio.Event()

    def on_change(controller: MailboxController) -> None:
        nonlocal last_seen
        if controller.state in (MailboxState.EXPIRED, MailboxState.DELETED):
            done.set()
        address = controller.mailbox.address if controller.mailbox else ""
        snapshot = (controller.state.value, address, tuple((m.id, m.seen) for m in controller.messages))
        if snapshot == last_seen:
            return
        last_seen = snapshot
        print(
            render_inbox_text(
                controller.mailbox,
                controller.messages,
                controller.seconds_left,
                controller.countdown_seconds,
                controller.state.value,
            )
        )
        print()

    async with GatewayClient(gateway_url, transport=transport) as api:
        controller = MailboxController(api, countdown_seconds=countdown_seconds, tick_seconds=tick_seconds)
        controller.subscribe(on_change)
        await controller.start()
        try:
            await done.wait()
        finally:
            await controller.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    settings = Settings.load()
    parser = argparse.ArgumentParser(prog="stealthmail", description="Disposable email gateway")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("serve", help="Run the HTTP gateway")
    watch_parser = sub.add_parser("watch", help="Create a mailbox and follow its inbox")
    watch_parser.add_argument("--gateway", default=settings.gateway_url, help="Gateway base URL")
    args = parser.parse_args(argv)

    if args.command == "watch":
        try:
            return asyncio.run(watch(args.gateway))
        except KeyboardInterrupt:
            return 130
    return serve(settings)


if __name__ == "__main__":
    sys.exit(main())
