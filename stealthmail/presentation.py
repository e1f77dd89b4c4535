from __future__ import annotations

from datetime import datetime
from html import escape
from typing import List, Optional

from pydantic import BaseModel

from stealthmail.models.article_models import Article
from stealthmail.models.mail_models import Mailbox, Message
from stealthmail.utils.dates import format_article_date, format_countdown, relative_time
from stealthmail.utils.formatting import section, strip_tags, truncate


PLACEHOLDER_COVER = (
    "data:image/svg+xml;charset=utf-8,"
    "%3Csvg xmlns=%27http://www.w3.org/2000/svg%27 width=%27800%27 height=%27400%27%3E"
    "%3Crect width=%27100%25%27 height=%27100%25%27 fill=%27%23e5e7eb%27/%3E%3C/svg%3E"
)

CATEGORY_COLORS = {
    "Privacy": "bg-blue-100 text-blue-800",
    "Guide": "bg-green-100 text-green-800",
    "Security": "bg-red-100 text-red-800",
    "Tips": "bg-yellow-100 text-yellow-800",
    "News": "bg-purple-100 text-purple-800",
}
DEFAULT_CATEGORY_COLOR = "bg-gray-100 text-gray-800"


class MailboxView(BaseModel):
    address: str
    copy_text: str
    countdown: str
    progress: float
    expired: bool
    receives_mail: bool


class InboxRow(BaseModel):
    id: str
    sender: str
    subject: str
    preview: str
    time: str
    unread: bool
    badge: Optional[str] = None


class MessageView(BaseModel):
    id: str
    subject: str
    sender: str
    recipient: str
    time: str
    body_html: str


class ArticleCard(BaseModel):
    id: str
    title: str
    excerpt: str
    category: str
    badge_class: str
    date: str
    read_time: str
    author: str
    url: str
    image: str
    has_cover: bool


def category_color(category: str) -> str:
    return CATEGORY_COLORS.get(category, DEFAULT_CATEGORY_COLOR)


def progress_percentage(seconds_left: int, total_seconds: int) -> float:
    if total_seconds <= 0:
        return 100.0
    return round((total_seconds - seconds_left) / total_seconds * 100, 2)


def message_preview(msg: Message, max_len: int = 100) -> str:
    if msg.intro:
        return msg.intro
    if msg.text:
        return truncate(msg.text, max_len)
    if msg.html:
        stripped = strip_tags(msg.html)
        if stripped:
            return stripped[:max_len] + "..."
    return "No preview available"


def mailbox_view(mailbox: Mailbox, seconds_left: int, total_seconds: int) -> MailboxView:
    return MailboxView(
        address=mailbox.address,
        copy_text=mailbox.address,
        countdown=format_countdown(seconds_left),
        progress=progress_percentage(seconds_left, total_seconds),
        expired=seconds_left <= 0,
        receives_mail=not mailbox.synthetic and bool(mailbox.auth_token),
    )


def inbox_rows(messages: List[Message], now: Optional[datetime] = None) -> List[InboxRow]:
    return [
        InboxRow(
            id=m.id,
            sender=m.from_address or "Unknown",
            subject=m.subject or "No Subject",
            preview=message_preview(m),
            time=relative_time(m.created_at, now),
            unread=not m.seen,
            badge=None if m.seen else "New",
        )
        for m in messages
    ]


def _body_html(msg: Message) -> str:
    if msg.html:
        # Untrusted markup stays inside a sandboxed frame with scripts disabled
        return f'<iframe class="message-body" sandbox="" srcdoc="{escape(msg.html, quote=True)}"></iframe>'
    text = msg.text or msg.intro or ""
    return f'<pre class="message-body">{escape(text)}</pre>'


def message_view(msg: Message, now: Optional[datetime] = None) -> MessageView:
    return MessageView(
        id=msg.id,
        subject=msg.subject or "No Subject",
        sender=msg.from_address or "Unknown",
        recipient=msg.to or "",
        time=relative_time(msg.created_at, now),
        body_html=_body_html(msg),
    )


def article_cards(articles: List[Article]) -> List[ArticleCard]:
    return [
        ArticleCard(
            id=a.id,
            title=a.title,
            excerpt=truncate(a.excerpt, 160),
            category=a.category,
            badge_class=category_color(a.category),
            date=format_article_date(a.date),
            read_time=a.read_time,
            author=a.author,
            url=a.url,
            image=a.cover_image or PLACEHOLDER_COVER,
            has_cover=bool(a.cover_image),
        )
        for a in articles
    ]


def render_inbox_text(
    mailbox: Optional[Mailbox],
    messages: List[Message],
    seconds_left: int,
    total_seconds: int,
    state: str,
    now: Optional[datetime] = None,
) -> str:
    if mailbox is None:
        return f"No mailbox ({state})"

    view = mailbox_view(mailbox, seconds_left, total_seconds)
    header = f"{view.address}  [{state}]  {view.countdown} left ({view.progress:.0f}% elapsed)"
    if mailbox.synthetic:
        header += "\n(placeholder address, cannot receive mail)"

    rows = inbox_rows(messages, now)
    lines = [
        f"{'*' if r.unread else ' '} {r.time}  {r.sender}: {truncate(r.subject, 60)}"
        for r in rows
    ]
    count = len(rows)
    title = f"Inbox ({count} message{'s' if count != 1 else ''})"
    return f"{header}\n\n{section(title, lines)}"


def render_message_html(msg: Message, now: Optional[datetime] = None) -> str:
    view = message_view(msg, now)
    return (
        '<div class="message-viewer" role="dialog">'
        f"<h2>{escape(view.subject)}</h2>"
        f"<p><strong>From:</strong> {escape(view.sender)}</p>"
        f"<p><strong>To:</strong> {escape(view.recipient)}</p>"
        f"<p><strong>Date:</strong> {escape(view.time)}</p>"
        f"{view.body_html}"
        "</div>"
    )


def render_article_grid_html(articles: List[Article]) -> str:
    cards = []
    for card in article_cards(articles):
        cards.append(
            '<article class="article-card">'
            f'<img src="{escape(card.image, quote=True)}" alt="{escape(card.title, quote=True)}" '
            f'data-fallback="{escape(PLACEHOLDER_COVER, quote=True)}" '
            'onerror="this.onerror=null;this.src=this.dataset.fallback">'
            f'<span class="badge {card.badge_class}">{escape(card.category)}</span>'
            f'<h3><a href="{escape(card.url, quote=True)}">{escape(card.title)}</a></h3>'
            f"<p>{escape(card.excerpt)}</p>"
            f"<footer>{escape(card.author)} · {escape(card.date)} · {escape(card.read_time)}</footer>"
            "</article>"
        )
    return f'<section id="articles" class="article-grid">{"".join(cards)}</section>'


def render_landing_html(articles: List[Article]) -> str:
    return (
        "<!DOCTYPE html>"
        '<html lang="en"><head><meta charset="utf-8">'
        "<title>Stealth Mail - Temporary Email</title></head>"
        "<body>"
        "<header><h1>Stealth Mail</h1>"
        "<p>Get a disposable email address that expires in 10 minutes.</p>"
        "<p>Run <code>stealthmail watch</code> to get an address and follow its inbox from the terminal. "
        'The HTTP routes are listed at <a href="/api/docs">/api/docs</a>.</p>'
        "</header>"
        "<h2>Popular Articles</h2>"
        f"{render_article_grid_html(articles)}"
        "</body></html>"
    )
