from __future__ import annotations

import re
from typing import Iterable, List

_TAG_RE = re.compile(r"<[^>]*>")


def truncate(text: str, max_len: int = 120) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 1].rstrip() + "…"


def strip_tags(html: str) -> str:
    return " ".join(_TAG_RE.sub(" ", html).split())


def bulletize(lines: Iterable[str]) -> str:
    return "\n".join(f"• {line}" for line in lines if line)


def section(title: str, lines: List[str]) -> str:
    body = bulletize(lines) if lines else "(none)"
    return f"{title}\n{body}" if body else title
