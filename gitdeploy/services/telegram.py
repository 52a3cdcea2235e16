"""Telegram Bot API client: sendMessage with HTML chunking."""

from __future__ import annotations

import re
from typing import Any, Iterable, Optional

import httpx

from gitdeploy.errors import NotificationDeliveryError

TELEGRAM_API_BASE = "https://api.telegram.org"
HTTP_TIMEOUT_SECONDS = 15
MESSAGE_LIMIT = 4096

JSONDict = dict[str, Any]


def _normalize_newlines(s: str) -> str:
    return (s or "").replace("\r\n", "\n").replace("\r", "\n")


_TAG_RE = re.compile(r"<(/?)([a-zA-Z][a-zA-Z0-9]*)\b[^>]*>")
# room left in each chunk for the closing tags appended at a cut
_CLOSE_RESERVE = 64


def _safe_cut(t: str, cut: int) -> int:
    """Move ``cut`` back so it does not land inside a tag or an entity."""
    lt = t.rfind("<", 0, cut)
    if lt > 0 and lt > t.rfind(">", 0, cut):
        cut = lt
    amp = t.rfind("&", 0, cut)
    if amp > 0 and amp > t.rfind(";", 0, cut) and cut - amp <= 10:
        cut = amp
    return cut


def _open_tags(chunk: str) -> list[tuple[str, str]]:
    """Tags opened in ``chunk`` and not closed, as (name, opening tag)."""
    stack: list[tuple[str, str]] = []
    for m in _TAG_RE.finditer(chunk):
        name = m.group(2).lower()
        if not m.group(1):
            stack.append((name, m.group(0)))
            continue
        for i in range(len(stack) - 1, -1, -1):
            if stack[i][0] == name:
                del stack[i:]
                break
    return stack


def _split_html(text: str, limit: int = MESSAGE_LIMIT) -> Iterable[str]:
    """
    Split text into chunks of at most ``limit`` chars.

    Cuts prefer newlines and never fall inside a tag. Tags still open at a
    cut are closed at the end of the chunk and reopened at the start of the
    next one, so every chunk is valid HTML on its own.
    """
    t = text or ""
    reopen = ""
    while len(reopen) + len(t) > limit:
        budget = max(limit - len(reopen) - _CLOSE_RESERVE, 1)
        cut = t.rfind("\n", 0, budget)
        if cut <= 0:
            cut = budget
        cut = _safe_cut(t, cut)
        chunk = reopen + t[:cut]
        opened = _open_tags(chunk)
        yield chunk + "".join(f"</{name}>" for name, _ in reversed(opened))
        reopen = "".join(tag for _, tag in opened)
        t = t[cut:].lstrip("\n")
    if t:
        yield reopen + t


def _check(resp: httpx.Response) -> JSONDict:
    try:
        data = resp.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {"ok": False}
    if resp.status_code >= 300 or not data.get("ok", True):
        raise NotificationDeliveryError(
            "telegram", f"Telegram error: {resp.status_code} {resp.text}"
        )
    return data


async def send_message(
    token: str,
    chat_id: int | str,
    html_text: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    disable_web_page_preview: bool = True,
) -> list[JSONDict]:
    """
    Send ``html_text`` with ``parse_mode=HTML``, split into 4096-char chunks.

    The bot token is part of the endpoint URL; keep it out of the logs.
    """
    if not token or not chat_id:
        raise NotificationDeliveryError("telegram", "bot token or chat id is not configured")

    api = f"{TELEGRAM_API_BASE}/bot{token}/sendMessage"
    rendered = _normalize_newlines(html_text)
    form_base: dict[str, str] = {
        "chat_id": str(chat_id),
        "parse_mode": "HTML",
        "disable_web_page_preview": "true" if disable_web_page_preview else "false",
    }

    results: list[JSONDict] = []
    own_client = client is None
    http = client or httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)
    try:
        for chunk in _split_html(rendered):
            data = dict(form_base)
            data["text"] = chunk
            resp = await http.post(api, data=data)
            results.append(_check(resp))
    finally:
        if own_client:
            await http.aclose()
    return results
