"""
Renderers for notification bodies.

Messages are authored in a small HTML subset (``a, p, ul, li, strong, small,
br, pre``). Glip, Slack and Mattermost get Markdown, Telegram gets the subset of
HTML its ``parse_mode=HTML`` accepts.
"""

from __future__ import annotations

import re
from html import escape, unescape
from typing import Callable, Iterable, Union

MARKDOWN_TAGS = frozenset({"a", "p", "ul", "li", "strong", "small", "br", "pre"})
TELEGRAM_TAGS = MARKDOWN_TAGS | {"b", "i", "em", "code"}

_TAG_RE = re.compile(r"<!--.*?-->|</?([a-zA-Z][a-zA-Z0-9]*)\b[^>]*>", re.S)
_WS_RE = re.compile(r"\s+")
_ANCHOR_OPEN_RE = re.compile(r"<a\b[^>]*>", re.I)
_LINK_SAFETY_RE = re.compile(r"""\s+(?:target|rel)=(?:"[^"]*"|'[^']*')""", re.I)
_MD_SPECIAL_RE = re.compile(r"([*_\[\]\\])")
_ANCHOR_RE = re.compile(r"<a\b([^>]*)>(.*?)</a\s*>", re.I | re.S)
_ATTR_RE = re.compile(r"""(\w+)=(?:"([^"<>]*)"|'([^'<>]*)')""")
_NEWLINE_PAD_RE = re.compile(r" *\n *")

Replacement = Union[str, Callable[[re.Match], str]]


def _tag(name: str, closing: bool = False) -> re.Pattern:
    if closing:
        return re.compile(rf"</{name}\s*>", re.I)
    return re.compile(rf"<{name}\b[^>]*>", re.I)


MARKDOWN_RULES: tuple[tuple[re.Pattern, str], ...] = (
    (_tag("p"), ""),
    (_tag("p", closing=True), "\n"),
    (_tag("ul"), ""),
    (_tag("ul", closing=True), "\n"),
    (_tag("li"), "- "),
    (_tag("li", closing=True), "\n"),
    (_tag("strong"), "**"),
    (_tag("strong", closing=True), "**"),
    (_tag("small"), "<sub><sup>"),
    (_tag("small", closing=True), "</sup></sub>"),
    (_tag("br"), "\n"),
    (_tag("pre"), "```\n"),
    (_tag("pre", closing=True), "\n```\n\n"),
)

TELEGRAM_RULES: tuple[tuple[re.Pattern, str], ...] = (
    (_tag("p"), ""),
    (_tag("p", closing=True), "\n"),
    (_tag("ul"), ""),
    (_tag("ul", closing=True), "\n"),
    (_tag("li"), "• "),
    (_tag("li", closing=True), "\n"),
    (_tag("small"), ""),
    (_tag("small", closing=True), ""),
    (_tag("br"), "\n"),
    (_tag("pre", closing=True), "</pre>\n"),
)


def strip_tags(html: str, allowed: Iterable[str]) -> str:
    """Drop every tag (and comment) whose name is not in ``allowed``; keep the text."""
    keep = {name.lower() for name in allowed}

    def _sub(match: re.Match) -> str:
        name = match.group(1)
        return match.group(0) if name and name.lower() in keep else ""

    return _TAG_RE.sub(_sub, html or "")


def _attributes(raw: str) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for name, double, single in _ATTR_RE.findall(raw):
        attrs.setdefault(name.lower(), double or single)
    return attrs


def _apply(text: str, rules: Iterable[tuple[re.Pattern, Replacement]]) -> str:
    for pattern, replacement in rules:
        text = pattern.sub(replacement, text)
    return text


def _markdown_links(text: str) -> str:
    # The first anchor seen for an href names every link to it.
    labels: dict[str, str] = {}
    for match in _ANCHOR_RE.finditer(text):
        attrs = _attributes(match.group(1))
        href = attrs.get("href")
        if href and href not in labels:
            labels[href] = attrs.get("title") or match.group(2).strip() or href

    def _sub(match: re.Match) -> str:
        href = _attributes(match.group(1)).get("href")
        if not href:
            return match.group(0)
        return f"[{labels[href]}]({href})"

    return _ANCHOR_RE.sub(_sub, text)


def html_to_markdown(html: str) -> str:
    """
    Convert the notification HTML subset into Markdown.

    Markdown metacharacters in the text are escaped before any Markdown syntax
    is inserted, so ``**`` from ``<strong>`` survives. The result is HTML-escaped
    exactly once (entities already present are decoded first, quotes are left
    alone) for transports that embed it in HTML.

    Anchors without an ``href`` attribute are kept as literal text.
    """
    text = strip_tags(html, MARKDOWN_TAGS)
    text = _WS_RE.sub(" ", text)
    text = _ANCHOR_OPEN_RE.sub(lambda m: _LINK_SAFETY_RE.sub("", m.group(0)), text)

    text = _MD_SPECIAL_RE.sub(r"\\\1", text)
    if text.startswith("#"):
        text = "\\" + text

    text = _markdown_links(text)
    text = _apply(text, MARKDOWN_RULES)
    text = _NEWLINE_PAD_RE.sub("\n", text)
    text = text.lstrip()
    return escape(unescape(text), quote=False)


def _telegram_anchor(match: re.Match) -> str:
    href = _attributes(match.group(1)).get("href")
    if not href:
        return match.group(2)
    return f'<a href="{href}">{match.group(2)}</a>'


def html_to_telegram(html: str) -> str:
    """Flatten block tags so Telegram's HTML parse mode accepts the message."""
    text = strip_tags(html, TELEGRAM_TAGS)
    text = _WS_RE.sub(" ", text)
    text = _ANCHOR_RE.sub(_telegram_anchor, text)
    text = _apply(text, TELEGRAM_RULES)
    text = _NEWLINE_PAD_RE.sub("\n", text)
    return text.strip()
