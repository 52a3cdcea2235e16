"""Decode webhook bodies into events."""

from __future__ import annotations

import json
from typing import Any

from gitdeploy.errors import MissingHeaderError, PayloadParseError, UnsupportedContentTypeError
from gitdeploy.models import Event, PingEvent, PushEvent, UnrecognizedEvent, WebhookRequest

JSON = "application/json"
FORM = "application/x-www-form-urlencoded"


def media_type(content_type: str) -> str:
    """``'Application/JSON; charset=utf-8'`` → ``'application/json'``."""
    return content_type.split(";", 1)[0].strip().lower()


def check_headers(request: WebhookRequest) -> None:
    if not request.content_type:
        raise MissingHeaderError("Missing HTTP 'Content-Type' header.")
    if not request.event_type:
        raise MissingHeaderError("Missing HTTP 'X-Github-Event' header.")


def decode_payload(request: WebhookRequest) -> Any:
    """
    Return the decoded JSON payload of ``request``.

    JSON bodies are parsed as-is; form posts carry the JSON document in the
    ``payload`` field.
    """
    check_headers(request)
    kind = media_type(request.content_type or "")
    if kind == JSON:
        raw: str | bytes = request.body
    elif kind == FORM:
        if "payload" not in request.form:
            raise PayloadParseError("Missing 'payload' form field.")
        raw = request.form["payload"]
    else:
        raise UnsupportedContentTypeError(request.content_type or "")

    try:
        return json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise PayloadParseError(f"Invalid JSON payload: {exc}") from exc


def parse_event(event_type: str, payload: Any) -> Event:
    key = (event_type or "").strip().lower()
    if key == "ping":
        return PingEvent(payload)
    if key == "push":
        return PushEvent(payload)
    return UnrecognizedEvent(event_type, payload)
