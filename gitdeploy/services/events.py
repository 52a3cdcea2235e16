"""Route decoded webhook events to their handlers."""

from __future__ import annotations

import json
from html import escape
from typing import Any

from gitdeploy.config import DeployConfig
from gitdeploy.logging import get_logger
from gitdeploy.models import (
    Event,
    EventOutcome,
    NotificationMessage,
    PingEvent,
    PushEvent,
    UnrecognizedEvent,
)
from gitdeploy.services.deploy import Runner, execute_push, run_pull
from gitdeploy.services.messages import MESSAGE_PING, MESSAGE_PUSH_ERROR, message
from gitdeploy.services.notify import Notifier
from gitdeploy.utils import nl2br

log = get_logger(__name__)


def _pretty(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, default=str)


def ping_message(payload: Any) -> NotificationMessage:
    return NotificationMessage(message(MESSAGE_PING), {"payload": nl2br(_pretty(payload))})


def push_error_message(exc: BaseException) -> NotificationMessage:
    return NotificationMessage(message(MESSAGE_PUSH_ERROR), {"error": escape(str(exc))})


def unrecognized_body(event: UnrecognizedEvent, *, echo_payload: bool) -> str:
    body = f"Event: {event.event_type}"
    if echo_payload:
        body += f"\nPayload:\n{_pretty(event.payload)}"
    return body


async def handle_event(
    event: Event,
    config: DeployConfig,
    notifier: Notifier,
    *,
    current_site: str,
    runner: Runner = run_pull,
) -> EventOutcome:
    """
    Handle one event.

    - ping: notify with the payload, nothing else.
    - push: pull when repo and branch match; any failure is sent as a
      notification and the caller still gets a silent success.
    - anything else: 404 naming the event (payload only when configured).
    """
    if isinstance(event, PingEvent):
        log.info("ping_received")
        await notifier.send(ping_message(event.payload))
        return EventOutcome()

    if isinstance(event, PushEvent):
        try:
            deploy = await execute_push(
                event.payload,
                config,
                current_site=current_site,
                runner=runner,
                notify=notifier.send,
            )
        except Exception as exc:
            log.exception("push_failed", error=str(exc))
            await notifier.send(push_error_message(exc))
            return EventOutcome()
        return EventOutcome(deploy=deploy)

    log.info("event_unrecognized", event_type=event.event_type)
    return EventOutcome(
        status_code=404,
        body=unrecognized_body(event, echo_payload=config.echo_unknown_payload),
    )
