"""Fan a notification out to the configured chat providers."""

from __future__ import annotations

import json
from typing import Any, Awaitable, Callable, Mapping, Optional

import httpx

from gitdeploy.config import DeployConfig
from gitdeploy.errors import NotificationDeliveryError
from gitdeploy.logging import get_logger
from gitdeploy.models import NotificationMessage
from gitdeploy.services import telegram
from gitdeploy.services.render import html_to_markdown, html_to_telegram

log = get_logger(__name__)

GLIP_TITLE = "GitHub Webhook Endpoint"

Sender = Callable[[httpx.AsyncClient, DeployConfig, str, Mapping[str, Any]], Awaitable[None]]


def _require(provider: str, value: str, what: str) -> str:
    if not value:
        raise NotificationDeliveryError(provider, f"{what} is not configured")
    return value


def _raise_for_status(provider: str, resp: httpx.Response) -> None:
    if resp.status_code >= 300:
        raise NotificationDeliveryError(provider, f"HTTP {resp.status_code} {resp.text}")


async def _send_glip(
    http: httpx.AsyncClient, config: DeployConfig, text: str, data: Mapping[str, Any]
) -> None:
    url = _require("glip", config.glip_webhook, "webhook URL")
    body: dict[str, str] = {}
    if "currentSite" in data:
        body["activity"] = f"GitDeploy for {data['currentSite']}"
    body["body"] = html_to_markdown(text)
    body["title"] = GLIP_TITLE
    _raise_for_status("glip", await http.post(url, json=body))


async def _send_slack(
    http: httpx.AsyncClient, config: DeployConfig, text: str, data: Mapping[str, Any]
) -> None:
    url = _require("slack", config.slack_webhook, "webhook URL")
    payload = {"username": config.slack_username, "text": html_to_markdown(text)}
    _raise_for_status("slack", await http.post(url, data={"payload": json.dumps(payload)}))


async def _send_mattermost(
    http: httpx.AsyncClient, config: DeployConfig, text: str, data: Mapping[str, Any]
) -> None:
    url = _require("mattermost", config.mattermost_webhook, "webhook URL")
    payload = {"text": html_to_markdown(text)}
    _raise_for_status("mattermost", await http.post(url, data={"payload": json.dumps(payload)}))


async def _send_telegram(
    http: httpx.AsyncClient, config: DeployConfig, text: str, data: Mapping[str, Any]
) -> None:
    await telegram.send_message(
        config.telegram_bot_token,
        config.telegram_chat_id,
        html_to_telegram(text),
        client=http,
    )


PROVIDERS: dict[str, Sender] = {
    "glip": _send_glip,
    "slack": _send_slack,
    "mattermost": _send_mattermost,
    "telegram": _send_telegram,
}


class Notifier:
    """
    Sends a :class:`NotificationMessage` to every enabled provider.

    Providers are tried one after another; a failing provider is logged and
    does not stop the others.
    """

    def __init__(
        self,
        config: DeployConfig,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config
        self._client = client

    async def send(self, msg: NotificationMessage) -> list[NotificationDeliveryError]:
        """Deliver ``msg``; returns the per-provider failures (empty on success)."""
        missing = msg.unresolved()
        if missing:
            log.warning("notification_unresolved_placeholders", placeholders=missing)
        text = msg.render()

        failures: list[NotificationDeliveryError] = []
        providers = self._config.notification_providers
        if not providers:
            log.debug("notification_skipped", reason="no providers")
            return failures

        http = self._client or httpx.AsyncClient(timeout=self._config.http_timeout)
        try:
            for provider in providers:
                sender = PROVIDERS.get(provider)
                if sender is None:
                    log.warning("unknown_notification_provider", provider=provider)
                    continue
                try:
                    await sender(http, self._config, text, msg.data)
                except NotificationDeliveryError as exc:
                    failures.append(exc)
                    log.warning("notification_failed", provider=provider, error=str(exc))
                except Exception as exc:
                    error = NotificationDeliveryError(provider, str(exc) or type(exc).__name__)
                    failures.append(error)
                    log.warning(
                        "notification_failed",
                        provider=provider,
                        error=str(error),
                        error_type=type(exc).__name__,
                    )
                else:
                    log.info("notification_sent", provider=provider)
        finally:
            if self._client is None:
                await http.aclose()
        return failures
