"""Settings, read from the environment (a .env file is honoured)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from dotenv import load_dotenv

load_dotenv()

KNOWN_PROVIDERS = frozenset({"glip", "slack", "mattermost", "telegram"})

_FALSY = {"", "0", "false", "no", "off"}


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in _FALSY


def _as_csv(value: str | None) -> tuple[str, ...]:
    # ordered, duplicates dropped
    items = (s.strip().lower() for s in (value or "").split(",") if s.strip())
    return tuple(dict.fromkeys(items))


@dataclass(frozen=True)
class DeployConfig:
    """Deployment settings, read once and never mutated while serving a request."""

    hook_secret: str = ""
    check_hook_secret: bool = True
    git: str = "git"
    repo: str = ""
    repo_host: str = "github.com"
    branch: str = "master"
    remote: str = "origin"
    work_tree: str = ""
    command_timeout: float = 120.0
    send_notifications: bool = False
    notification_providers: tuple[str, ...] = ()
    glip_webhook: str = ""
    slack_webhook: str = ""
    slack_username: str = ""
    mattermost_webhook: str = ""
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    public_base_url: str = ""
    echo_unknown_payload: bool = False
    http_timeout: float = 15.0
    log_level: str = "INFO"
    log_json: bool = False

    @property
    def verifies_signatures(self) -> bool:
        """
        Whether inbound requests must carry a valid HMAC signature.

        Checking can be switched off with ``CHECK_HOOK_SECRET=0``, and is skipped
        when no ``HOOK_SECRET`` is configured. Both leave the endpoint open to
        anyone who can reach it.
        """
        return self.check_hook_secret and bool(self.hook_secret)

    @property
    def expected_repo_url(self) -> str:
        return f"https://{self.repo_host}/{self.repo}"

    @property
    def expected_ref(self) -> str:
        return f"refs/heads/{self.branch}"


def load_config(environ: Mapping[str, str] | None = None) -> DeployConfig:
    """Build a :class:`DeployConfig` from environment variables."""
    env = os.environ if environ is None else environ
    return DeployConfig(
        hook_secret=env.get("HOOK_SECRET", ""),
        check_hook_secret=_as_bool(env.get("CHECK_HOOK_SECRET"), True),
        git=env.get("GIT", "git") or "git",
        repo=env.get("REPO", "").strip("/"),
        repo_host=env.get("REPO_HOST", "github.com"),
        branch=env.get("BRANCH", "master"),
        remote=env.get("REMOTE", "origin"),
        work_tree=env.get("WORK_TREE", ""),
        command_timeout=float(env.get("COMMAND_TIMEOUT", "120")),
        send_notifications=_as_bool(env.get("SEND_NOTIFICATIONS"), False),
        notification_providers=_as_csv(env.get("NOTIFICATION_PROVIDERS")),
        glip_webhook=env.get("GLIP_WEBHOOK", ""),
        slack_webhook=env.get("SLACK_WEBHOOK", ""),
        slack_username=env.get("SLACK_USERNAME", ""),
        mattermost_webhook=env.get("MATTERMOST_WEBHOOK", ""),
        telegram_bot_token=env.get("TELEGRAM_BOT_TOKEN", ""),
        telegram_chat_id=env.get("TELEGRAM_CHAT_ID", ""),
        public_base_url=env.get("PUBLIC_BASE_URL", ""),
        echo_unknown_payload=_as_bool(env.get("ECHO_UNKNOWN_PAYLOAD"), False),
        http_timeout=float(env.get("HTTP_TIMEOUT", "15")),
        log_level=env.get("LOG_LEVEL", "INFO"),
        log_json=_as_bool(env.get("LOG_JSON"), False),
    )


settings = load_config()
