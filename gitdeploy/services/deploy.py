"""Run the pull for pushes to the configured repository and branch."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

from pydantic import ValidationError

from gitdeploy.config import DeployConfig
from gitdeploy.errors import CommandExecutionError, PayloadParseError
from gitdeploy.logging import get_logger
from gitdeploy.models import CommandResult, DeployResult, NotificationMessage
from gitdeploy.schemas import PushPayload
from gitdeploy.services.messages import (
    MESSAGE_BODY,
    MESSAGE_BODY_FAILED,
    message,
    render_commits_html,
)
from gitdeploy.utils import nl2br

log = get_logger(__name__)

Runner = Callable[[DeployConfig], Awaitable[CommandResult]]
Notify = Callable[[NotificationMessage], Awaitable[Any]]


def pull_command(config: DeployConfig) -> list[str]:
    """Argument vector for the pull; nothing here goes through a shell."""
    return [config.git, "pull", config.remote, config.branch]


async def run_pull(config: DeployConfig) -> CommandResult:
    """
    Run ``<git> pull <remote> <branch>`` in ``config.work_tree``.

    stderr is merged into stdout. A non-zero exit status is returned, not raised.

    Raises
    ------
    CommandExecutionError
        If the executable cannot be started or exceeds ``command_timeout``.
    """
    args = pull_command(config)
    log.info("pull_started", args=args, cwd=config.work_tree or None)
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=config.work_tree or None,
        )
    except OSError as exc:
        raise CommandExecutionError(f"Cannot run '{config.git}': {exc}") from exc

    try:
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=config.command_timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise CommandExecutionError(
            f"'{' '.join(args)}' timed out after {config.command_timeout:g}s"
        ) from None

    result = CommandResult(
        returncode=proc.returncode if proc.returncode is not None else -1,
        output=stdout.decode("utf-8", errors="replace"),
    )
    log.info("pull_finished", returncode=result.returncode)
    return result


def parse_push(payload: Any) -> PushPayload:
    try:
        return PushPayload.model_validate(payload)
    except ValidationError as exc:
        raise PayloadParseError(f"Malformed push payload: {exc}") from exc


def matches(push: PushPayload, config: DeployConfig) -> bool:
    """Exact string match on repository URL and ref; no normalisation."""
    return (
        push.repository.url == config.expected_repo_url
        and push.ref == config.expected_ref
    )


def build_result(push: PushPayload, result: CommandResult, current_site: str) -> DeployResult:
    return DeployResult(
        matched=True,
        output=result.text,
        succeeded=result.succeeded,
        pusher_name=push.pusher.name,
        repo_url=push.repository.url,
        current_site=current_site,
        commits_html=render_commits_html(push.commits),
        git_output=nl2br(result.text),
    )


def deploy_message(deploy: DeployResult) -> NotificationMessage:
    template = message(MESSAGE_BODY if deploy.succeeded else MESSAGE_BODY_FAILED)
    return NotificationMessage(template, deploy.message_data())


async def execute_push(
    payload: Any,
    config: DeployConfig,
    *,
    current_site: str,
    runner: Runner = run_pull,
    notify: Optional[Notify] = None,
) -> Optional[DeployResult]:
    """
    Pull when the push targets the configured repository and branch.

    Returns ``None`` for any other push; those are ignored without notifying.
    The deploy report is sent through ``notify`` when notifications are on.
    """
    push = parse_push(payload)
    if not matches(push, config):
        log.info(
            "push_ignored",
            repo_url=push.repository.url,
            ref=push.ref,
            expected_repo_url=config.expected_repo_url,
            expected_ref=config.expected_ref,
        )
        return None

    result = await runner(config)
    deploy = build_result(push, result, current_site)
    if not deploy.succeeded:
        log.warning("pull_failed", returncode=result.returncode)

    if config.send_notifications and notify is not None:
        await notify(deploy_message(deploy))
    return deploy
