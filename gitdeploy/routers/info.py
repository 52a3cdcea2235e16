"""Ruter Ingfo: health check and help."""

from __future__ import annotations

from textwrap import dedent

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from gitdeploy.config import DeployConfig
from gitdeploy.routers.gh import get_config

router = APIRouter()


def render_help_text(config: DeployConfig) -> str:
    """Endpoints and the effective, non-secret settings."""
    providers = ", ".join(config.notification_providers) or "-"
    return dedent(
        f"""
GitDeploy (HTTP Help)

Endpoints
---------
- GET  /            : Health check
- GET  /help        : This text
- POST /?github=1   : GitHub webhook (push, ping)

Settings
--------
- repository       : {config.expected_repo_url}
- ref              : {config.expected_ref}
- pull             : {config.git} pull {config.remote} {config.branch}
- work tree        : {config.work_tree or "(current directory)"}
- signature check  : {"on" if config.verifies_signatures else "OFF"}
- notifications    : {"on" if config.send_notifications else "off"} ({providers})
"""
    ).strip()


@router.get("/", response_class=PlainTextResponse)
def root() -> str:
    return "ok"


@router.get("/help", response_class=PlainTextResponse)
def help_text(config: DeployConfig = Depends(get_config)) -> str:
    return render_help_text(config)
