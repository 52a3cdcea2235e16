"""FastAPI application: routers, error responses and logging setup."""

from __future__ import annotations

from html import escape
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from gitdeploy.config import KNOWN_PROVIDERS, DeployConfig, settings
from gitdeploy.errors import GitDeployError
from gitdeploy.logging import get_logger, setup_logging
from gitdeploy.routers import gh, info

log = get_logger(__name__)


def _warn_about(config: DeployConfig) -> None:
    if config.check_hook_secret and not config.hook_secret:
        log.warning(
            "hook_secret_missing",
            msg="Signature checking is enabled but HOOK_SECRET is empty; requests are not authenticated.",
        )
    elif not config.check_hook_secret:
        log.warning("hook_secret_check_disabled")
    if not config.repo:
        log.warning("repo_not_configured")
    for provider in config.notification_providers:
        if provider not in KNOWN_PROVIDERS:
            log.warning("unknown_notification_provider", provider=provider)


async def gitdeploy_error_handler(request: Request, exc: GitDeployError) -> PlainTextResponse:
    log.warning("webhook_rejected", error_type=type(exc).__name__, error=str(exc))
    return PlainTextResponse(f"Error: {escape(str(exc))}", status_code=exc.status_code)


async def unhandled_error_handler(request: Request, exc: Exception) -> PlainTextResponse:
    log.error("webhook_failed", error_type=type(exc).__name__, error=str(exc), exc_info=exc)
    return PlainTextResponse(f"Error: {escape(str(exc))}", status_code=500)


def create_app(config: Optional[DeployConfig] = None) -> FastAPI:
    cfg = config or settings
    setup_logging(cfg.log_level, cfg.log_json)
    _warn_about(cfg)

    application = FastAPI(title="GitDeploy")
    application.state.config = cfg
    application.add_exception_handler(GitDeployError, gitdeploy_error_handler)
    application.add_exception_handler(Exception, unhandled_error_handler)
    application.include_router(info.router)
    application.include_router(gh.router)
    return application


app = create_app()
