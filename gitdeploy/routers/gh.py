"""Ruter GH: the webhook endpoint."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse

from gitdeploy.config import DeployConfig
from gitdeploy.logging import get_logger
from gitdeploy.models import WebhookRequest
from gitdeploy.services.deploy import Runner, run_pull
from gitdeploy.services.events import handle_event
from gitdeploy.services.notify import Notifier
from gitdeploy.services.payload import FORM, decode_payload, media_type, parse_event
from gitdeploy.utils import is_truthy, verify_signature

router = APIRouter(tags=["github"])

log = get_logger(__name__)


def get_config(request: Request) -> DeployConfig:
    return request.app.state.config


def get_notifier(config: DeployConfig = Depends(get_config)) -> Notifier:
    return Notifier(config)


def get_runner() -> Runner:
    return run_pull


async def _form_fields(request: Request, content_type: Optional[str]) -> dict[str, str]:
    if not content_type or media_type(content_type) != FORM:
        return {}
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


@router.post("/", response_class=PlainTextResponse)
async def github_webhook(
    request: Request,
    github: Optional[str] = Query(None),
    content_type: Optional[str] = Header(None),
    x_github_event: Optional[str] = Header(None),
    x_hub_signature: Optional[str] = Header(None),
    x_hub_signature_256: Optional[str] = Header(None),
    config: DeployConfig = Depends(get_config),
    notifier: Notifier = Depends(get_notifier),
    runner: Runner = Depends(get_runner),
):
    """
    GitHub webhook endpoint, active only with a truthy ``?github=`` flag.

    The body signature is checked against ``X-Hub-Signature-256`` (falling back
    to ``X-Hub-Signature``) unless signature checking is disabled. Errors raised
    here become a 500 with an escaped message; push failures are reported via
    notifications instead.
    """
    if not is_truthy(github):
        raise HTTPException(404, "Not Found")

    body = await request.body()
    signature = x_hub_signature_256 or x_hub_signature
    if config.verifies_signatures:
        verify_signature(config.hook_secret, body, signature)

    snapshot = WebhookRequest(
        body=body,
        content_type=content_type,
        event_type=x_github_event,
        signature=signature,
        form=await _form_fields(request, content_type),
    )
    payload = decode_payload(snapshot)
    event = parse_event(snapshot.event_type or "", payload)
    log.info("webhook_received", event_type=snapshot.event_type)

    outcome = await handle_event(
        event,
        config,
        notifier,
        current_site=config.public_base_url or str(request.base_url),
        runner=runner,
    )
    return PlainTextResponse(outcome.body, status_code=outcome.status_code)
