"""
Webhook handler for GitHub pull request events.

Opened pull requests are analyzed. Reopened pull requests and pushes to an
open pull request ("synchronize") trigger a re-analysis that replaces the old
suggestions.
"""
import hashlib
import hmac
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel, ValidationError

from codesuggest.api.deps import get_settings, get_trigger
from codesuggest.config import Settings
from codesuggest.services.reanalysis import ChangeRequestEvent, ReanalysisTrigger

logger = structlog.get_logger(__name__)

webhooks_router = APIRouter(prefix="/webhooks")

OPENED_ACTIONS = ("opened",)
# A reopened pull request still holds suggestions from its earlier pass
UPDATED_ACTIONS = ("synchronize", "reopened")


class PullRequestPayload(BaseModel):
    """GitHub pull_request webhook payload (subset of fields)."""

    action: str
    number: int
    pull_request: dict
    repository: dict


def verify_signature(payload: bytes, signature: str, secret: str) -> bool:
    """
    Verify GitHub webhook signature.

    Args:
        payload: Raw request body
        signature: X-Hub-Signature-256 header value
        secret: Webhook secret

    Returns:
        True if signature is valid
    """
    if not signature.startswith("sha256="):
        return False

    expected = hmac.new(
        secret.encode(),
        payload,
        hashlib.sha256,
    ).hexdigest()

    return hmac.compare_digest(f"sha256={expected}", signature)


def to_event(payload: PullRequestPayload) -> ChangeRequestEvent:
    repository = payload.repository
    owner = repository.get("owner") or {}
    return ChangeRequestEvent(
        change_request_id=payload.number,
        repository_id=int(repository.get("id", 0)),
        project_key=owner.get("login", ""),
        repo_slug=repository.get("name", ""),
        title=payload.pull_request.get("title", ""),
    )


@webhooks_router.post("/github")
async def handle_github_webhook(
    request: Request,
    x_hub_signature_256: Optional[str] = Header(None),
    x_github_event: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
    trigger: ReanalysisTrigger = Depends(get_trigger),
):
    """
    Handle GitHub pull_request events.

    Returns immediately; analysis runs on the background workers.
    """
    body = await request.body()

    if settings.github_webhook_secret:
        if not x_hub_signature_256:
            raise HTTPException(status_code=401, detail="Missing signature")
        if not verify_signature(body, x_hub_signature_256, settings.github_webhook_secret):
            raise HTTPException(status_code=401, detail="Invalid signature")

    if x_github_event != "pull_request":
        logger.info("Ignoring non-pull-request event", event=x_github_event)
        return {"status": "ignored", "reason": f"Event type '{x_github_event}' not handled"}

    try:
        payload = PullRequestPayload.model_validate_json(body)
    except ValidationError as e:
        logger.error("Failed to parse webhook payload", error=str(e))
        raise HTTPException(status_code=400, detail="Invalid payload")

    event = to_event(payload)
    if payload.action in OPENED_ACTIONS:
        queued = trigger.on_opened(event)
    elif payload.action in UPDATED_ACTIONS:
        queued = trigger.on_updated(event)
    else:
        return {"status": "ignored", "reason": f"Action '{payload.action}' not handled"}

    if not queued:
        return {"status": "ignored", "reason": "Automatic analysis is disabled"}

    return {
        "status": "queued",
        "action": payload.action,
        "change_request_id": event.change_request_id,
        "repository_id": event.repository_id,
    }
