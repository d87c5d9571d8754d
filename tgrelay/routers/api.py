"""Inbound event endpoints: Jira, Alertmanager and free text."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Form, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from tgrelay.schemas import Alert, AlertManagerRequest, JiraEvent
from tgrelay.services.alerts import DEFAULT_TEMPLATE, AlertsError, render_alert
from tgrelay.services.jira import classify, render_sequence
from tgrelay.services.telegram import TelegramError, deliver

router = APIRouter(prefix="/api/v1", tags=["events"])

logger = logging.getLogger(__name__)


async def _relay(request: Request, text: str) -> bool:
    try:
        return await deliver(text, mutable=True, mute=request.app.state.mute)
    except TelegramError as exc:
        logger.error("Delivery failed: %s", exc)
        raise HTTPException(502, str(exc)) from exc


@router.post("/jira", response_class=PlainTextResponse)
async def jira_webhook(request: Request):
    """Relay a Jira webhook to the chat, one paragraph per changed field."""
    body = await request.body()
    try:
        event = JiraEvent.model_validate_json(body)
    except ValidationError as exc:
        logger.warning("Rejected Jira payload: %s", exc.errors()[:3])
        raise HTTPException(400, "Invalid Jira payload") from exc

    pairs = classify(event)
    logger.info(
        "Jira %s/%s on %s -> %s",
        event.webhook_event or "-",
        event.issue_event_type_name or "-",
        event.issue.key or "?",
        ",".join(variant.name for variant, _ in pairs) or "suppressed",
    )
    text = render_sequence(pairs)
    if not text:
        return "ignored"
    sent = await _relay(request, text)
    return "sent" if sent else "muted"


@router.post("/alert", response_class=PlainTextResponse)
async def alertmanager_webhook(
    request: Request,
    template: str = Query(DEFAULT_TEMPLATE),
):
    """Render every alert of an Alertmanager notification and relay each one."""
    body = await request.body()
    logger.debug("Alertmanager request body: %s", body.decode("utf-8", "replace"))
    try:
        payload = AlertManagerRequest.model_validate_json(body)
    except ValidationError as exc:
        logger.warning("Rejected Alertmanager payload: %s", exc.errors()[:3])
        raise HTTPException(400, "Invalid Alertmanager payload") from exc

    template_name = template.strip() or DEFAULT_TEMPLATE
    logger.info("Processing %d alerts...", len(payload.alerts))

    async def process(alert: Alert) -> bool:
        try:
            text = render_alert(alert, template_name)
        except AlertsError as exc:
            logger.error("Alert %s skipped: %s", alert.labels.get("alertname", "?"), exc)
            return False
        return await _relay(request, text)

    results = await asyncio.gather(
        *(process(alert) for alert in payload.alerts),
        return_exceptions=True,
    )
    failures = [r for r in results if isinstance(r, BaseException)]
    logger.info("Processing alerts done.")
    if failures:
        raise HTTPException(502, f"{len(failures)} of {len(results)} alerts not delivered")
    return f"{sum(1 for r in results if r is True)} sent"


@router.post("/message", response_class=PlainTextResponse)
async def send_text(request: Request, message: str = Form("")):
    """Relay operator-typed text as is."""
    if not message:
        return "empty"
    sent = await _relay(request, message)
    return "sent" if sent else "muted"
