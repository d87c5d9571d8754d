"""Alertmanager alerts rendered through Jinja2 templates."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import httpx
from jinja2 import TemplateError

from tgrelay.config import settings
from tgrelay.schemas import Alert, AlertsResponse
from tgrelay.templating import get_templates

DEFAULT_TEMPLATE = "alert.html"
HTTP_TIMEOUT_SECONDS = 10

logger = logging.getLogger(__name__)


class AlertsError(RuntimeError):
    """Raised when alerts cannot be fetched or rendered."""


def render_alert(
    alert: Alert,
    template_name: str = DEFAULT_TEMPLATE,
    templates_path: Optional[str] = None,
) -> str:
    """
    Render one alert with the named template.

    Raises
    ------
    AlertsError
        If the template is missing or fails to render.
    """
    templates = get_templates(templates_path)
    try:
        template = templates.get_template(template_name)
        return template.render(alert=alert).strip()
    except TemplateError as exc:
        raise AlertsError(f"template {template_name}: {exc}") from exc


def _job_header(job: str) -> str:
    return f"\n<b>{job.upper().replace('_', ' ')}:</b>"


def compose_alerts_digest(
    alerts: Iterable[Alert],
    template_name: str = DEFAULT_TEMPLATE,
    templates_path: Optional[str] = None,
) -> str:
    """Render alerts grouped under their ``job`` label, jobs sorted by name."""
    by_job: dict[str, list[str]] = {}
    for alert in alerts:
        try:
            text = render_alert(alert, template_name, templates_path)
        except AlertsError as exc:
            text = str(exc)
        by_job.setdefault(alert.labels.get("job", ""), []).append(text)

    lines: list[str] = []
    for job in sorted(by_job):
        lines.append(_job_header(job))
        lines.extend(by_job[job])
    return "\n".join(lines)


async def fetch_alerts(endpoint: Optional[str] = None) -> list[Alert]:
    """GET ``<alertmanager>/api/v1/alerts``."""
    base = (endpoint or settings.alertmanager_url).rstrip("/")
    if not base:
        raise AlertsError("Alertmanager endpoint is not configured")
    url = f"{base}/api/v1/alerts"
    try:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
            resp = await client.get(url)
        resp.raise_for_status()
        payload = AlertsResponse.model_validate(resp.json())
    except httpx.HTTPError as exc:
        raise AlertsError(f"Alertmanager request failed: {exc}") from exc
    except ValueError as exc:
        raise AlertsError(f"Alertmanager returned invalid JSON: {exc}") from exc
    logger.info("Fetched %d alerts from %s", len(payload.data), base)
    return payload.data


async def compose_alerts_message(endpoint: Optional[str] = None) -> str:
    alerts = await fetch_alerts(endpoint)
    if not alerts:
        return "<b>No active alerts</b>"
    return compose_alerts_digest(alerts)
