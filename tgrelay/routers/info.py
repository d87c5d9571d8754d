"""Ruter Ingfo?"""

from __future__ import annotations

from textwrap import dedent

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from tgrelay.utils import CMD_HELP

router = APIRouter()

HTTP_HELP_TEXT = dedent(
    f"""
Jira / Alertmanager → Telegram relay (HTTP Help)

Endpoints
---------
- GET  /                     : Health check
- GET  /help                 : This text
- POST /api/v1/jira          : Jira webhook
- POST /api/v1/alert         : Alertmanager webhook (?template=alert.html)
- POST /api/v1/message       : Free text (form field "message")
- POST /tg/{{token}}           : Telegram webhook

Telegram
--------
{CMD_HELP}
"""
).strip()


@router.get("/", response_class=PlainTextResponse)
def health() -> str:
    return "ok"


@router.get("/help", response_class=PlainTextResponse)
def http_help() -> str:
    return HTTP_HELP_TEXT
