from __future__ import annotations

import asyncio
import base64
import json

import httpx
import pytest

from tgrelay.config import Settings
from tgrelay.services import tickets

CONFIG = Settings(
    jira_url="http://jira.local:9005/",
    jira_user="bot",
    jira_password="secret",
    jira_project_key="OPS",
    jira_issue_type_id=10002,
    jira_reporter="admin",
    telegram_jira_map="111,alice;222,bob",
)


def test_draft_is_filled_title_then_description() -> None:
    drafts = tickets.TicketDrafts(config=CONFIG)
    drafts.start(111)

    assert drafts.has(111)
    assert drafts.fill(111, "Printer on fire") is None

    ticket = drafts.fill(111, "Third floor, again")

    assert ticket is not None
    assert ticket.fields.summary == "Printer on fire"
    assert ticket.fields.description == "Third floor, again"
    assert ticket.fields.project.key == "OPS"
    assert ticket.fields.issuetype.id == 10002
    assert ticket.fields.reporter.name == "alice"
    assert not drafts.has(111)


def test_unmapped_user_reports_as_default_reporter() -> None:
    drafts = tickets.TicketDrafts(config=CONFIG)

    draft = drafts.start(999)

    assert draft.fields.reporter.name == "admin"


def test_cancel_and_fill_without_draft() -> None:
    drafts = tickets.TicketDrafts(config=CONFIG)
    drafts.start(222)

    assert drafts.cancel(222) is True
    assert drafts.cancel(222) is False
    assert drafts.fill(222, "text") is None


def _patch_client(monkeypatch, handler) -> None:
    real_client = httpx.AsyncClient
    monkeypatch.setattr(
        tickets.httpx,
        "AsyncClient",
        lambda *a, **kw: real_client(*a, transport=httpx.MockTransport(handler), **kw),
    )


def _ready_ticket():
    drafts = tickets.TicketDrafts(config=CONFIG)
    drafts.start(222)
    drafts.fill(222, "VPN down")
    return drafts.fill(222, "since 9am")


def test_send_ticket_posts_issue_with_basic_auth(monkeypatch) -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"id": "10050", "key": "OPS-50"})

    _patch_client(monkeypatch, handler)

    created = asyncio.run(tickets.send_ticket(_ready_ticket(), CONFIG))

    assert created["key"] == "OPS-50"
    assert seen["url"] == "http://jira.local:9005/rest/api/2/issue/"
    assert seen["auth"] == "Basic " + base64.b64encode(b"bot:secret").decode()
    assert seen["body"] == {
        "fields": {
            "project": {"key": "OPS"},
            "summary": "VPN down",
            "issuetype": {"id": 10002},
            "reporter": {"name": "bob"},
            "description": "since 9am",
        }
    }


def test_send_ticket_rejects_non_created_status(monkeypatch) -> None:
    _patch_client(monkeypatch, lambda request: httpx.Response(400, json={"errors": {}}))

    with pytest.raises(tickets.TicketError, match="400 Bad Request"):
        asyncio.run(tickets.send_ticket(_ready_ticket(), CONFIG))
