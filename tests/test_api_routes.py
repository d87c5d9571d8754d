from __future__ import annotations

import datetime as dt
import logging

import pytest
from fastapi.testclient import TestClient

from tgrelay.app import app
from tgrelay.logging_utils import loggable_path
from tgrelay.services import telegram

JIRA_CREATED = {
    "webhookEvent": "jira:issue_created",
    "issue_event_type_name": "issue_created",
    "user": {"displayName": "John Doe"},
    "issue": {
        "key": "OPS-7",
        "self": "https://jira.example.com/rest/api/2/issue/10001",
        "fields": {"summary": "Broken login"},
    },
    "changelog": None,
    "comment": None,
}


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def test_health(client) -> None:
    resp = client.get("/")

    assert resp.status_code == 200
    assert resp.text == "ok"
    assert resp.headers["X-Request-ID"]


def test_incoming_request_id_is_echoed(client) -> None:
    resp = client.get("/help", headers={"X-Request-ID": "jira-delivery-1"})

    assert resp.headers["X-Request-ID"] == "jira-delivery-1"


def test_loggable_path_masks_the_bot_token() -> None:
    assert loggable_path("/tg/123:abc") == "/tg/***"
    assert loggable_path("/api/v1/jira") == "/api/v1/jira"


def test_access_line_is_logged_without_the_token(client, caplog) -> None:
    caplog.set_level(logging.INFO, logger="tgrelay.access")

    client.post("/tg/123:abc", json={"update_id": 1})

    lines = [r.getMessage() for r in caplog.records if r.name == "tgrelay.access"]
    assert lines
    assert lines[-1].startswith("POST /tg/*** -> ")
    assert all("123:abc" not in line for line in lines)


def test_jira_event_is_relayed(client, sent) -> None:
    resp = client.post("/api/v1/jira", json=JIRA_CREATED)

    assert resp.status_code == 200
    assert resp.text == "sent"
    assert sent[0]["chat_id"] == "-100500"
    assert sent[0]["text"] == (
        'John Doe created <a href="https://jira.example.com/browse/OPS-7">Broken login</a>'
    )
    assert sent[0]["parse_mode"] == "HTML"


def test_multi_field_update_goes_out_as_one_message(client, sent) -> None:
    payload = dict(JIRA_CREATED)
    payload["webhookEvent"] = "jira:issue_updated"
    payload["issue_event_type_name"] = "issue_updated"
    payload["changelog"] = {
        "items": [
            {"field": "summary", "fromString": "Old", "toString": "New"},
            {"field": "priority", "fromString": "Low", "toString": "High"},
        ]
    }

    client.post("/api/v1/jira", json=payload)

    assert len(sent) == 1
    assert len(sent[0]["text"].split("\n\n")) == 2


def test_suppressed_worklog_is_not_sent(client, sent) -> None:
    payload = dict(JIRA_CREATED)
    payload["webhookEvent"] = "jira:worklog_updated"
    payload["changelog"] = {"items": [{"field": "WorklogId", "to": "1"}]}

    resp = client.post("/api/v1/jira", json=payload)

    assert resp.text == "ignored"
    assert sent == []


def test_invalid_jira_body_is_rejected(client, sent) -> None:
    resp = client.post(
        "/api/v1/jira",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert sent == []


def test_jira_event_dropped_while_muted(client, sent) -> None:
    client.app.state.mute.mute(dt.timedelta(minutes=5))

    resp = client.post("/api/v1/jira", json=JIRA_CREATED)

    assert resp.text == "muted"
    assert sent == []


def test_delivery_failure_maps_to_bad_gateway(client, sent, monkeypatch) -> None:
    async def failing_send(*args, **kwargs):
        raise telegram.TelegramError("Telegram error: 403 Forbidden")

    monkeypatch.setattr(telegram, "send_message", failing_send)

    resp = client.post("/api/v1/jira", json=JIRA_CREATED)

    assert resp.status_code == 502


def test_alertmanager_batch_renders_each_alert(client, sent) -> None:
    payload = {
        "receiver": "telegram",
        "status": "firing",
        "alerts": [
            {"status": "firing", "labels": {"alertname": "DiskFull", "job": "node"}},
            {"status": "resolved", "labels": {"alertname": "Latency", "job": "api"}},
        ],
    }

    resp = client.post("/api/v1/alert", json=payload)

    assert resp.status_code == 200
    assert resp.text == "2 sent"
    texts = sorted(call["text"] for call in sent)
    assert any("<b>DiskFull</b>" in t for t in texts)
    assert any("<b>Latency</b>" in t for t in texts)


def test_alert_with_missing_template_is_skipped(client, sent) -> None:
    payload = {"alerts": [{"status": "firing", "labels": {"alertname": "X"}}]}

    resp = client.post("/api/v1/alert?template=missing.html", json=payload)

    assert resp.status_code == 200
    assert resp.text == "0 sent"
    assert sent == []


def test_free_text_message(client, sent) -> None:
    resp = client.post("/api/v1/message", data={"message": "<b>deploy</b> started"})

    assert resp.text == "sent"
    assert sent[0]["text"] == "<b>deploy</b> started"


def test_empty_free_text_is_ignored(client, sent) -> None:
    resp = client.post("/api/v1/message", data={"message": ""})

    assert resp.text == "empty"
    assert sent == []
