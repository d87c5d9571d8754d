from __future__ import annotations

from typing import Any

import pytest

from tgrelay.config import Settings
from tgrelay.schemas import JiraEvent
from tgrelay.services import telegram

SELF_URL = "https://jira.example.com/rest/api/2/issue/10001"


def make_event(
    webhook_event: str = "jira:issue_updated",
    type_name: str = "issue_updated",
    items: list[dict[str, Any]] | None = None,
    comment: str = "",
    **issue_fields: Any,
) -> JiraEvent:
    fields: dict[str, Any] = {"summary": "Broken login"}
    fields.update(issue_fields)
    payload: dict[str, Any] = {
        "webhookEvent": webhook_event,
        "issue_event_type_name": type_name,
        "user": {"name": "jdoe", "displayName": "John Doe"},
        "issue": {"key": "OPS-7", "self": SELF_URL, "fields": fields},
        "changelog": {"items": items or []},
    }
    if comment:
        payload["comment"] = {"body": comment}
    return JiraEvent.model_validate(payload)


@pytest.fixture
def sent(monkeypatch) -> list[dict[str, Any]]:
    """Capture Telegram sends instead of calling the Bot API."""
    calls: list[dict[str, Any]] = []

    async def fake_send_message(token, chat_id, text, **kwargs):
        calls.append({"token": token, "chat_id": chat_id, "text": text, **kwargs})
        return {"ok": True}

    monkeypatch.setattr(telegram, "send_message", fake_send_message)
    monkeypatch.setattr(
        telegram,
        "settings",
        Settings(telegram_token="123:abc", telegram_chat_id="-100500"),
    )
    return calls
