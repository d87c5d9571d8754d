"""Jira ticket drafts collected over chat, and their submission."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from tgrelay.config import Settings, settings
from tgrelay.schemas import CreateTicketRequest, IssueType, Person, Project, TicketFields
from tgrelay.utils import parse_tj_map

HTTP_TIMEOUT_SECONDS = 15

logger = logging.getLogger(__name__)


class TicketError(RuntimeError):
    """Raised when Jira refuses or cannot receive a new ticket."""


@dataclass
class TicketDrafts:
    """
    In-progress tickets keyed by Telegram user id.

    A draft is filled in two steps: the first text becomes the summary, the
    second the description, after which the draft is ready to submit.
    """

    config: Settings = settings
    drafts: dict[int, CreateTicketRequest] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.user_map = parse_tj_map(self.config.telegram_jira_map)

    def has(self, user_id: int) -> bool:
        return user_id in self.drafts

    def start(self, user_id: int) -> CreateTicketRequest:
        reporter = self.user_map.get(user_id) or self.config.jira_reporter
        draft = CreateTicketRequest(
            fields=TicketFields(
                project=Project(key=self.config.jira_project_key),
                issuetype=IssueType(id=self.config.jira_issue_type_id),
                reporter=Person(name=reporter),
            )
        )
        self.drafts[user_id] = draft
        return draft

    def cancel(self, user_id: int) -> bool:
        return self.drafts.pop(user_id, None) is not None

    def fill(self, user_id: int, text: str) -> Optional[CreateTicketRequest]:
        """
        Put ``text`` into the next empty field of the user's draft.

        Returns the completed draft (and forgets it) once the description is
        set, otherwise ``None``.
        """
        draft = self.drafts.get(user_id)
        if draft is None:
            return None
        if not draft.fields.summary:
            draft.fields.summary = text
            return None
        draft.fields.description = text
        del self.drafts[user_id]
        return draft


async def send_ticket(
    ticket: CreateTicketRequest,
    config: Settings = settings,
) -> dict[str, Any]:
    """POST the ticket to Jira and return the created issue reference."""
    url = f"{config.jira_url.rstrip('/')}/rest/api/2/issue/"
    body = ticket.model_dump(exclude_none=True)
    try:
        async with httpx.AsyncClient(
            timeout=HTTP_TIMEOUT_SECONDS,
            auth=(config.jira_user, config.jira_password),
        ) as client:
            resp = await client.post(url, json=body)
    except httpx.HTTPError as exc:
        raise TicketError(f"Jira unreachable: {exc}") from exc

    if resp.status_code != 201:
        raise TicketError(f"{resp.status_code} {resp.reason_phrase}")
    try:
        created = resp.json()
    except ValueError:
        created = {}
    logger.info("Created Jira ticket %s", created.get("key", "?"))
    return created
