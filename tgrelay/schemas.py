"""Request payload models."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class _Payload(BaseModel):
    """Base for inbound JSON: unknown fields are ignored, aliases or names accepted."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # Jira sends explicit nulls for missing objects; let the defaults apply.
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class JiraUser(_Payload):
    name: str = ""
    display_name: str = Field("", alias="displayName")


class Attachment(_Payload):
    filename: str = ""
    content: str = ""
    mime_type: str = Field("", alias="mimeType")
    size: int = 0


class Worklog(_Payload):
    comment: str = ""


class WorklogPage(_Payload):
    worklogs: list[Worklog] = Field(default_factory=list)


class TimeTracking(_Payload):
    remaining_estimate: str = Field("", alias="remainingEstimate")


class IssueFields(_Payload):
    summary: str = ""
    attachment: list[Attachment] = Field(default_factory=list)
    worklog: WorklogPage = Field(default_factory=WorklogPage)
    timetracking: TimeTracking = Field(default_factory=TimeTracking)


class Issue(_Payload):
    key: str = ""
    self_url: str = Field("", alias="self")
    fields: IssueFields = Field(default_factory=IssueFields)


class ChangelogItem(_Payload):
    """
    One field-level change.

    ``from_value``/``to_value`` keep the raw JSON value; ``None`` means the value
    did not exist before/after the change (an empty string is still a value).
    """

    field: str = ""
    from_value: Any = Field(None, alias="from")
    to_value: Any = Field(None, alias="to")
    from_string: Optional[str] = Field(None, alias="fromString")
    to_string: Optional[str] = Field(None, alias="toString")


class Changelog(_Payload):
    items: list[ChangelogItem] = Field(default_factory=list)


class Comment(_Payload):
    body: str = ""


class JiraEvent(_Payload):
    """A Jira webhook delivery."""

    webhook_event: str = Field("", alias="webhookEvent")
    issue_event_type_name: str = Field(
        "",
        validation_alias=AliasChoices("issue_event_type_name", "issueEventTypeName"),
    )
    user: JiraUser = Field(default_factory=JiraUser)
    issue: Issue = Field(default_factory=Issue)
    changelog: Changelog = Field(default_factory=Changelog)
    comment: Comment = Field(default_factory=Comment)


class Alert(_Payload):
    """A single Alertmanager alert, as sent to webhook receivers and by ``/api/v1/alerts``."""

    status: Any = ""
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    starts_at: Optional[str] = Field(None, alias="startsAt")
    ends_at: Optional[str] = Field(None, alias="endsAt")
    generator_url: str = Field("", alias="generatorURL")

    @property
    def state(self) -> str:
        # Webhooks send "firing"/"resolved"; the v1 API sends {"state": "active", ...}.
        if isinstance(self.status, dict):
            return str(self.status.get("state") or "")
        return str(self.status or "")


class AlertManagerRequest(_Payload):
    alerts: list[Alert] = Field(default_factory=list)


class AlertsResponse(_Payload):
    status: str = ""
    data: list[Alert] = Field(default_factory=list)


class TgUpdate(BaseModel):
    """
    Minimal model for Telegram Update.
    Only fields used by this app are included.
    """

    model_config = ConfigDict(extra="allow")

    update_id: Optional[int] = None
    message: Optional[dict] = None
    edited_message: Optional[dict] = None
    channel_post: Optional[dict] = None
    callback_query: Optional[dict] = None


class Person(BaseModel):
    name: str


class Project(BaseModel):
    key: str


class IssueType(BaseModel):
    id: int


class TicketFields(BaseModel):
    project: Project
    summary: str = ""
    issuetype: IssueType
    reporter: Optional[Person] = None
    assignee: Optional[Person] = None
    description: str = ""


class CreateTicketRequest(BaseModel):
    """Body of ``POST /rest/api/2/issue/``."""

    fields: TicketFields
