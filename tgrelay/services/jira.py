"""Classification and rendering of Jira webhook events."""

from __future__ import annotations

import enum
import logging
from html import escape as _esc
from typing import Any, Callable, Iterable, Optional
from urllib.parse import urlsplit

from tgrelay.schemas import Attachment, Changelog, ChangelogItem, JiraEvent
from tgrelay.utils import strike

logger = logging.getLogger(__name__)

MAX_CHANGELOG_ITEMS = 50

JIRA_PREFIX = "jira:"


class Variant(enum.Enum):
    CREATED = "created"
    DELETED = "deleted"
    RENAMED = "renamed"
    COMMENTED = "commented"
    ASSIGNED = "assigned"
    UNASSIGNED = "unassigned"
    REASSIGNED = "reassigned"
    ATTACHMENT_CREATED = "attachment_created"
    ATTACHMENT_DELETED = "attachment_deleted"
    FIELD_UPDATED = "field_updated"
    GENERIC_UPDATE = "generic_update"
    TIME_LOGGED = "time_logged"
    UNKNOWN = "unknown"


Classified = tuple[Variant, JiraEvent]
Renderer = Callable[[JiraEvent], str]

# Variants that embed the comment themselves.
_NO_TRAILING_COMMENT = frozenset({Variant.COMMENTED, Variant.TIME_LOGGED})


def _esc_html(value: Any) -> str:
    return _esc(str(value or ""), quote=True)


def _webhook_event(event: JiraEvent) -> str:
    name = event.webhook_event or ""
    if name.startswith(JIRA_PREFIX):
        return name[len(JIRA_PREFIX):]
    return name


def _first_change(event: JiraEvent) -> Optional[ChangelogItem]:
    items = event.changelog.items
    return items[0] if items else None


def _change(event: JiraEvent) -> ChangelogItem:
    return _first_change(event) or ChangelogItem()


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def _classify_issue_updated(event: JiraEvent) -> Variant:
    change = _first_change(event)
    type_name = event.issue_event_type_name

    if type_name == "issue_updated":
        if change is not None:
            has_from = change.from_value is not None
            has_to = change.to_value is not None
            if change.field == "Attachment":
                if not has_from and has_to:
                    return Variant.ATTACHMENT_CREATED
                if has_from and not has_to:
                    return Variant.ATTACHMENT_DELETED
            elif change.field == "summary":
                return Variant.RENAMED
        return Variant.FIELD_UPDATED

    if type_name == "issue_commented":
        return Variant.COMMENTED

    if type_name == "issue_assigned":
        has_from = change is not None and change.from_value is not None
        has_to = change is not None and change.to_value is not None
        if has_to and not has_from:
            return Variant.ASSIGNED
        if has_from and not has_to:
            return Variant.UNASSIGNED
        if has_from and has_to:
            return Variant.REASSIGNED
        return Variant.UNKNOWN

    if type_name == "issue_generic":
        return Variant.GENERIC_UPDATE

    return Variant.UNKNOWN


def classify_single(event: JiraEvent) -> Optional[Variant]:
    """
    Pick the message variant for an event with at most one changelog item.

    Returns ``None`` for events that must not produce a message at all
    (worklog updates other than time spent).
    """
    kind = _webhook_event(event)
    if kind == "issue_created":
        return Variant.CREATED
    if kind == "issue_deleted":
        return Variant.DELETED
    if kind == "issue_updated":
        return _classify_issue_updated(event)
    if kind == "worklog_updated":
        change = _first_change(event)
        if change is not None and change.field == "timespent":
            return Variant.TIME_LOGGED
        return None
    return Variant.UNKNOWN


def split_changelog(event: JiraEvent) -> list[JiraEvent]:
    """
    Split an event into copies carrying one changelog item each, in order.

    Events with zero or one item are returned as is.
    """
    items = event.changelog.items
    if len(items) <= 1:
        return [event]
    if len(items) > MAX_CHANGELOG_ITEMS:
        logger.warning(
            "Changelog of %s has %d items, keeping the first %d",
            event.issue.key or "?",
            len(items),
            MAX_CHANGELOG_ITEMS,
        )
        items = items[:MAX_CHANGELOG_ITEMS]
    return [
        event.model_copy(update={"changelog": Changelog(items=[item])})
        for item in items
    ]


def classify(event: JiraEvent) -> list[Classified]:
    """Classify an event into ``(variant, single-item event)`` pairs."""
    pairs: list[Classified] = []
    for part in split_changelog(event):
        variant = classify_single(part)
        if variant is None:
            logger.debug(
                "Suppressed %s on %s (field=%s)",
                part.webhook_event,
                part.issue.key or "?",
                _change(part).field or "-",
            )
            continue
        pairs.append((variant, part))
    return pairs


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def issue_url(event: JiraEvent) -> str:
    """Browsable issue URL built from the issue's REST ``self`` link."""
    try:
        parts = urlsplit(event.issue.self_url or "")
    except ValueError:
        return ""
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme}://{parts.netloc}/browse/{event.issue.key}"


def issue_link(event: JiraEvent, text: Optional[str] = None) -> str:
    """
    Anchor to the issue. ``text`` is used verbatim (already escaped) when given,
    otherwise the escaped issue summary.
    """
    label = text if text is not None else _esc_html(event.issue.fields.summary)
    return f'<a href="{_esc_html(issue_url(event))}">{label}</a>'


def _old_text(change: ChangelogItem) -> str:
    if change.from_string is not None:
        return change.from_string
    return "" if change.from_value is None else str(change.from_value)


def _new_text(change: ChangelogItem) -> str:
    if change.to_string is not None:
        return change.to_string
    return "" if change.to_value is None else str(change.to_value)


def _struck(value: Optional[str]) -> str:
    return _esc_html(strike(value or ""))


def with_comment(text: str, event: JiraEvent) -> str:
    body = event.comment.body
    if not body:
        return text
    return f"{text}\n{_esc_html(body)}"


def _user(event: JiraEvent) -> str:
    return _esc_html(event.user.display_name)


# ---------------------------------------------------------------------------
# Per-variant templates
# ---------------------------------------------------------------------------


def _render_created(event: JiraEvent) -> str:
    return f"{_user(event)} created {issue_link(event)}"


def _render_deleted(event: JiraEvent) -> str:
    return f"{_user(event)} deleted {issue_link(event)}"


def _render_renamed(event: JiraEvent) -> str:
    change = _change(event)
    old = issue_link(event, _struck(_old_text(change)))
    new = issue_link(event, _esc_html(_new_text(change)))
    return f"{_user(event)} renamed {old} to {new}"


def _render_commented(event: JiraEvent) -> str:
    return (
        f"{issue_link(event)}\n"
        f"<b>{_user(event)}:</b> {_esc_html(event.comment.body)}"
    )


def _render_assigned(event: JiraEvent) -> str:
    change = _change(event)
    return f"{issue_link(event)} assigned to {_esc_html(_new_text(change))}"


def _render_unassigned(event: JiraEvent) -> str:
    change = _change(event)
    return f"{issue_link(event)} unassigned from {_struck(_old_text(change))}"


def _render_reassigned(event: JiraEvent) -> str:
    change = _change(event)
    return (
        f"{issue_link(event)} reassigned from {_struck(_old_text(change))}"
        f" to {_esc_html(_new_text(change))}"
    )


def _render_field_updated(event: JiraEvent) -> str:
    change = _change(event)
    return (
        f"{issue_link(event)}. {_user(event)} changed <b>{_esc_html(change.field)}</b>"
        f' from "{_struck(_old_text(change))}" to "{_esc_html(_new_text(change))}"'
    )


def _find_attachment(event: JiraEvent, change: ChangelogItem) -> Optional[Attachment]:
    index = _as_int(change.to_value)
    attachments = event.issue.fields.attachment
    if index is None or not 0 <= index < len(attachments):
        return None
    return attachments[index]


def _render_attachment_created(event: JiraEvent) -> str:
    change = _change(event)
    attachment = _find_attachment(event, change)
    if attachment is None:
        logger.info(
            "Attachment %r not found on %s, using plain text",
            change.to_value,
            event.issue.key or "?",
        )
        return f"{_user(event)} attached {_esc_html(_new_text(change))}"
    return (
        f'{_user(event)} attached <a href="{_esc_html(attachment.content)}">'
        f"{_esc_html(attachment.filename)}</a>\n"
        f"<b>Type:</b> {_esc_html(attachment.mime_type)}\n"
        f"<b>Size:</b> {attachment.size} bytes"
    )


def _render_attachment_deleted(event: JiraEvent) -> str:
    change = _change(event)
    return f"{_user(event)} deleted {_struck(_old_text(change))}"


def _render_time_logged(event: JiraEvent) -> str:
    change = _change(event)
    spent = (_as_int(change.to_value) or 0) - (_as_int(change.from_value) or 0)

    worklogs = event.issue.fields.worklog.worklogs
    comment = worklogs[-1].comment if worklogs else ""
    if comment:
        comment = "\n" + _esc_html(comment)

    remaining = _esc_html(event.issue.fields.timetracking.remaining_estimate)
    return (
        f"{issue_link(event)}\n{_user(event)} contributed <b>{spent}</b>"
        f" ({remaining} remains){comment}"
    )


def _render_unknown(event: JiraEvent) -> str:
    return _esc_html(repr(event))


RENDERERS: dict[Variant, Renderer] = {
    Variant.CREATED: _render_created,
    Variant.DELETED: _render_deleted,
    Variant.RENAMED: _render_renamed,
    Variant.COMMENTED: _render_commented,
    Variant.ASSIGNED: _render_assigned,
    Variant.UNASSIGNED: _render_unassigned,
    Variant.REASSIGNED: _render_reassigned,
    Variant.ATTACHMENT_CREATED: _render_attachment_created,
    Variant.ATTACHMENT_DELETED: _render_attachment_deleted,
    Variant.FIELD_UPDATED: _render_field_updated,
    Variant.GENERIC_UPDATE: _render_field_updated,
    Variant.TIME_LOGGED: _render_time_logged,
    Variant.UNKNOWN: _render_unknown,
}


def render(variant: Variant, event: JiraEvent) -> str:
    """Render one classified event as Telegram HTML."""
    handler = RENDERERS.get(variant, _render_unknown)
    try:
        text = handler(event)
    except Exception:  # never lose an event over a template bug
        logger.exception("Rendering %s failed for %s", variant.name, event.issue.key or "?")
        variant, text = Variant.UNKNOWN, _render_unknown(event)
    if variant in _NO_TRAILING_COMMENT:
        return text
    return with_comment(text, event)


def render_sequence(pairs: Iterable[Classified]) -> str:
    parts = [render(variant, event) for variant, event in pairs]
    return "\n\n".join(part for part in parts if part)


def compose_message(event: JiraEvent) -> str:
    """Full message for a webhook delivery; empty when nothing should be sent."""
    return render_sequence(classify(event))
