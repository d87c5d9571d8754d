"""Chat UI translations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Translation:
    enter_ticket_title: str
    enter_ticket_description: str
    create_ticket: str
    cancel: str
    ticket_created: str
    ticket_canceled: str
    greeting: str


RU = Translation(
    enter_ticket_title="Введите название тикета",
    enter_ticket_description="Введите описание тикета",
    ticket_created="Тикет создан!",
    ticket_canceled="Тикет отменён",
    greeting="Вас приветствует телеграм бот Jira!",
    create_ticket="🖋 Создать тикет",
    cancel="🚫 Отмена",
)

EN = Translation(
    enter_ticket_title="Enter ticket title",
    enter_ticket_description="Enter ticket description",
    ticket_created="Ticket created!",
    ticket_canceled="Ticket canceled",
    greeting="Telegram bot for Jira welcomes you!",
    create_ticket="🖋 Create ticket",
    cancel="🚫 Cancel",
)

LANG: dict[str, Translation] = {"ru": RU, "ru-RU": RU, "en": EN, "en-US": EN}


def get_translation(language_code: Optional[str]) -> Translation:
    """Translation for a Telegram ``language_code``, English by default."""
    return LANG.get(language_code or "", EN)
