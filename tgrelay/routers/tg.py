"""Telegram router: chat commands and the ticket keyboard."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from html import escape as _esc_html
from typing import Any, Awaitable, Callable, Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse

from tgrelay.config import settings
from tgrelay.lang import Translation, get_translation
from tgrelay.schemas import TgUpdate
from tgrelay.services.alerts import AlertsError, compose_alerts_message
from tgrelay.services.mute import MuteState
from tgrelay.services.telegram import MODE_HTML, MODE_MARKDOWN, TelegramError, deliver
from tgrelay.services.tickets import TicketDrafts, TicketError, send_ticket
from tgrelay.utils import parse_duration

router = APIRouter(prefix="/tg", tags=["telegram"])

logger = logging.getLogger(__name__)

DEFAULT_MUTE = "5m"


@dataclass
class CommandContext:
    chat_id: int | str
    user_id: int
    argument: str
    translation: Translation
    mute: MuteState
    drafts: TicketDrafts
    tasks: set

    async def reply(
        self,
        text: str,
        *,
        parse_mode: str = MODE_HTML,
        markup: Optional[dict[str, Any]] = None,
    ) -> None:
        await deliver(
            text,
            chat_id=self.chat_id,
            parse_mode=parse_mode,
            mutable=False,
            reply_markup=markup,
        )

    def keyboard(self) -> dict[str, Any]:
        label = (
            self.translation.cancel
            if self.drafts.has(self.user_id)
            else self.translation.create_ticket
        )
        return {"keyboard": [[{"text": label}]], "resize_keyboard": True}


async def _unmute_later(ctx: CommandContext, delay: float) -> None:
    until = ctx.mute.until
    await asyncio.sleep(max(delay, 0))
    # A newer /mute or /unmute replaced this window.
    if ctx.mute.until is not None and ctx.mute.until == until:
        try:
            await ctx.reply(ctx.mute.unmute())
        except TelegramError as exc:
            logger.error("Unmute notice failed: %s", exc)


async def _handle_mute(ctx: CommandContext) -> None:
    try:
        duration = parse_duration(ctx.argument or DEFAULT_MUTE)
        notice = ctx.mute.mute(duration)
    except ValueError as exc:
        await ctx.reply(f"<b>{_esc_html(str(exc))}</b>")
        return
    await ctx.reply(notice)
    logger.info("Muted for %s by %s", duration, ctx.user_id)
    task = asyncio.create_task(_unmute_later(ctx, duration.total_seconds()))
    ctx.tasks.add(task)
    task.add_done_callback(ctx.tasks.discard)


async def _handle_unmute(ctx: CommandContext) -> None:
    await ctx.reply(ctx.mute.unmute())


async def _handle_alerts(ctx: CommandContext) -> None:
    try:
        text = await compose_alerts_message()
    except AlertsError as exc:
        text = _esc_html(str(exc))
    await ctx.reply(text)


async def _handle_uid(ctx: CommandContext) -> None:
    await ctx.reply(f"Your UserID is {ctx.user_id}")


async def _handle_start(ctx: CommandContext) -> None:
    await ctx.reply(ctx.translation.greeting, parse_mode=MODE_MARKDOWN, markup=ctx.keyboard())


async def _handle_create_ticket(ctx: CommandContext) -> None:
    ctx.drafts.start(ctx.user_id)
    await ctx.reply(
        ctx.translation.enter_ticket_title,
        parse_mode=MODE_MARKDOWN,
        markup=ctx.keyboard(),
    )


async def _handle_cancel(ctx: CommandContext) -> None:
    ctx.drafts.cancel(ctx.user_id)
    await ctx.reply(
        ctx.translation.ticket_canceled,
        parse_mode=MODE_MARKDOWN,
        markup=ctx.keyboard(),
    )


async def _handle_draft_text(ctx: CommandContext, text: str) -> None:
    ticket = ctx.drafts.fill(ctx.user_id, text)
    if ticket is None:
        await ctx.reply(
            ctx.translation.enter_ticket_description,
            parse_mode=MODE_MARKDOWN,
            markup=ctx.keyboard(),
        )
        return
    try:
        await send_ticket(ticket)
    except TicketError as exc:
        logger.error("Ticket from %s not created: %s", ctx.user_id, exc)
        reply = str(exc)
    else:
        reply = ctx.translation.ticket_created
    await ctx.reply(reply, parse_mode=MODE_MARKDOWN, markup=ctx.keyboard())


COMMAND_HANDLERS: dict[str, Callable[[CommandContext], Awaitable[None]]] = {
    "/mute": _handle_mute,
    "/unmute": _handle_unmute,
    "/alerts": _handle_alerts,
    "/uid": _handle_uid,
    "/start": _handle_start,
}


def _split_command(text: str) -> tuple[str, str]:
    command, *rest = text.split(maxsplit=1)
    # "/mute@my_bot 10m" in groups
    command = command.split("@", 1)[0].lower()
    return command, rest[0].strip() if rest else ""


async def _dispatch(ctx: CommandContext, text: str) -> None:
    if text.startswith("/"):
        command, ctx.argument = _split_command(text)
        handler = COMMAND_HANDLERS.get(command)
        if handler is None:
            logger.debug("Unknown command %s", command)
            return
        await handler(ctx)
        return

    if text == ctx.translation.create_ticket:
        await _handle_create_ticket(ctx)
    elif text == ctx.translation.cancel:
        await _handle_cancel(ctx)
    elif text and ctx.drafts.has(ctx.user_id):
        await _handle_draft_text(ctx, text)


@router.post("/{token}", response_class=PlainTextResponse)
async def telegram_webhook(token: str, upd: TgUpdate, request: Request):
    """Telegram webhook for the configured bot."""
    if not settings.telegram_token or token != settings.telegram_token:
        raise HTTPException(404, "Not found")

    message = upd.message
    if not message:
        return "ok"

    state = request.app.state
    if int(message.get("date") or 0) < state.started_at:
        return "ok"

    chat = message.get("chat") or {}
    from_user = message.get("from") or {}
    if not chat.get("id") or not from_user.get("id"):
        return "ok"

    ctx = CommandContext(
        chat_id=chat["id"],
        user_id=int(from_user["id"]),
        argument="",
        translation=get_translation(from_user.get("language_code")),
        mute=state.mute,
        drafts=state.drafts,
        tasks=state.tasks,
    )
    text = (message.get("text") or "").strip()
    try:
        await _dispatch(ctx, text)
    except TelegramError as exc:
        # Answer ok anyway, otherwise Telegram redelivers the update forever.
        logger.error("Reply to %s failed: %s", ctx.chat_id, exc)
    return "ok"
