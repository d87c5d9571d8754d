"""Yet another tele services"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

import httpx

from tgrelay.config import settings
from tgrelay.services.mute import MuteState

TELEGRAM_API_BASE = "https://api.telegram.org"
HTTP_TIMEOUT_SECONDS = 15
MESSAGE_LIMIT = 4096

MODE_HTML = "HTML"
MODE_MARKDOWN = "Markdown"

JSONDict = dict[str, Any]

logger = logging.getLogger(__name__)


class TelegramError(RuntimeError):
    """Raised when the Bot API rejects a call or cannot be reached."""


def _normalize_newlines(s: str) -> str:
    return (s or "").replace("\r\n", "\n").replace("\r", "\n")


def _back_off_markup(t: str, cut: int) -> int:
    """Move a hard cut to before an entity or tag that is still open at ``cut``."""
    # "&" first: backing off from an entity can reopen an enclosing tag.
    for opener, closer in (("&", ";"), ("<", ">")):
        start = t.rfind(opener, 0, cut)
        if start > 0 and t.find(closer, start, cut) == -1:
            cut = start
    return cut


def _split_html(text: str, limit: int = MESSAGE_LIMIT) -> Iterable[str]:
    """Split text chars max 4096"""
    t = text or ""
    while len(t) > limit:
        cut = t.rfind("\n", 0, limit)
        if cut <= 0:
            cut = _back_off_markup(t, limit)
        yield t[:cut]
        t = t[cut:].lstrip("\n")
    if t:
        yield t


async def _call(client: httpx.AsyncClient, method: str, url: str, **kwargs: Any) -> JSONDict:
    try:
        resp = await client.request(method, url, **kwargs)
    except httpx.HTTPError as exc:
        raise TelegramError(f"Telegram unreachable: {exc}") from exc
    try:
        data = resp.json()
    except ValueError:
        data = {}
    if resp.status_code >= 300 or not data.get("ok", True):
        raise TelegramError(f"Telegram error: {resp.status_code} {resp.text}")
    return data


async def send_message(
    token: str,
    chat_id: int | str,
    text: str,
    *,
    parse_mode: str = MODE_HTML,
    disable_web_page_preview: bool = True,
    auto_split: bool = False,
    reply_markup: Optional[JSONDict] = None,
) -> JSONDict | list[JSONDict]:
    """Send a message; with ``auto_split`` long text goes out as several messages."""
    api = f"{TELEGRAM_API_BASE}/bot{token}/sendMessage"
    rendered = _normalize_newlines(text)

    payload_base: JSONDict = {
        "chat_id": chat_id,
        "text": rendered,
        "parse_mode": parse_mode,
        "disable_web_page_preview": disable_web_page_preview,
    }
    if reply_markup is not None:
        payload_base["reply_markup"] = reply_markup

    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
        # Single send
        if not auto_split or len(rendered) <= MESSAGE_LIMIT:
            return await _call(client, "POST", api, json=payload_base)

        # Auto split
        results: list[JSONDict] = []
        for chunk in _split_html(rendered, MESSAGE_LIMIT):
            p = dict(payload_base)
            p["text"] = chunk
            results.append(await _call(client, "POST", api, json=p))
        return results


async def set_telegram_webhook(
    token: str,
    base_url: Optional[str] = None,
    *,
    drop_pending_updates: bool = True,
) -> JSONDict:
    """Set Telegram webhook to {base}/tg/{token}."""
    base = (base_url or settings.public_base_url).rstrip("/")
    payload: JSONDict = {
        "url": f"{base}/tg/{token}",
        "drop_pending_updates": drop_pending_updates,
    }
    url_api = f"{TELEGRAM_API_BASE}/bot{token}/setWebhook"
    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
        return await _call(client, "POST", url_api, json=payload)


async def deliver(
    text: str,
    *,
    chat_id: int | str | None = None,
    parse_mode: str = MODE_HTML,
    mutable: bool = True,
    mute: Optional[MuteState] = None,
    reply_markup: Optional[JSONDict] = None,
    token: Optional[str] = None,
) -> bool:
    """
    Send ``text`` to ``chat_id`` (the configured chat by default).

    Mutable messages are dropped while ``mute`` is active. Returns whether a
    message went out.
    """
    if not text:
        return False
    if mutable and mute is not None and mute.is_muted():
        logger.info("Muted, dropping message (%d chars)", len(text))
        return False
    target = chat_id if chat_id is not None else settings.telegram_chat_id
    if not target:
        raise TelegramError("No destination chat configured (TELEGRAM_CHAT_ID)")
    await send_message(
        token or settings.telegram_token,
        target,
        text,
        parse_mode=parse_mode,
        reply_markup=reply_markup,
        auto_split=True,
    )
    return True
