"""Mute window for relayed (mutable) messages."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional

from tgrelay.timezone import now_local

MUTED_FORMAT = "%d.%m.%Y %H:%M:%S %Z"


@dataclass
class MuteState:
    """
    Holds the moment until which relayed events are dropped.

    ``until`` is ``None`` when the bot has never been muted or was unmuted.
    """

    until: Optional[dt.datetime] = None

    def is_muted(self, now: Optional[dt.datetime] = None) -> bool:
        if self.until is None:
            return False
        return (now or now_local()) < self.until

    def mute(self, duration: dt.timedelta, now: Optional[dt.datetime] = None) -> str:
        try:
            until = (now or now_local()) + duration
        except OverflowError as exc:
            raise ValueError(f"mute duration {duration} is out of range") from exc
        self.until = until
        return f"<b>Muted until {self.until.strftime(MUTED_FORMAT)}</b>"

    def unmute(self) -> str:
        if self.until is None:
            return "<b>Oh, I am not muted!</b>"
        self.until = None
        return "<b>Unmuted</b>"
