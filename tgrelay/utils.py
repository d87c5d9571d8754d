"""Small helpers shared by the services and routers."""

from __future__ import annotations

import datetime as dt
import re

CMD_HELP = """Chat commands:
- /mute [duration] : silence relayed events (default 5m, e.g. 90s, 1h30m)
- /unmute          : resume relaying events
- /alerts          : list firing Alertmanager alerts grouped by job
- /uid             : show your Telegram user ID
- /start           : greeting and the ticket keyboard"""

STRIKE_MARK = "\u0336"

_DURATION_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)"
_DURATION_RE = re.compile(rf"^([+-]?)((?:{_DURATION_PART})+)$")
_DURATION_PART_RE = re.compile(_DURATION_PART)
# Largest duration Go accepts: 2562047h47m16.854775807s.
MAX_DURATION_SECONDS = (2**63 - 1) / 1e9


def strike(text: str) -> str:
    """
    Render ``text`` struck through with U+0336 COMBINING LONG STROKE OVERLAY.

    A marker goes before every character plus one trailing marker, so
    ``strike("abc")`` holds 4 markers and ``strike("")`` is ``""``.
    """
    if not text:
        return ""
    return STRIKE_MARK + STRIKE_MARK.join(text) + STRIKE_MARK


def parse_duration(value: str) -> dt.timedelta:
    """
    Parse a Go-style duration string such as ``300ms``, ``1.5h`` or ``2h45m``.

    Raises
    ------
    ValueError
        If the string is not a valid duration or does not fit in int64
        nanoseconds.
    """
    raw = (value or "").strip()
    if raw in ("0", "+0", "-0"):
        return dt.timedelta(0)
    match = _DURATION_RE.match(raw)
    if not match:
        raise ValueError(f"time: invalid duration {raw!r}")
    seconds = 0.0
    for number, unit in _DURATION_PART_RE.findall(match.group(2)):
        seconds += float(number) * _DURATION_UNITS[unit]
    if match.group(1) == "-":
        seconds = -seconds
    if abs(seconds) > MAX_DURATION_SECONDS:
        raise ValueError(f"time: invalid duration {raw!r}")
    return dt.timedelta(seconds=seconds)


def parse_tj_map(raw: str) -> dict[int, str]:
    """
    Parse ``<telegram_user_id>,<jira_user_name>;...`` into a mapping.

    Malformed rows are skipped.
    """
    result: dict[int, str] = {}
    for row in (raw or "").split(";"):
        cell = [part.strip() for part in row.split(",", 1)]
        if len(cell) != 2 or not cell[1]:
            continue
        try:
            result[int(cell[0])] = cell[1]
        except ValueError:
            continue
    return result
