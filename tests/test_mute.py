from __future__ import annotations

import datetime as dt

import pytest

from tgrelay.services.mute import MuteState

NOW = dt.datetime(2024, 3, 1, 12, 0, 0, tzinfo=dt.timezone.utc)


def test_fresh_state_is_not_muted() -> None:
    state = MuteState()

    assert not state.is_muted(NOW)
    assert state.unmute() == "<b>Oh, I am not muted!</b>"


def test_mute_window_expires() -> None:
    state = MuteState()

    text = state.mute(dt.timedelta(minutes=5), now=NOW)

    assert text == "<b>Muted until 01.03.2024 12:05:00 UTC</b>"
    assert state.is_muted(NOW + dt.timedelta(minutes=4))
    assert not state.is_muted(NOW + dt.timedelta(minutes=5))


def test_unmute_clears_window() -> None:
    state = MuteState()
    state.mute(dt.timedelta(hours=1), now=NOW)

    assert state.unmute() == "<b>Unmuted</b>"
    assert not state.is_muted(NOW)
    assert state.until is None


def test_mute_past_datetime_range_is_rejected() -> None:
    state = MuteState()
    state.mute(dt.timedelta(minutes=5), now=NOW)

    with pytest.raises(ValueError, match="out of range"):
        state.mute(dt.timedelta(days=999_999_999), now=NOW)

    assert state.until == NOW + dt.timedelta(minutes=5)
