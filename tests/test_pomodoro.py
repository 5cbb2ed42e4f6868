import threading
from dataclasses import replace

import pytest

from sprintly.pomodoro import PomodoroTicker, format_time
from sprintly.reducer import get_initial_state
from sprintly.store import Store


@pytest.mark.parametrize(
    "seconds, expected",
    [(1500, "25:00"), (300, "05:00"), (59, "00:59"), (0, "00:00"), (-3, "00:00")],
)
def test_format_time(seconds, expected):
    assert format_time(seconds) == expected


def test_ticker_idle_when_pomodoro_inactive(monkeypatch):
    monkeypatch.setenv("SPRINTLY_DISABLE_WATCHERS", "0")
    ticker = PomodoroTicker(Store(), interval=0.01)

    assert ticker.ensure_running() is False
    assert ticker.running is False


def test_ticker_runs_countdown_to_zero(monkeypatch):
    monkeypatch.setenv("SPRINTLY_DISABLE_WATCHERS", "0")
    store = Store(initial_state=replace(get_initial_state(), pomodoro_active=True, pomodoro_remaining=3))
    finished = threading.Event()
    ticker = PomodoroTicker(store, interval=0.01, on_finished=lambda state: finished.set())

    assert ticker.ensure_running() is True
    assert ticker.ensure_running() is False

    assert finished.wait(timeout=5)
    ticker.stop()
    assert store.state.pomodoro_remaining == 0
    assert store.state.pomodoro_total_focus == 3
    assert store.state.pomodoro_active is False


def test_stop_cancels_running_ticker(monkeypatch):
    monkeypatch.setenv("SPRINTLY_DISABLE_WATCHERS", "0")
    store = Store(initial_state=replace(get_initial_state(), pomodoro_active=True))
    ticker = PomodoroTicker(store, interval=0.05)

    ticker.ensure_running()
    ticker.stop()

    assert ticker.running is False
    assert store.state.pomodoro_remaining > 1400


def test_tick_while_stopped_changes_nothing():
    store = Store()
    finished = []
    ticker = PomodoroTicker(store, on_finished=finished.append)
    before = store.state

    state = ticker.tick()

    assert state is before
    assert state.pomodoro_active is False
    assert state.pomodoro_remaining == 1500
    assert state.pomodoro_total_focus == 0
    assert finished == []


def test_tick_after_countdown_finished_does_not_refire():
    store = Store(initial_state=replace(get_initial_state(), pomodoro_active=True, pomodoro_remaining=1))
    finished = []
    ticker = PomodoroTicker(store, on_finished=finished.append)

    ticker.tick()
    ticker.tick()

    assert len(finished) == 1
    assert store.state.pomodoro_total_focus == 1
