"""
Background timer that drives Pomodoro ticks.

While the store's pomodoro is active, a daemon thread dispatches one
TICK_POMODORO per interval. The thread exits as soon as the pomodoro is no
longer active (stopped, or countdown reached zero) and can be cancelled
with stop().
"""
import os
import threading
from typing import Callable, Optional

from sprintly.actions import Action, ActionType
from sprintly.config_manager import config
from sprintly.logger import get_logger
from sprintly.models import AppState

logger = get_logger("pomodoro")

FinishedCallback = Callable[[AppState], None]


def watchers_disabled() -> bool:
    return os.getenv("SPRINTLY_DISABLE_WATCHERS", "0").lower() in {"1", "true", "yes"}


def format_time(seconds: int) -> str:
    """Render seconds as MM:SS."""
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{secs:02d}"


class PomodoroTicker:
    """One-second repeating timer bound to a store."""

    def __init__(
        self,
        store,
        interval: Optional[float] = None,
        on_finished: Optional[FinishedCallback] = None,
    ):
        self.store = store
        self.interval = interval if interval is not None else config.TICK_INTERVAL_SECONDS
        self.on_finished = on_finished
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def ensure_running(self) -> bool:
        """Start the timer thread if the pomodoro is active and no thread runs yet."""
        if watchers_disabled():
            return False
        with self._lock:
            if self.running or not self.store.state.pomodoro_active:
                return False
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run, args=(self._stop_event,), name="pomodoro-ticker", daemon=True
            )
            self._thread.start()
        logger.info("Pomodoro ticker started")
        return True

    def stop(self) -> None:
        with self._lock:
            self._stop_event.set()
            thread = self._thread
            self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.interval * 2)

    def tick(self) -> AppState:
        """
        Dispatch one tick; fires on_finished when the countdown reaches zero.

        Does nothing while the pomodoro is stopped.
        """
        was_active = []

        def active(state: AppState) -> bool:
            was_active.append(state.pomodoro_active)
            return state.pomodoro_active

        state = self.store.dispatch(Action(ActionType.TICK_POMODORO), when=active)
        if not was_active[-1]:
            return state
        if not state.pomodoro_active and state.pomodoro_remaining == 0:
            kind = "break" if state.pomodoro_is_break else "focus"
            logger.info(f"Pomodoro {kind} session finished")
            if self.on_finished is not None:
                self.on_finished(state)
        return state

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            if not self.store.state.pomodoro_active:
                break
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Pomodoro tick failed: {e}", exc_info=True)
                break
        logger.debug("Pomodoro ticker exited")
