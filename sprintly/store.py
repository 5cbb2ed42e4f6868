"""
Sprintly state store.

The Store is the single owner of the application state. Callers submit
actions through dispatch(), which is serialized by a lock: the transition
function runs, subscribers are notified, and the new state is persisted.
Nothing else writes to the state.
"""
import threading
from typing import Callable, List, Optional

from sprintly import storage
from sprintly.actions import Action, ActionType, normalize_action
from sprintly.exceptions import StateError
from sprintly.logger import get_logger
from sprintly.models import AppState
from sprintly.reducer import apply_action, get_initial_state

logger = get_logger("store")

Subscriber = Callable[[AppState, Action], None]
Persister = Callable[[AppState], None]
Guard = Callable[[AppState], bool]


class Store:
    """Single-writer coordinator around apply_action."""

    def __init__(
        self,
        initial_state: Optional[AppState] = None,
        persist: Optional[Persister] = None,
    ):
        self._state = initial_state if initial_state is not None else get_initial_state()
        self._persist = persist
        self._subscribers: List[Subscriber] = []
        self._lock = threading.RLock()

    @classmethod
    def from_storage(cls) -> "Store":
        """Rehydrate from the local slot and persist every later change to it."""
        return cls(initial_state=storage.load_state(), persist=storage.save_state)

    @property
    def state(self) -> AppState:
        return self._state

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback run after each state change. Returns an unsubscribe function."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def dispatch(self, action: Action, when: Optional[Guard] = None) -> AppState:
        """
        Apply an action and return the resulting state.

        When a guard is given it is checked against the current state under
        the lock; if it returns False the action is dropped.
        Subscriber failures are logged and do not undo the transition.
        Persistence failures are logged; the in-memory state stays current.
        """
        action = normalize_action(action)
        with self._lock:
            previous = self._state
            if when is not None and not when(previous):
                logger.debug(f"{action.type} dropped by guard")
                return previous
            self._state = apply_action(previous, action)
            if self._state is previous:
                logger.debug(f"{action.type} left state unchanged")
                return self._state

            logger.debug(f"Applied {action.type}")
            for callback in list(self._subscribers):
                try:
                    callback(self._state, action)
                except Exception as e:
                    logger.error(f"Subscriber failed after {action.type}: {e}", exc_info=True)

            if self._persist is not None:
                try:
                    self._persist(self._state)
                except StateError as e:
                    logger.error(f"Failed to persist state after {action.type}: {e.message}")

            return self._state

    def reset(self) -> AppState:
        """Replace the state with fresh defaults."""
        return self.dispatch(Action(ActionType.SET_INITIAL_STATE, get_initial_state()))
