"""
Action definitions for the Sprintly store.

Actions are immutable values submitted to Store.dispatch. Each carries the
timestamp used for any stamping its transition performs, so applying the
same action to the same state always yields the same result.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class ActionType(str, Enum):
    SET_INITIAL_STATE = "SET_INITIAL_STATE"
    ADD_META = "ADD_META"
    UPDATE_META = "UPDATE_META"
    DELETE_META = "DELETE_META"
    ADD_TASK = "ADD_TASK"
    UPDATE_TASK = "UPDATE_TASK"
    DELETE_TASK = "DELETE_TASK"
    MOVE_TASK = "MOVE_TASK"
    START_SPRINT = "START_SPRINT"
    END_SPRINT = "END_SPRINT"
    START_POMODORO = "START_POMODORO"
    STOP_POMODORO = "STOP_POMODORO"
    TICK_POMODORO = "TICK_POMODORO"
    ADD_POINTS = "ADD_POINTS"
    UNLOCK_ACHIEVEMENT = "UNLOCK_ACHIEVEMENT"
    IMPORT_DATA = "IMPORT_DATA"
    SET_SELECTED_META = "SET_SELECTED_META"
    UPDATE_SETTINGS = "UPDATE_SETTINGS"


@dataclass(frozen=True)
class Action:
    """
    A named state transition request.

    Payloads by type:
        SET_INITIAL_STATE: AppState
        ADD_META / UPDATE_META: Goal
        DELETE_META / DELETE_TASK / END_SPRINT / UNLOCK_ACHIEVEMENT: id (str)
        ADD_TASK / UPDATE_TASK: Task
        MOVE_TASK: {"task_id": str, "new_status": TaskStatus | str}
        START_SPRINT: Sprint
        START_POMODORO: {"is_break": bool} or None
        ADD_POINTS: int
        IMPORT_DATA: ImportBatch or {"goals": [...], "tasks": [...]}
        SET_SELECTED_META: goal id or None
        UPDATE_SETTINGS: partial settings dict
    """
    type: Any
    payload: Any = None
    timestamp: Optional[str] = None


def normalize_action(action: Action) -> Action:
    """Return the action with a timestamp, assigning the current time if absent."""
    if action.timestamp:
        return action
    return replace(action, timestamp=datetime.now().isoformat())
