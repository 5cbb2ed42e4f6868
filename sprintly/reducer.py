"""
State transition function for Sprintly.

apply_action is pure: it never mutates the incoming state and never does
I/O. Timestamps come from the action itself. Unknown action types, and
update/delete/move actions naming an unknown id, return the state unchanged.
"""
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sprintly.actions import Action, ActionType
from sprintly.config_manager import config
from sprintly.models import (
    ACHIEVEMENT_FIRST_GOAL,
    ACHIEVEMENT_FIVE_TASKS,
    ACHIEVEMENT_SPRINT_MASTER,
    ACHIEVEMENT_TOTAL_FOCUS,
    Achievement,
    AppState,
    Goal,
    Task,
    TaskStatus,
    coerce_status,
)

TaskIndex = Dict[str, Tuple[str, ...]]


def get_initial_state() -> AppState:
    """Return a fresh default state with the achievement catalog seeded."""
    return AppState(pomodoro_remaining=config.POMODORO_FOCUS_SECONDS)


def compute_level(points: int) -> int:
    return points // config.POINTS_PER_LEVEL + 1


# --- Helpers ---

def _unlock(achievements: List[Achievement], achievement_id: str, timestamp: str) -> List[Achievement]:
    """Stamp one achievement if it is locked. Returns the same list when nothing changes."""
    for i, ach in enumerate(achievements):
        if ach.id == achievement_id:
            if ach.unlocked_at:
                return achievements
            updated = list(achievements)
            updated[i] = replace(ach, unlocked_at=timestamp)
            return updated
    return achievements


def _index_add(index: TaskIndex, goal_id: str, task_id: str) -> None:
    index[goal_id] = index.get(goal_id, ()) + (task_id,)


def _index_remove(index: TaskIndex, goal_id: str, task_id: str) -> None:
    ids = list(index.get(goal_id, ()))
    if task_id in ids:
        ids.remove(task_id)
    if ids:
        index[goal_id] = tuple(ids)
    else:
        index.pop(goal_id, None)


def _fallback_id(timestamp: str) -> str:
    try:
        millis = int(datetime.fromisoformat(timestamp).timestamp() * 1000)
    except ValueError:
        millis = 0
    return f"{millis}{uuid.uuid4().hex[:7]}"


def _batch_parts(payload: Any) -> Tuple[List[Goal], List[Task]]:
    if isinstance(payload, dict):
        return list(payload.get("goals", [])), list(payload.get("tasks", []))
    return list(getattr(payload, "goals", [])), list(getattr(payload, "tasks", []))


# --- Transitions ---

def _add_goal(state: AppState, goal: Goal, ts: str) -> AppState:
    return replace(
        state,
        goals=state.goals + [goal],
        achievements=_unlock(state.achievements, ACHIEVEMENT_FIRST_GOAL, ts),
    )


def _update_goal(state: AppState, goal: Goal) -> AppState:
    if not any(g.id == goal.id for g in state.goals):
        return state
    return replace(state, goals=[goal if g.id == goal.id else g for g in state.goals])


def _delete_goal(state: AppState, goal_id: str) -> AppState:
    doomed = set(state.task_index.get(goal_id, ()))
    index = dict(state.task_index)
    index.pop(goal_id, None)
    return replace(
        state,
        goals=[g for g in state.goals if g.id != goal_id],
        tasks=[t for t in state.tasks if not (t.id in doomed and t.goal_id == goal_id)],
        task_index=index,
    )


def _add_task(state: AppState, task: Task) -> AppState:
    index = dict(state.task_index)
    _index_add(index, task.goal_id, task.id)
    return replace(state, tasks=state.tasks + [task], task_index=index)


def _update_task(state: AppState, task: Task) -> AppState:
    matched = [t for t in state.tasks if t.id == task.id]
    if not matched:
        return state
    index = dict(state.task_index)
    for old in matched:
        _index_remove(index, old.goal_id, old.id)
        _index_add(index, task.goal_id, task.id)
    return replace(
        state,
        tasks=[task if t.id == task.id else t for t in state.tasks],
        task_index=index,
    )


def _delete_task(state: AppState, task_id: str) -> AppState:
    matched = [t for t in state.tasks if t.id == task_id]
    if not matched:
        return state
    index = dict(state.task_index)
    for old in matched:
        _index_remove(index, old.goal_id, old.id)
    return replace(
        state,
        tasks=[t for t in state.tasks if t.id != task_id],
        task_index=index,
    )


def _move_task(state: AppState, payload: Dict[str, Any], ts: str) -> AppState:
    task_id = payload.get("task_id")
    if not any(t.id == task_id for t in state.tasks):
        return state
    new_status = coerce_status(payload.get("new_status"))
    completed_at = ts if new_status == TaskStatus.DONE else None

    tasks = [
        replace(t, status=new_status, completed_at=completed_at) if t.id == task_id else t
        for t in state.tasks
    ]

    # evaluated over the whole post-move list, not just the moved task
    done_count = sum(1 for t in tasks if t.status == TaskStatus.DONE)
    achievements = state.achievements
    if done_count >= config.DONE_TASKS_ACHIEVEMENT_THRESHOLD:
        achievements = _unlock(achievements, ACHIEVEMENT_FIVE_TASKS, ts)

    return replace(state, tasks=tasks, achievements=achievements)


def _start_sprint(state: AppState, sprint, ts: str) -> AppState:
    return replace(
        state,
        sprints=state.sprints + [sprint],
        active_sprint=sprint,
        achievements=_unlock(state.achievements, ACHIEVEMENT_SPRINT_MASTER, ts),
    )


def _end_sprint(state: AppState, sprint_id: str) -> AppState:
    # The active pointer is cleared even if it names a different sprint.
    return replace(
        state,
        sprints=[replace(s, active=False) if s.id == sprint_id else s for s in state.sprints],
        active_sprint=None,
    )


def _start_pomodoro(state: AppState, payload: Any) -> AppState:
    if isinstance(payload, dict):
        is_break = bool(payload.get("is_break", payload.get("isBreak", False)))
    else:
        is_break = bool(payload)
    return replace(
        state,
        pomodoro_active=True,
        pomodoro_is_break=is_break,
        pomodoro_remaining=config.POMODORO_BREAK_SECONDS if is_break else config.POMODORO_FOCUS_SECONDS,
    )


def _stop_pomodoro(state: AppState) -> AppState:
    return replace(
        state,
        pomodoro_active=False,
        pomodoro_remaining=config.POMODORO_FOCUS_SECONDS,
        pomodoro_is_break=False,
    )


def _tick_pomodoro(state: AppState, ts: str) -> AppState:
    remaining = max(0, state.pomodoro_remaining - 1)
    total_focus = state.pomodoro_total_focus
    if not state.pomodoro_is_break:
        total_focus += 1

    achievements = state.achievements
    if total_focus >= config.FOCUS_ACHIEVEMENT_SECONDS:
        achievements = _unlock(achievements, ACHIEVEMENT_TOTAL_FOCUS, ts)

    return replace(
        state,
        pomodoro_remaining=remaining,
        pomodoro_total_focus=total_focus,
        pomodoro_active=remaining > 0,
        achievements=achievements,
    )


def _add_points(state: AppState, amount: int) -> AppState:
    points = state.points + int(amount)
    return replace(state, points=points, level=compute_level(points))


def _import_data(state: AppState, payload: Any, ts: str) -> AppState:
    goals, tasks = _batch_parts(payload)
    goals = [g if g.id else replace(g, id=_fallback_id(ts)) for g in goals]
    tasks = [t if t.id else replace(t, id=_fallback_id(ts)) for t in tasks]

    # task goal references are not checked; orphans are allowed
    index = dict(state.task_index)
    for task in tasks:
        _index_add(index, task.goal_id, task.id)

    return replace(
        state,
        goals=state.goals + goals,
        tasks=state.tasks + tasks,
        task_index=index,
    )


def _select_goal(state: AppState, goal_id: Optional[str]) -> AppState:
    return replace(state, selected_goal_id=goal_id or None)


def _update_settings(state: AppState, updates: Dict[str, Any]) -> AppState:
    return replace(state, settings=state.settings.merged(updates or {}))


def apply_action(state: AppState, action: Action) -> AppState:
    """
    Pure function: apply one action to state and return the next state.
    """
    action_type = action.type
    payload = action.payload
    ts = action.timestamp or datetime.now().isoformat()

    if action_type == ActionType.SET_INITIAL_STATE:
        return payload

    elif action_type == ActionType.ADD_META:
        return _add_goal(state, payload, ts)

    elif action_type == ActionType.UPDATE_META:
        return _update_goal(state, payload)

    elif action_type == ActionType.DELETE_META:
        return _delete_goal(state, payload)

    elif action_type == ActionType.ADD_TASK:
        return _add_task(state, payload)

    elif action_type == ActionType.UPDATE_TASK:
        return _update_task(state, payload)

    elif action_type == ActionType.DELETE_TASK:
        return _delete_task(state, payload)

    elif action_type == ActionType.MOVE_TASK:
        return _move_task(state, payload or {}, ts)

    elif action_type == ActionType.START_SPRINT:
        return _start_sprint(state, payload, ts)

    elif action_type == ActionType.END_SPRINT:
        return _end_sprint(state, payload)

    elif action_type == ActionType.START_POMODORO:
        return _start_pomodoro(state, payload)

    elif action_type == ActionType.STOP_POMODORO:
        return _stop_pomodoro(state)

    elif action_type == ActionType.TICK_POMODORO:
        return _tick_pomodoro(state, ts)

    elif action_type == ActionType.ADD_POINTS:
        return _add_points(state, payload)

    elif action_type == ActionType.UNLOCK_ACHIEVEMENT:
        achievements = _unlock(state.achievements, payload, ts)
        if achievements is state.achievements:
            return state
        return replace(state, achievements=achievements)

    elif action_type == ActionType.IMPORT_DATA:
        return _import_data(state, payload, ts)

    elif action_type == ActionType.SET_SELECTED_META:
        return _select_goal(state, payload)

    elif action_type == ActionType.UPDATE_SETTINGS:
        return _update_settings(state, payload)

    return state
