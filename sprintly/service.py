"""
Application service for Sprintly.

Wraps the store with the user workflows: every operation validates its
input, dispatches one or more actions (point awards included) and returns
the affected record. Read-side helpers build the board columns and the
progress report.
"""
import math
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from sprintly import storage
from sprintly.actions import Action, ActionType
from sprintly.config_manager import config
from sprintly.exceptions import ImportFormatError, NotFoundError, ValidationError
from sprintly.importers import ImportBatch, parse_import
from sprintly.logger import get_logger
from sprintly.models import (
    AppState,
    Goal,
    Sprint,
    Task,
    TaskStatus,
    coerce_status,
    coerce_urgency,
)
from sprintly.pomodoro import PomodoroTicker
from sprintly.roadmap import build_roadmap_goal
from sprintly.store import Store

logger = get_logger("service")

GOAL_NOT_FOUND_NAME = "Meta não encontrada"
EDITABLE_GOAL_FIELDS = ("name", "description", "category", "urgency", "deadline", "steps", "tags")


class PomodoroOutcome(str, Enum):
    FOCUS_COMPLETED = "focus_completed"
    BREAK_COMPLETED = "break_completed"
    INTERRUPTED = "interrupted"


class SprintlyService:
    """Workflows over a single store."""

    def __init__(self, store: Store, ticker: Optional[PomodoroTicker] = None):
        self.store = store
        self.ticker = ticker or PomodoroTicker(store, on_finished=self._on_session_finished)
        self._pomodoro_lock = threading.Lock()
        self._last_outcome: Optional[PomodoroOutcome] = None

    @property
    def state(self) -> AppState:
        return self.store.state

    @staticmethod
    def _new_id(prefix: str) -> str:
        return f"{prefix}_{uuid.uuid4().hex[:8]}"

    def _dispatch(self, action_type: ActionType, payload: Any = None) -> AppState:
        return self.store.dispatch(Action(action_type, payload))

    def _award(self, points: int) -> None:
        if points > 0:
            self._dispatch(ActionType.ADD_POINTS, points)

    def require_goal(self, goal_id: str) -> Goal:
        goal = self.state.find_goal(goal_id)
        if goal is None:
            raise NotFoundError("Goal", goal_id)
        return goal

    def require_task(self, task_id: str) -> Task:
        task = self.state.find_task(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    # ---------------------------------------------------------------------
    # Goals
    # ---------------------------------------------------------------------
    def create_goal(
        self,
        name: str,
        description: str,
        deadline: str,
        category: str = "",
        urgency: str = "media",
        steps: Optional[Iterable[str]] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> Goal:
        missing = [
            label for label, value in (("name", name), ("description", description), ("deadline", deadline))
            if not (value or "").strip()
        ]
        if missing:
            raise ValidationError("Preencha nome, descrição e prazo", fields=missing)

        goal = Goal(
            id=self._new_id("meta"),
            name=name.strip(),
            description=description.strip(),
            category=(category or "").strip() or "Geral",
            urgency=coerce_urgency(urgency),
            deadline=deadline.strip(),
            steps=[s for s in (steps or []) if s],
            progress=0,
            created_at=datetime.now().isoformat(),
            tags=[t for t in (tags or []) if t],
        )
        self._dispatch(ActionType.ADD_META, goal)
        self._award(config.POINTS_GOAL_CREATED)
        logger.info(f"Created goal {goal.id}: {goal.name}")
        return goal

    def generate_roadmap(self, prompt: str) -> Goal:
        """Create a goal with a step-by-step roadmap matched from a free-text objective."""
        prompt = (prompt or "").strip()
        if not prompt:
            raise ValidationError("Descreva sua meta ou objetivo", fields=["prompt"])

        goal = build_roadmap_goal(prompt, self._new_id("meta"))
        self._dispatch(ActionType.ADD_META, goal)
        self._award(config.POINTS_ROADMAP_GENERATED)
        logger.info(f"Generated roadmap goal {goal.id}: {goal.name} ({len(goal.steps)} steps)")
        return goal

    def edit_goal(self, goal_id: str, **changes: Any) -> Goal:
        """
        Replace a goal with the given fields changed.

        Id, creation time and progress are kept; progress only moves with
        the goal's tasks.
        """
        current = self.require_goal(goal_id)
        updates = {k: v for k, v in changes.items() if k in EDITABLE_GOAL_FIELDS and v is not None}
        if "urgency" in updates:
            updates["urgency"] = coerce_urgency(updates["urgency"])
        if "steps" in updates:
            updates["steps"] = list(updates["steps"])
        if "tags" in updates:
            updates["tags"] = list(updates["tags"])

        goal = replace(current, **updates)
        if not goal.name or not goal.description or not goal.deadline:
            raise ValidationError("Preencha nome, descrição e prazo")
        self._dispatch(ActionType.UPDATE_META, goal)
        return goal

    def delete_goal(self, goal_id: str) -> int:
        """Delete a goal and its tasks. Returns the number of tasks removed."""
        self.require_goal(goal_id)
        before = len(self.state.tasks)
        self._dispatch(ActionType.DELETE_META, goal_id)
        removed = before - len(self.state.tasks)
        logger.info(f"Deleted goal {goal_id} with {removed} task(s)")
        return removed

    def select_goal(self, goal_id: Optional[str]) -> None:
        if goal_id:
            self.require_goal(goal_id)
        self._dispatch(ActionType.SET_SELECTED_META, goal_id)

    def goal_name(self, goal_id: str) -> str:
        goal = self.state.find_goal(goal_id)
        return goal.name if goal else GOAL_NOT_FOUND_NAME

    # ---------------------------------------------------------------------
    # Tasks
    # ---------------------------------------------------------------------
    def create_task(self, title: str, goal_id: Optional[str] = None, description: str = "") -> Task:
        state = self.state
        goal_id = goal_id or state.selected_goal_id or (state.goals[0].id if state.goals else "")
        if not (title or "").strip() or not goal_id:
            raise ValidationError("Preencha título e selecione uma meta")
        self.require_goal(goal_id)

        task = Task(
            id=self._new_id("task"),
            goal_id=goal_id,
            title=title.strip(),
            description=(description or "").strip(),
            status=TaskStatus.BACKLOG,
            created_at=datetime.now().isoformat(),
        )
        self._dispatch(ActionType.ADD_TASK, task)
        self._award(config.POINTS_TASK_CREATED)
        return task

    def edit_task(
        self,
        task_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        goal_id: Optional[str] = None,
    ) -> Task:
        current = self.require_task(task_id)
        if goal_id is not None:
            self.require_goal(goal_id)
        task = replace(
            current,
            title=title.strip() if title is not None else current.title,
            description=description if description is not None else current.description,
            goal_id=goal_id if goal_id is not None else current.goal_id,
        )
        if not task.title:
            raise ValidationError("Preencha título e selecione uma meta")
        self._dispatch(ActionType.UPDATE_TASK, task)
        return task

    def delete_task(self, task_id: str) -> None:
        self.require_task(task_id)
        self._dispatch(ActionType.DELETE_TASK, task_id)

    def move_task(self, task_id: str, new_status: Any) -> Task:
        """
        Move a task to another board column.

        Moving to done awards points and, when autoUpdateProgress is on,
        recomputes the goal's progress from its done/total task ratio.
        """
        task = self.require_task(task_id)
        status = coerce_status(new_status)
        if task.status == status:
            return task

        state = self._dispatch(ActionType.MOVE_TASK, {"task_id": task_id, "new_status": status})

        if status == TaskStatus.DONE:
            self._award(config.POINTS_TASK_DONE)
            if state.settings.auto_update_progress:
                self._refresh_goal_progress(task.goal_id)

        return self.state.find_task(task_id)

    def _refresh_goal_progress(self, goal_id: str) -> None:
        goal = self.state.find_goal(goal_id)
        if goal is None:
            return
        goal_tasks = self.state.tasks_for_goal(goal_id)
        if not goal_tasks:
            return
        done = sum(1 for t in goal_tasks if t.status == TaskStatus.DONE)
        # half-up rounding
        progress = int(math.floor(done * 100 / len(goal_tasks) + 0.5))
        if progress != goal.progress:
            self._dispatch(ActionType.UPDATE_META, replace(goal, progress=progress))

    def tasks_for_column(self, status: Any) -> List[Task]:
        """Tasks shown in one board column, honouring the goal filter and showCompletedTasks."""
        state = self.state
        status = coerce_status(status)
        if status == TaskStatus.DONE and not state.settings.show_completed_tasks:
            return []
        tasks = [t for t in state.tasks if t.status == status]
        if state.selected_goal_id:
            tasks = [t for t in tasks if t.goal_id == state.selected_goal_id]
        return tasks

    def board(self) -> Dict[str, List[Task]]:
        return {status.value: self.tasks_for_column(status) for status in TaskStatus}

    # ---------------------------------------------------------------------
    # Sprints
    # ---------------------------------------------------------------------
    def start_sprint(
        self,
        name: str,
        duration_days: Optional[int] = None,
        goal_ids: Iterable[str] = (),
    ) -> Sprint:
        if not (name or "").strip():
            raise ValidationError("Digite um nome para o sprint", fields=["name"])
        days = int(duration_days if duration_days is not None else config.DEFAULT_SPRINT_DAYS)
        if days < 1:
            raise ValidationError("Sprint duration must be at least one day", fields=["duration_days"])

        started = datetime.now()
        sprint = Sprint(
            id=self._new_id("sprint"),
            name=name.strip(),
            duration_days=days,
            started_at=started.isoformat(),
            ends_at=(started + timedelta(days=days)).isoformat(),
            active=True,
            goal_ids=list(goal_ids),
        )
        self._dispatch(ActionType.START_SPRINT, sprint)
        self._award(config.POINTS_SPRINT_STARTED)
        logger.info(f"Started sprint {sprint.id}: {sprint.name} ({days} days)")
        return sprint

    def end_sprint(self, sprint_id: str) -> None:
        if not any(s.id == sprint_id for s in self.state.sprints):
            raise NotFoundError("Sprint", sprint_id)
        self._dispatch(ActionType.END_SPRINT, sprint_id)

    # ---------------------------------------------------------------------
    # Pomodoro
    # ---------------------------------------------------------------------
    def start_focus(self) -> AppState:
        self._last_outcome = None
        state = self._dispatch(ActionType.START_POMODORO, {"is_break": False})
        self.ticker.ensure_running()
        return state

    def start_break(self) -> AppState:
        self._last_outcome = None
        state = self._dispatch(ActionType.START_POMODORO, {"is_break": True})
        self.ticker.ensure_running()
        return state

    def stop_pomodoro(self) -> PomodoroOutcome:
        """
        Stop the current session and report how it ended.

        The timer thread is joined first, so a final tick racing with a
        manual stop is settled before the outcome is read. If that tick
        already ended the session, its outcome is returned and nothing is
        dispatched again.
        """
        self.ticker.stop()
        with self._pomodoro_lock:
            state = self.state
            if not state.pomodoro_active and state.pomodoro_remaining != 0:
                return self._last_outcome or PomodoroOutcome.INTERRUPTED

            if state.pomodoro_remaining == 0 and not state.pomodoro_is_break:
                outcome = PomodoroOutcome.FOCUS_COMPLETED
            elif state.pomodoro_remaining == 0:
                outcome = PomodoroOutcome.BREAK_COMPLETED
            else:
                outcome = PomodoroOutcome.INTERRUPTED

            self._dispatch(ActionType.STOP_POMODORO)
            if outcome == PomodoroOutcome.FOCUS_COMPLETED:
                self._award(config.POINTS_POMODORO_COMPLETED)
            self._last_outcome = outcome
            return outcome

    def _on_session_finished(self, state: AppState) -> None:
        outcome = self.stop_pomodoro()
        logger.info(f"Pomodoro finished: {outcome.value}")

    # ---------------------------------------------------------------------
    # Settings / achievements
    # ---------------------------------------------------------------------
    def update_settings(self, updates: Dict[str, Any]) -> AppState:
        return self._dispatch(ActionType.UPDATE_SETTINGS, updates)

    def unlock_achievement(self, achievement_id: str) -> None:
        if self.state.find_achievement(achievement_id) is None:
            raise NotFoundError("Achievement", achievement_id)
        self._dispatch(ActionType.UNLOCK_ACHIEVEMENT, achievement_id)

    # ---------------------------------------------------------------------
    # Import / export
    # ---------------------------------------------------------------------
    def import_text(self, text: str, fmt: str) -> ImportBatch:
        """Parse text and merge the batch in one IMPORT_DATA dispatch."""
        batch = parse_import(text, fmt)
        if batch.is_empty:
            raise ImportFormatError("Nenhuma meta ou tarefa encontrada nos dados", fmt)

        self._dispatch(ActionType.IMPORT_DATA, batch)
        self._award(
            len(batch.goals) * config.POINTS_IMPORTED_GOAL
            + len(batch.tasks) * config.POINTS_IMPORTED_TASK
        )
        logger.info(f"Imported {len(batch.goals)} goal(s) and {len(batch.tasks)} task(s) from {fmt}")
        return batch

    def export_backup(self) -> Dict[str, Any]:
        return storage.export_snapshot(self.state)

    def restore_backup(self, data: Any) -> AppState:
        """Replace the whole state with a validated backup document."""
        restored = storage.state_from_backup(data)
        self.ticker.stop()
        state = self._dispatch(ActionType.SET_INITIAL_STATE, restored)
        logger.info(f"Restored backup with {len(state.goals)} goal(s)")
        return state

    def clear_all(self) -> AppState:
        """Erase the saved slot and return to defaults. Irreversible."""
        self.ticker.stop()
        state = self.store.reset()
        storage.clear_data()
        return state

    # ---------------------------------------------------------------------
    # Reports
    # ---------------------------------------------------------------------
    def progress_report(self) -> Dict[str, Any]:
        state = self.state
        goals = []
        for goal in state.goals:
            goal_tasks = state.tasks_for_goal(goal.id)
            goals.append({
                "id": goal.id,
                "name": goal.name,
                "progress": goal.progress,
                "tasks": len(goal_tasks),
                "done": sum(1 for t in goal_tasks if t.status == TaskStatus.DONE),
            })

        categories: Dict[str, int] = {}
        for goal in state.goals:
            categories[goal.category] = categories.get(goal.category, 0) + 1

        return {
            "goals": goals,
            "categories": [{"category": c, "count": n} for c, n in categories.items()],
            "statuses": {
                status.value: sum(1 for t in state.tasks if t.status == status)
                for status in TaskStatus
            },
            "points": state.points,
            "level": state.level,
            "total_focus_seconds": state.pomodoro_total_focus,
            "achievements_unlocked": sum(1 for a in state.achievements if a.unlocked),
        }


_default_service: Optional[SprintlyService] = None
_service_lock = threading.Lock()


def get_service() -> SprintlyService:
    """Process-wide service backed by the local slot."""
    global _default_service
    with _service_lock:
        if _default_service is None:
            _default_service = SprintlyService(Store.from_storage())
        return _default_service


def reset_service(service: Optional[SprintlyService] = None) -> None:
    """Drop (or replace) the process-wide service; the next get_service() reloads from disk."""
    global _default_service
    with _service_lock:
        if _default_service is not None and _default_service is not service:
            _default_service.ticker.stop()
        _default_service = service
