"""
Core Data Models for Sprintly.
Defines goals, tasks, sprints, achievements, settings and the app state.

Attribute names are English; the persisted JSON keeps the Portuguese keys
(nome, descricao, metaId, ...) so existing "sprintly-data" documents and
exported backups load unchanged.
"""
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Urgency(str, Enum):
    LOW = "baixa"
    MEDIUM = "media"
    HIGH = "alta"


class TaskStatus(str, Enum):
    BACKLOG = "backlog"
    TODO = "todo"
    DOING = "doing"
    DONE = "done"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


URGENCY_ALIASES = {
    "baixa": Urgency.LOW,
    "low": Urgency.LOW,
    "media": Urgency.MEDIUM,
    "média": Urgency.MEDIUM,
    "medium": Urgency.MEDIUM,
    "alta": Urgency.HIGH,
    "high": Urgency.HIGH,
}


def coerce_urgency(value: Any) -> Urgency:
    """Map a raw urgency (pt or en) to Urgency; unknown values become MEDIUM."""
    if isinstance(value, Urgency):
        return value
    return URGENCY_ALIASES.get(str(value or "").strip().lower(), Urgency.MEDIUM)


def coerce_status(value: Any) -> TaskStatus:
    if isinstance(value, TaskStatus):
        return value
    try:
        return TaskStatus(str(value or "").strip().lower())
    except ValueError:
        return TaskStatus.BACKLOG


class WireRecord:
    """
    Mixin for dataclasses persisted under the Portuguese JSON keys.

    Subclasses declare WIRE_KEYS: attribute name -> JSON key.
    """

    WIRE_KEYS: Dict[str, str] = {}
    OPTIONAL_KEYS: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for f in fields(self):
            key = self.WIRE_KEYS.get(f.name)
            if key is None:
                continue
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, (list, tuple)):
                value = list(value)
            # optional timestamps are omitted rather than written as null
            if value is None and f.name in self.OPTIONAL_KEYS:
                continue
            data[key] = value
        return data

    @classmethod
    def _kwargs_from_dict(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        kwargs = {}
        for attr, key in cls.WIRE_KEYS.items():
            if key in data:
                kwargs[attr] = data[key]
            elif attr in data:
                kwargs[attr] = data[attr]
        return kwargs


@dataclass
class Goal(WireRecord):
    """Goal ("meta")."""
    id: str = ""
    name: str = ""
    description: str = ""
    category: str = ""
    urgency: Urgency = Urgency.MEDIUM
    deadline: str = ""                      # ISO date, e.g. "2026-11-18"
    steps: List[str] = field(default_factory=list)  # plain labels, no state
    progress: int = 0                       # 0-100, set independently of steps
    created_at: str = ""
    tags: List[str] = field(default_factory=list)

    WIRE_KEYS = {
        "id": "id",
        "name": "nome",
        "description": "descricao",
        "category": "categoria",
        "urgency": "urgencia",
        "deadline": "prazo",
        "steps": "etapas",
        "progress": "progresso",
        "created_at": "criadaEm",
        "tags": "tags",
    }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Goal":
        kwargs = cls._kwargs_from_dict(data)
        kwargs["urgency"] = coerce_urgency(kwargs.get("urgency"))
        kwargs["steps"] = list(kwargs.get("steps") or [])
        kwargs["tags"] = list(kwargs.get("tags") or [])
        kwargs["progress"] = int(kwargs.get("progress") or 0)
        return cls(**kwargs)


@dataclass
class Task(WireRecord):
    """Kanban task linked to a goal by id (reference, not ownership)."""
    id: str = ""
    goal_id: str = ""
    title: str = ""
    description: str = ""
    status: TaskStatus = TaskStatus.BACKLOG
    created_at: str = ""
    completed_at: Optional[str] = None      # set exactly while status is done

    WIRE_KEYS = {
        "id": "id",
        "goal_id": "metaId",
        "title": "titulo",
        "description": "descricao",
        "status": "status",
        "created_at": "criadaEm",
        "completed_at": "concluidaEm",
    }
    OPTIONAL_KEYS = ("completed_at",)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        kwargs = cls._kwargs_from_dict(data)
        kwargs["status"] = coerce_status(kwargs.get("status"))
        return cls(**kwargs)


@dataclass
class Sprint(WireRecord):
    """Time-boxed commitment over a subset of goals."""
    id: str = ""
    name: str = ""
    duration_days: int = 7
    started_at: str = ""
    ends_at: str = ""                       # started_at + duration_days
    active: bool = True
    goal_ids: List[str] = field(default_factory=list)

    WIRE_KEYS = {
        "id": "id",
        "name": "nome",
        "duration_days": "duracao",
        "started_at": "inicioEm",
        "ends_at": "fimEm",
        "active": "ativo",
        "goal_ids": "metas",
    }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Sprint":
        kwargs = cls._kwargs_from_dict(data)
        kwargs["goal_ids"] = list(kwargs.get("goal_ids") or [])
        return cls(**kwargs)


@dataclass
class Achievement(WireRecord):
    """Badge from the fixed catalog; unlocked_at None means locked."""
    id: str
    name: str
    description: str
    icon: str
    unlocked_at: Optional[str] = None

    WIRE_KEYS = {
        "id": "id",
        "name": "nome",
        "description": "descricao",
        "icon": "icone",
        "unlocked_at": "desbloqueadoEm",
    }
    OPTIONAL_KEYS = ("unlocked_at",)

    @property
    def unlocked(self) -> bool:
        return bool(self.unlocked_at)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Achievement":
        kwargs = cls._kwargs_from_dict(data)
        kwargs.setdefault("id", "")
        kwargs.setdefault("name", "")
        kwargs.setdefault("description", "")
        kwargs.setdefault("icon", "")
        return cls(**kwargs)


@dataclass
class Settings(WireRecord):
    """User preferences; always present, shallow-merged on update."""
    theme: Theme = Theme.LIGHT
    pomodoro_sound: bool = True
    auto_start_breaks: bool = False         # stored only, no behaviour attached
    show_completed_tasks: bool = True
    auto_update_progress: bool = True

    WIRE_KEYS = {
        "theme": "theme",
        "pomodoro_sound": "pomodoroSound",
        "auto_start_breaks": "autoStartBreaks",
        "show_completed_tasks": "showCompletedTasks",
        "auto_update_progress": "autoUpdateProgress",
    }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        return cls().merged(data)

    def merged(self, updates: Dict[str, Any]) -> "Settings":
        """Return a copy with only the fields present in updates changed."""
        changes = self._kwargs_from_dict(updates or {})
        if "theme" in changes:
            try:
                changes["theme"] = Theme(changes["theme"])
            except ValueError:
                changes.pop("theme")
        return replace(self, **changes)


ACHIEVEMENT_FIRST_GOAL = "primeira-meta"
ACHIEVEMENT_FIVE_TASKS = "cinco-tarefas"
ACHIEVEMENT_SPRINT_MASTER = "sprint-master"
ACHIEVEMENT_TOTAL_FOCUS = "foco-total"


def default_achievements() -> List[Achievement]:
    """The fixed catalog, all locked."""
    return [
        Achievement(ACHIEVEMENT_FIRST_GOAL, "Primeira Meta", "Criou sua primeira meta", "🎯"),
        Achievement(ACHIEVEMENT_FIVE_TASKS, "Consistente", "Completou 5 tarefas", "🔥"),
        Achievement(ACHIEVEMENT_SPRINT_MASTER, "Sprint Master", "Completou seu primeiro sprint", "🏃‍♂️"),
        Achievement(ACHIEVEMENT_TOTAL_FOCUS, "Foco Total", "Acumulou 2 horas de Pomodoro", "🍅"),
    ]


@dataclass
class AppState:
    """Whole application state owned by the store."""
    goals: List[Goal] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)
    sprints: List[Sprint] = field(default_factory=list)
    achievements: List[Achievement] = field(default_factory=default_achievements)
    active_sprint: Optional[Sprint] = None
    pomodoro_active: bool = False
    pomodoro_remaining: int = 25 * 60       # seconds left in the current countdown
    pomodoro_total_focus: int = 0           # accumulated focus seconds
    pomodoro_is_break: bool = False
    points: int = 0
    level: int = 1
    selected_goal_id: Optional[str] = None
    settings: Settings = field(default_factory=Settings)
    # goal id -> ids of the tasks referencing it
    task_index: Dict[str, Tuple[str, ...]] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self):
        if self.tasks and not self.task_index:
            self.task_index = build_task_index(self.tasks)

    def find_goal(self, goal_id: str) -> Optional[Goal]:
        return next((g for g in self.goals if g.id == goal_id), None)

    def find_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def find_achievement(self, achievement_id: str) -> Optional[Achievement]:
        return next((a for a in self.achievements if a.id == achievement_id), None)

    def tasks_for_goal(self, goal_id: str) -> List[Task]:
        ids = set(self.task_index.get(goal_id, ()))
        return [t for t in self.tasks if t.id in ids]


def build_task_index(tasks: List[Task]) -> Dict[str, Tuple[str, ...]]:
    index: Dict[str, Tuple[str, ...]] = {}
    for task in tasks:
        index[task.goal_id] = index.get(task.goal_id, ()) + (task.id,)
    return index
