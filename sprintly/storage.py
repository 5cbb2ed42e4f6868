"""
Local persistence for Sprintly.

The whole state lives in one JSON slot ("sprintly-data"). It is written
after every change and read once at startup, merged over the defaults so
documents from older versions still load. Exported backups add
"exportedAt" and "version" to the same fields.
"""
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from sprintly.exceptions import BackupError, StateError
from sprintly.logger import get_logger, log_corruption
from sprintly.models import Achievement, AppState, Goal, Settings, Sprint, Task
from sprintly.paths import DATA_DIR
from sprintly.reducer import compute_level, get_initial_state

STORAGE_KEY = "sprintly-data"
SLOT_PATH = DATA_DIR / f"{STORAGE_KEY}.json"

EXPORT_VERSION = "1.0.0"
PERSISTED_FIELDS = (
    "metas",
    "tasks",
    "sprints",
    "pontuacao",
    "nivel",
    "achievements",
    "pomodoroTotalFoco",
    "settings",
)
REQUIRED_BACKUP_FIELDS = ("metas", "tasks", "achievements", "settings")
RECORD_LIST_FIELDS = ("metas", "tasks", "sprints", "achievements")

logger = get_logger("storage")


def state_to_dict(state: AppState) -> Dict[str, Any]:
    """Serialize the persisted subset of the state under the Portuguese wire keys."""
    return {
        "metas": [g.to_dict() for g in state.goals],
        "tasks": [t.to_dict() for t in state.tasks],
        "sprints": [s.to_dict() for s in state.sprints],
        "pontuacao": state.points,
        "nivel": state.level,
        "achievements": [a.to_dict() for a in state.achievements],
        "pomodoroTotalFoco": state.pomodoro_total_focus,
        "settings": state.settings.to_dict(),
    }


def state_from_dict(data: Dict[str, Any]) -> AppState:
    """
    Build a state from a persisted document, merged over the defaults.

    Fields absent from the document keep their default values.
    """
    base = get_initial_state()
    kwargs: Dict[str, Any] = {}

    if "metas" in data:
        kwargs["goals"] = [Goal.from_dict(g) for g in data["metas"] or []]
    if "tasks" in data:
        kwargs["tasks"] = [Task.from_dict(t) for t in data["tasks"] or []]
    if "sprints" in data:
        kwargs["sprints"] = [Sprint.from_dict(s) for s in data["sprints"] or []]
    if "achievements" in data:
        kwargs["achievements"] = [Achievement.from_dict(a) for a in data["achievements"] or []]
    if "pontuacao" in data:
        kwargs["points"] = int(data["pontuacao"] or 0)
    if "nivel" in data:
        kwargs["level"] = int(data["nivel"] or 1)
    elif "points" in kwargs:
        kwargs["level"] = compute_level(kwargs["points"])
    if "pomodoroTotalFoco" in data:
        kwargs["pomodoro_total_focus"] = int(data["pomodoroTotalFoco"] or 0)
    if "settings" in data:
        kwargs["settings"] = Settings.from_dict(data["settings"] or {})

    return AppState(
        goals=kwargs.get("goals", base.goals),
        tasks=kwargs.get("tasks", base.tasks),
        sprints=kwargs.get("sprints", base.sprints),
        achievements=kwargs.get("achievements", base.achievements),
        pomodoro_remaining=base.pomodoro_remaining,
        pomodoro_total_focus=kwargs.get("pomodoro_total_focus", base.pomodoro_total_focus),
        points=kwargs.get("points", base.points),
        level=kwargs.get("level", base.level),
        settings=kwargs.get("settings", base.settings),
    )


def load_state(path: Optional[Path] = None) -> AppState:
    """
    Load the persisted slot.

    A missing slot yields the defaults. A corrupt slot is logged, copied to
    the corruption dump and also yields the defaults.
    """
    path = path or SLOT_PATH
    if not path.exists():
        return get_initial_state()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read saved data from {path}: {e}")
        return get_initial_state()

    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise StateError(f"Slot {path.name} does not hold a JSON object")
        state = state_from_dict(data)
    except (json.JSONDecodeError, StateError, TypeError, ValueError) as e:
        logger.error(f"Failed to parse saved data from {path}: {e}")
        log_corruption(path.name, raw, str(e))
        return get_initial_state()

    logger.info(f"Loaded {len(state.goals)} goal(s) and {len(state.tasks)} task(s) from {path.name}")
    return state


def save_state(state: AppState, path: Optional[Path] = None) -> None:
    """Write the persisted subset of the state to the slot."""
    path = path or SLOT_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(".tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(state_to_dict(state), f, ensure_ascii=False)
        tmp_path.replace(path)
    except OSError as e:
        raise StateError(f"Could not write {path}: {e}") from e


def clear_data(path: Optional[Path] = None) -> bool:
    """Erase the slot. Returns True if a slot existed."""
    path = path or SLOT_PATH
    if not path.exists():
        return False
    path.unlink()
    logger.warning(f"Cleared all saved data at {path}")
    return True


def export_snapshot(state: AppState, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Backup document: persisted fields plus exportedAt and version."""
    now = now or datetime.now()
    data = state_to_dict(state)
    data["exportedAt"] = now.isoformat()
    data["version"] = EXPORT_VERSION
    return data


def export_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"sprintly-backup-{now.date().isoformat()}.json"


def validate_backup(data: Any) -> None:
    """
    Check a backup document has every required top-level field and that
    its record collections hold JSON objects.

    Raises:
        BackupError: not an object, a required field is missing, or a
            field has the wrong shape
    """
    if not isinstance(data, dict):
        raise BackupError()
    missing = [key for key in REQUIRED_BACKUP_FIELDS if key not in data or data[key] is None]
    if missing:
        raise BackupError(missing=missing)

    for key in RECORD_LIST_FIELDS:
        records = data.get(key)
        if records is None and key not in REQUIRED_BACKUP_FIELDS:
            continue
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            raise BackupError(f"Estrutura de backup inválida: \"{key}\" deve ser uma lista de objetos.")
    if not isinstance(data["settings"], dict):
        raise BackupError("Estrutura de backup inválida: \"settings\" deve ser um objeto.")


def state_from_backup(data: Any) -> AppState:
    """Validate a backup document and build the state it describes."""
    validate_backup(data)
    try:
        return state_from_dict(data)
    except (TypeError, ValueError) as e:
        logger.warning(f"Rejected backup with malformed records: {e}")
        raise BackupError(f"Estrutura de backup inválida: {e}") from e
