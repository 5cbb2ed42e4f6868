"""
Configuration Manager for Sprintly.

Centralises the tunable constants of the store and the workflows.
Every default mirrors the behaviour users already know from the app;
overrides come from config/runtime.yaml.

Usage:
    from sprintly.config_manager import config
    seconds = config.POMODORO_FOCUS_SECONDS
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from sprintly.exceptions import ConfigError
from sprintly.logger import get_logger

CONFIG_DIR = Path(__file__).parent.parent / "config"
RUNTIME_CONFIG_PATH = CONFIG_DIR / "runtime.yaml"

logger = get_logger("config")


@dataclass
class SystemConfig:
    """
    Runtime constants.
    """

    # === Pomodoro ===

    # Focus session length (25 minutes)
    POMODORO_FOCUS_SECONDS: int = 25 * 60

    # Break length (5 minutes)
    POMODORO_BREAK_SECONDS: int = 5 * 60

    # Accumulated focus needed for the "foco-total" achievement (2 hours)
    FOCUS_ACHIEVEMENT_SECONDS: int = 2 * 60 * 60

    # Seconds between ticks of the background timer
    TICK_INTERVAL_SECONDS: float = 1.0

    # === Achievements / points ===

    # Done tasks needed for the "cinco-tarefas" achievement (inclusive)
    DONE_TASKS_ACHIEVEMENT_THRESHOLD: int = 5

    # Points per level: level = points // POINTS_PER_LEVEL + 1
    POINTS_PER_LEVEL: int = 100

    POINTS_GOAL_CREATED: int = 10
    POINTS_TASK_CREATED: int = 2
    POINTS_TASK_DONE: int = 5
    POINTS_SPRINT_STARTED: int = 20
    POINTS_POMODORO_COMPLETED: int = 10
    POINTS_IMPORTED_GOAL: int = 5
    POINTS_IMPORTED_TASK: int = 2
    POINTS_ROADMAP_GENERATED: int = 15

    # === Roadmap ===

    # Deadline of generated roadmap goals
    ROADMAP_DEADLINE_DAYS: int = 90

    # === Import ===

    # Deadline assigned to imported goals without one
    IMPORT_DEFAULT_DEADLINE_DAYS: int = 30

    # Default sprint length offered to users
    DEFAULT_SPRINT_DAYS: int = 7


def _load_runtime_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load runtime overrides, if present."""
    path = path or RUNTIME_CONFIG_PATH
    if not path.exists():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as e:
        logger.warning(f"Ignoring unreadable runtime config {path}: {e}")
        return {}

    if not isinstance(data, dict):
        raise ConfigError("runtime.yaml must contain a mapping of overrides", str(path))
    return data


def get_config(path: Optional[Path] = None) -> SystemConfig:
    """
    Build the config instance.

    Priority: runtime.yaml > defaults
    """
    base = SystemConfig()
    overrides = _load_runtime_config(path)

    for key, value in overrides.items():
        if hasattr(base, key):
            setattr(base, key, value)
        else:
            logger.warning(f"Unknown config key in runtime.yaml: {key}")

    return base


config = get_config()
