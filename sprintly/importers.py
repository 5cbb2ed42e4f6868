"""
Import parsers for goal/task batches.

Converts user-supplied JSON, Markdown or CSV text into an ImportBatch that
the IMPORT_DATA action accepts. Parsing finishes completely before anything
is dispatched, so a failure never leaves a partial import behind.

Field extraction is driven by alias tables: for each target field, the
listed source keys are tried in order and the first present value wins.
"""
import json
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from sprintly.config_manager import config
from sprintly.exceptions import ImportFormatError
from sprintly.logger import get_logger
from sprintly.models import Goal, Task, TaskStatus, coerce_urgency

logger = get_logger("importers")

SUPPORTED_FORMATS = ("json", "markdown", "csv")

DEFAULT_GOAL_NAME = "Meta Importada"
DEFAULT_GOAL_DESCRIPTION = "Descrição importada"
DEFAULT_GOAL_CATEGORY = "Importado"
DEFAULT_TASK_TITLE = "Tarefa Importada"

# target field -> accepted source keys, in priority order
GOAL_FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "name": ("meta", "nome", "name"),
    "description": ("descricao", "description"),
    "category": ("categoria", "category"),
    "urgency": ("urgencia", "urgency"),
    "deadline": ("prazo", "deadline"),
    "steps": ("etapas", "steps"),
    "progress": ("progresso", "progress"),
    "tags": ("tags",),
    "tasks": ("tarefas", "tasks"),
}

TASK_FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "title": ("titulo", "title", "task"),
    "description": ("descricao", "description"),
}

# CSV header (lowercased) -> target field
CSV_COLUMNS: Dict[str, str] = {
    "nome": "name",
    "name": "name",
    "descricao": "description",
    "description": "description",
    "categoria": "category",
    "category": "category",
    "urgencia": "urgency",
    "urgency": "urgency",
    "prazo": "deadline",
    "deadline": "deadline",
    "etapas": "steps",
    "steps": "steps",
    "tarefas": "tasks",
    "tasks": "tasks",
}

CHECKBOX_RE = re.compile(r"^\[[ xX]\] ")
FORMAT_BY_EXTENSION = {
    ".json": "json",
    ".md": "markdown",
    ".markdown": "markdown",
    ".csv": "csv",
}


@dataclass
class ImportBatch:
    """Goals and tasks produced by one import."""
    goals: List[Goal] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.goals and not self.tasks


def _millis(now: datetime) -> int:
    return int(now.timestamp() * 1000)


def _suffix() -> str:
    return uuid.uuid4().hex[:7]


def goal_id(now: datetime, index: int) -> str:
    return f"meta-{_millis(now)}-{index}-{_suffix()}"


def task_id(now: datetime, goal_index: int, task_index: int) -> str:
    return f"task-{_millis(now)}-{goal_index}-{task_index}-{_suffix()}"


def default_deadline(now: datetime) -> str:
    return (now + timedelta(days=config.IMPORT_DEFAULT_DEADLINE_DAYS)).date().isoformat()


def first_present(record: Dict[str, Any], keys: Tuple[str, ...], default: Any = None) -> Any:
    """Return the value of the first key that is present and non-empty."""
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return default


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def _as_progress(value: Any) -> int:
    try:
        return max(0, min(100, int(value)))
    except (TypeError, ValueError):
        return 0


def _split_segments(value: str) -> List[str]:
    return [part.strip() for part in value.split(";") if part.strip()]


def build_goal(record: Dict[str, Any], gid: str, now: datetime) -> Goal:
    """Synthesize a goal from a loosely-keyed record, defaulting missing fields."""
    aliases = GOAL_FIELD_ALIASES
    return Goal(
        id=gid,
        name=str(first_present(record, aliases["name"], DEFAULT_GOAL_NAME)),
        description=str(first_present(record, aliases["description"], DEFAULT_GOAL_DESCRIPTION)),
        category=str(first_present(record, aliases["category"], DEFAULT_GOAL_CATEGORY)),
        urgency=coerce_urgency(first_present(record, aliases["urgency"])),
        deadline=str(first_present(record, aliases["deadline"], default_deadline(now))),
        steps=_as_list(first_present(record, aliases["steps"], [])),
        progress=_as_progress(first_present(record, aliases["progress"], 0)),
        created_at=now.isoformat(),
        tags=_as_list(first_present(record, aliases["tags"], [])),
    )


def build_task(record: Any, tid: str, gid: str, now: datetime) -> Task:
    if isinstance(record, str):
        record = {"titulo": record}
    elif not isinstance(record, dict):
        record = {}
    return Task(
        id=tid,
        goal_id=gid,
        title=str(first_present(record, TASK_FIELD_ALIASES["title"], DEFAULT_TASK_TITLE)),
        description=str(first_present(record, TASK_FIELD_ALIASES["description"], "")),
        status=TaskStatus.BACKLOG,
        created_at=now.isoformat(),
    )


# --- JSON ---

def parse_json(text: str, now: Optional[datetime] = None) -> ImportBatch:
    """
    Parse a goal object or a list of goal objects.

    Nested "tarefas" lists become backlog tasks linked to their goal.
    """
    now = now or datetime.now()
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ImportFormatError(f"Formato JSON inválido: {e}", "json") from e

    records = parsed if isinstance(parsed, list) else [parsed]
    batch = ImportBatch()

    for goal_index, record in enumerate(records):
        if record is None:
            raise ImportFormatError(f"Formato JSON inválido: item {goal_index} is null", "json")
        if not isinstance(record, dict):
            # scalars and arrays carry no fields; they become default goals
            record = {}
        gid = goal_id(now, goal_index)
        batch.goals.append(build_goal(record, gid, now))

        nested = first_present(record, GOAL_FIELD_ALIASES["tasks"])
        if isinstance(nested, list):
            for task_index, item in enumerate(nested):
                if item is None:
                    raise ImportFormatError(
                        f"Formato JSON inválido: task {task_index} of item {goal_index} is null", "json"
                    )
                batch.tasks.append(build_task(item, task_id(now, goal_index, task_index), gid, now))

    return batch


# --- Markdown ---

def parse_markdown(text: str, now: Optional[datetime] = None) -> ImportBatch:
    """
    Line-oriented scan:

        # Goal name          -> starts a goal
        first plain line     -> goal description
        - step               -> goal step
        - [ ] task / - [x]   -> backlog task (checkbox state is not mapped)

    Content before the first heading is ignored.
    """
    now = now or datetime.now()
    batch = ImportBatch()
    current: Optional[Dict[str, Any]] = None
    task_count = 0

    def flush() -> None:
        if current is not None:
            batch.goals.append(build_goal(current, current["id"], now))

    for raw in text.split("\n"):
        line = raw.strip()

        if line.startswith("# "):
            flush()
            current = {
                "id": goal_id(now, len(batch.goals)),
                "nome": line[2:].strip(),
                "etapas": [],
            }
            task_count = 0
        elif line.startswith("- ") and current is not None:
            content = line[2:]
            if CHECKBOX_RE.match(content):
                batch.tasks.append(
                    build_task(
                        {"titulo": CHECKBOX_RE.sub("", content, count=1)},
                        task_id(now, len(batch.goals), task_count),
                        current["id"],
                        now,
                    )
                )
                task_count += 1
            else:
                current["etapas"].append(content)
        elif line and current is not None and not current.get("descricao"):
            current["descricao"] = line

    flush()
    return batch


# --- CSV ---

def parse_csv(text: str, now: Optional[datetime] = None) -> ImportBatch:
    """
    Parse a header row plus one goal per line.

    Plain comma split, no quoting. "etapas"/"steps" and "tarefas"/"tasks"
    columns are split on ";".
    """
    now = now or datetime.now()
    lines = [line for line in text.split("\n") if line.strip()]
    if len(lines) < 2:
        raise ImportFormatError("CSV deve ter pelo menos cabeçalho e uma linha de dados", "csv")

    headers = [h.strip().lower() for h in lines[0].split(",")]
    batch = ImportBatch()

    for row_number, line in enumerate(lines[1:], start=1):
        values = [v.strip() for v in line.split(",")]
        record: Dict[str, Any] = {}
        task_titles: List[str] = []

        for position, header in enumerate(headers):
            target = CSV_COLUMNS.get(header)
            if target is None:
                continue
            value = values[position] if position < len(values) else ""
            if target == "steps":
                record["steps"] = _split_segments(value)
            elif target == "tasks":
                task_titles.extend(_split_segments(value))
            else:
                record[target] = value

        gid = goal_id(now, row_number)
        batch.goals.append(build_goal(record, gid, now))
        for task_index, title in enumerate(task_titles):
            batch.tasks.append(
                build_task({"titulo": title}, task_id(now, row_number, task_index), gid, now)
            )

    return batch


PARSERS: Dict[str, Callable[[str, Optional[datetime]], ImportBatch]] = {
    "json": parse_json,
    "markdown": parse_markdown,
    "csv": parse_csv,
}


def parse_import(text: str, fmt: str, now: Optional[datetime] = None) -> ImportBatch:
    """
    Parse import text in the given format.

    Raises:
        ImportFormatError: unknown format or unparseable content
    """
    key = (fmt or "").strip().lower()
    if key == "md":
        key = "markdown"
    parser = PARSERS.get(key)
    if parser is None:
        raise ImportFormatError(f"Unsupported import format: {fmt}")

    batch = parser(text, now)
    logger.info(f"Parsed {key} import: {len(batch.goals)} goal(s), {len(batch.tasks)} task(s)")
    return batch


def format_from_filename(filename: str) -> Optional[str]:
    lowered = filename.lower()
    for ext, fmt in FORMAT_BY_EXTENSION.items():
        if lowered.endswith(ext):
            return fmt
    return None
