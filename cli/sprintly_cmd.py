"""
CLI: sprintly
Backup, restore, import and stats against the local data slot.
"""
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from sprintly.exceptions import SprintlyError
from sprintly.importers import SUPPORTED_FORMATS, format_from_filename
from sprintly.logger import setup_logging
from sprintly.pomodoro import format_time
from sprintly.service import SprintlyService
from sprintly.storage import export_filename
from sprintly.store import Store


def _service() -> SprintlyService:
    return SprintlyService(Store.from_storage())


def _fail(error: SprintlyError) -> None:
    click.echo(f"❌ {error.get_user_message()}", err=True)
    sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Echo debug logs to stderr")
def sprintly(verbose: bool):
    """Sprintly goal tracker commands"""
    setup_logging(console_level=logging.DEBUG if verbose else logging.WARNING)


@sprintly.command()
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Target file (default: sprintly-backup-<date>.json)")
def export(output: Optional[Path]):
    """Write a JSON backup of all data"""
    payload = _service().export_backup()
    target = output or Path(export_filename())
    target.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    click.echo(f"✅ Backup written to {target}")


@sprintly.command()
@click.argument("backup_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def restore(backup_file: Path):
    """Replace all data with a JSON backup"""
    service = _service()
    try:
        data = json.loads(backup_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        click.echo(f"❌ Arquivo de backup inválido: {e}", err=True)
        sys.exit(1)

    try:
        state = service.restore_backup(data)
    except SprintlyError as e:
        _fail(e)
        return
    click.echo(f"✅ Backup restored: {len(state.goals)} goal(s), {len(state.tasks)} task(s)")


@sprintly.command(name="import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--format", "fmt", type=click.Choice(SUPPORTED_FORMATS), default=None,
              help="Input format (default: inferred from the file extension)")
def import_cmd(source: Path, fmt: Optional[str]):
    """Import goals and tasks from JSON, Markdown or CSV"""
    fmt = fmt or format_from_filename(source.name)
    if fmt is None:
        click.echo("❌ Cannot infer the format; pass --format", err=True)
        sys.exit(1)

    service = _service()
    try:
        batch = service.import_text(source.read_text(encoding="utf-8"), fmt)
    except SprintlyError as e:
        _fail(e)
        return
    click.echo(f"✅ Imported {len(batch.goals)} goal(s) and {len(batch.tasks)} task(s)")
    click.echo(f"🏆 Points: {service.state.points} (level {service.state.level})")


@sprintly.command()
@click.argument("prompt")
def roadmap(prompt: str):
    """Create a goal with a step-by-step roadmap for an objective"""
    service = _service()
    try:
        goal = service.generate_roadmap(prompt)
    except SprintlyError as e:
        _fail(e)
        return
    click.echo(f"🗺️ {goal.name} ({goal.category}, prazo {goal.deadline})")
    for index, step in enumerate(goal.steps, 1):
        click.echo(f"  {index}. {step}")
    click.echo(f"🏆 Points: {service.state.points} (level {service.state.level})")


@sprintly.command()
@click.confirmation_option(prompt="⚠️ Apagar todos os dados? Esta ação não pode ser desfeita.")
def clear():
    """Erase all saved data"""
    _service().clear_all()
    click.echo("🗑️ All data cleared")


@sprintly.command()
def stats():
    """Show progress per goal, tasks per status and achievements"""
    service = _service()
    report = service.progress_report()

    click.echo(f"🏆 Points: {report['points']}  Level: {report['level']}")
    click.echo(f"🍅 Focus time: {format_time(report['total_focus_seconds'])}")

    click.echo(f"\n🎯 Goals ({len(report['goals'])}):")
    for goal in report["goals"]:
        click.echo(f"  - {goal['name']}: {goal['progress']}% ({goal['done']}/{goal['tasks']} tasks)")

    click.echo("\n📋 Tasks:")
    for status, count in report["statuses"].items():
        click.echo(f"  {status}: {count}")

    click.echo("\n🏅 Achievements:")
    for ach in service.state.achievements:
        mark = "✔" if ach.unlocked else " "
        click.echo(f"  [{mark}] {ach.icon} {ach.name}")


if __name__ == "__main__":
    sprintly()
