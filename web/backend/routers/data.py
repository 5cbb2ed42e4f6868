from typing import Any, Dict, Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from sprintly.exceptions import SprintlyError
from sprintly.models import Theme
from sprintly.service import get_service
from sprintly.storage import export_filename
from web.backend.routers.api import full_state_to_dict, raise_http

router = APIRouter()


class ImportRequest(BaseModel):
    content: str
    format: str = "json"


class SettingsRequest(BaseModel):
    theme: Optional[Theme] = None
    pomodoroSound: Optional[bool] = None
    autoStartBreaks: Optional[bool] = None
    showCompletedTasks: Optional[bool] = None
    autoUpdateProgress: Optional[bool] = None


@router.get("/export")
def export_data():
    payload = get_service().export_backup()
    return JSONResponse(
        content=payload,
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.post("/restore")
def restore_data(backup: Dict[str, Any]):
    service = get_service()
    try:
        state = service.restore_backup(backup)
    except SprintlyError as e:
        raise_http(e)
    return {"success": True, "state": full_state_to_dict(state)}


@router.post("/import")
def import_data(req: ImportRequest):
    service = get_service()
    try:
        batch = service.import_text(req.content, req.format)
    except SprintlyError as e:
        raise_http(e)
    return {
        "goals_imported": len(batch.goals),
        "tasks_imported": len(batch.tasks),
        "points": service.state.points,
    }


@router.delete("")
def clear_data():
    get_service().clear_all()
    return {"success": True}


@router.get("/settings")
def get_settings():
    return get_service().state.settings.to_dict()


@router.patch("/settings")
def update_settings(req: SettingsRequest):
    updates = req.model_dump(exclude_none=True)
    if "theme" in updates:
        updates["theme"] = updates["theme"].value
    state = get_service().update_settings(updates)
    return state.settings.to_dict()


@router.get("/achievements")
def list_achievements():
    return {"achievements": [a.to_dict() for a in get_service().state.achievements]}


@router.get("/stats")
def get_stats():
    return get_service().progress_report()
