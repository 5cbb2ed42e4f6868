from typing import List, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from sprintly.exceptions import SprintlyError
from sprintly.service import get_service
from web.backend.routers.api import raise_http

router = APIRouter()


class SprintRequest(BaseModel):
    name: str
    duration_days: Optional[int] = None
    goal_ids: List[str] = []


@router.get("")
def list_sprints():
    state = get_service().state
    return {
        "sprints": [s.to_dict() for s in state.sprints],
        "active": state.active_sprint.to_dict() if state.active_sprint else None,
    }


@router.post("", status_code=201)
def start_sprint(req: SprintRequest):
    service = get_service()
    try:
        sprint = service.start_sprint(req.name, req.duration_days, req.goal_ids)
    except SprintlyError as e:
        raise_http(e)
    return {"sprint": sprint.to_dict(), "points": service.state.points}


@router.post("/{sprint_id}/end")
def end_sprint(sprint_id: str):
    service = get_service()
    try:
        service.end_sprint(sprint_id)
    except SprintlyError as e:
        raise_http(e)
    return {"success": True}
