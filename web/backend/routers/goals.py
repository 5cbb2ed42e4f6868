from typing import List, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from sprintly.exceptions import SprintlyError
from sprintly.service import get_service
from web.backend.routers.api import raise_http

router = APIRouter()


class GoalCreateRequest(BaseModel):
    name: str
    description: str
    deadline: str
    category: str = ""
    urgency: str = "media"
    steps: List[str] = []
    tags: List[str] = []


class GoalUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    deadline: Optional[str] = None
    category: Optional[str] = None
    urgency: Optional[str] = None
    steps: Optional[List[str]] = None
    tags: Optional[List[str]] = None


class SelectRequest(BaseModel):
    goal_id: Optional[str] = None


class RoadmapRequest(BaseModel):
    prompt: str


@router.get("")
def list_goals():
    service = get_service()
    return {"goals": [g.to_dict() for g in service.state.goals]}


@router.post("", status_code=201)
def create_goal(req: GoalCreateRequest):
    service = get_service()
    try:
        goal = service.create_goal(
            name=req.name,
            description=req.description,
            deadline=req.deadline,
            category=req.category,
            urgency=req.urgency,
            steps=req.steps,
            tags=req.tags,
        )
    except SprintlyError as e:
        raise_http(e)
    return {"goal": goal.to_dict(), "points": service.state.points}


@router.put("/{goal_id}")
def update_goal(goal_id: str, req: GoalUpdateRequest):
    service = get_service()
    try:
        goal = service.edit_goal(goal_id, **req.model_dump(exclude_none=True))
    except SprintlyError as e:
        raise_http(e)
    return {"goal": goal.to_dict()}


@router.delete("/{goal_id}")
def delete_goal(goal_id: str):
    """Delete a goal together with every task that references it."""
    service = get_service()
    try:
        removed = service.delete_goal(goal_id)
    except SprintlyError as e:
        raise_http(e)
    return {"success": True, "tasks_removed": removed}


@router.post("/select")
def select_goal(req: SelectRequest):
    service = get_service()
    try:
        service.select_goal(req.goal_id)
    except SprintlyError as e:
        raise_http(e)
    return {"selected_goal_id": service.state.selected_goal_id}


@router.post("/roadmap", status_code=201)
def generate_roadmap(req: RoadmapRequest):
    """Create a goal with a ready-made roadmap for a free-text objective."""
    service = get_service()
    try:
        goal = service.generate_roadmap(req.prompt)
    except SprintlyError as e:
        raise_http(e)
    return {"goal": goal.to_dict(), "points": service.state.points}
