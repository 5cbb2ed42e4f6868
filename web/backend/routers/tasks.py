from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from sprintly.exceptions import SprintlyError
from sprintly.models import TaskStatus
from sprintly.service import get_service
from web.backend.routers.api import raise_http

router = APIRouter()


class TaskCreateRequest(BaseModel):
    title: str
    goal_id: Optional[str] = None
    description: str = ""


class TaskUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    goal_id: Optional[str] = None


class MoveRequest(BaseModel):
    status: TaskStatus


def _task_view(service, task) -> dict:
    data = task.to_dict()
    data["metaNome"] = service.goal_name(task.goal_id)
    return data


@router.get("")
def list_tasks(goal_id: Optional[str] = None):
    service = get_service()
    tasks = service.state.tasks
    if goal_id:
        tasks = [t for t in tasks if t.goal_id == goal_id]
    return {"tasks": [_task_view(service, t) for t in tasks]}


@router.get("/board")
def get_board():
    """Kanban columns, filtered by the selected goal and the showCompletedTasks setting."""
    service = get_service()
    return {
        column: [_task_view(service, t) for t in tasks]
        for column, tasks in service.board().items()
    }


@router.post("", status_code=201)
def create_task(req: TaskCreateRequest):
    service = get_service()
    try:
        task = service.create_task(req.title, goal_id=req.goal_id, description=req.description)
    except SprintlyError as e:
        raise_http(e)
    return {"task": task.to_dict(), "points": service.state.points}


@router.put("/{task_id}")
def update_task(task_id: str, req: TaskUpdateRequest):
    service = get_service()
    try:
        task = service.edit_task(
            task_id,
            title=req.title,
            description=req.description,
            goal_id=req.goal_id,
        )
    except SprintlyError as e:
        raise_http(e)
    return {"task": task.to_dict()}


@router.delete("/{task_id}")
def delete_task(task_id: str):
    service = get_service()
    try:
        service.delete_task(task_id)
    except SprintlyError as e:
        raise_http(e)
    return {"success": True}


@router.post("/{task_id}/move")
def move_task(task_id: str, req: MoveRequest):
    service = get_service()
    try:
        task = service.move_task(task_id, req.status)
    except SprintlyError as e:
        raise_http(e)

    goal = service.state.find_goal(task.goal_id)
    return {
        "task": task.to_dict(),
        "goal_progress": goal.progress if goal else None,
        "points": service.state.points,
        "level": service.state.level,
    }
