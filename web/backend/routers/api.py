from typing import Any, Dict, NoReturn

from fastapi import APIRouter, HTTPException

from sprintly.exceptions import NotFoundError, SprintlyError
from sprintly.logger import get_logger
from sprintly.models import AppState
from sprintly.pomodoro import format_time
from sprintly.service import get_service
from sprintly.storage import state_to_dict

router = APIRouter()
logger = get_logger("api")


def raise_http(error: SprintlyError) -> NoReturn:
    """Translate a domain error into an HTTP error."""
    status_code = 404 if isinstance(error, NotFoundError) else 400
    logger.warning(f"Request rejected ({status_code}): {error.message}")
    raise HTTPException(status_code=status_code, detail=error.message)


def pomodoro_to_dict(state: AppState) -> Dict[str, Any]:
    return {
        "active": state.pomodoro_active,
        "is_break": state.pomodoro_is_break,
        "remaining_seconds": state.pomodoro_remaining,
        "remaining_display": format_time(state.pomodoro_remaining),
        "total_focus_seconds": state.pomodoro_total_focus,
    }


def full_state_to_dict(state: AppState) -> Dict[str, Any]:
    data = state_to_dict(state)
    data["sprintAtivo"] = state.active_sprint.to_dict() if state.active_sprint else None
    data["selectedMetaId"] = state.selected_goal_id
    data["pomodoro"] = pomodoro_to_dict(state)
    return data


@router.get("/state")
async def get_state():
    return full_state_to_dict(get_service().state)
