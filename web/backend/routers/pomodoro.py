from fastapi import APIRouter

from sprintly.service import get_service
from web.backend.routers.api import pomodoro_to_dict

router = APIRouter()


@router.get("")
def get_pomodoro():
    return pomodoro_to_dict(get_service().state)


@router.post("/start")
def start_focus():
    return pomodoro_to_dict(get_service().start_focus())


@router.post("/break")
def start_break():
    return pomodoro_to_dict(get_service().start_break())


@router.post("/stop")
def stop_pomodoro():
    service = get_service()
    outcome = service.stop_pomodoro()
    payload = pomodoro_to_dict(service.state)
    payload["outcome"] = outcome.value
    payload["points"] = service.state.points
    return payload


@router.post("/tick")
def tick():
    """
    Advance the countdown by one second, for clients driving their own timer.

    Ignored while the pomodoro is stopped or the background timer is running.
    """
    service = get_service()
    if not service.ticker.running:
        service.ticker.tick()
    return pomodoro_to_dict(service.state)
