import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sprintly.logger import get_logger
from web.backend.routers import api, data, goals, pomodoro, sprints, tasks

logger = get_logger("app")


def create_app() -> FastAPI:
    app = FastAPI(title="Sprintly API", version="1.0.0")

    raw_origins = os.getenv("SPRINTLY_ALLOWED_ORIGINS", "*")
    allow_origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    allow_credentials = "*" not in allow_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "service": "Sprintly"}

    app.include_router(api.router, prefix="/api/v1", tags=["api"])
    app.include_router(goals.router, prefix="/api/v1/goals", tags=["goals"])
    app.include_router(tasks.router, prefix="/api/v1/tasks", tags=["tasks"])
    app.include_router(sprints.router, prefix="/api/v1/sprints", tags=["sprints"])
    app.include_router(pomodoro.router, prefix="/api/v1/pomodoro", tags=["pomodoro"])
    app.include_router(data.router, prefix="/api/v1/data", tags=["data"])

    logger.info("Sprintly API routes registered")
    return app


app = create_app()
