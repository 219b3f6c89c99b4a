from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from autoapply.api.routes import router as api_router
from autoapply.config import get_settings
from autoapply.core.registry import AgentRegistry
from autoapply.core.runtime import build_agent_registry
from autoapply.db.init import init_database
from autoapply.db.repositories import Repository
from autoapply.db.session import SessionLocal

logger = logging.getLogger(__name__)


def create_app(registry: AgentRegistry | None = None) -> FastAPI:
    settings = get_settings()

    app = FastAPI(title=settings.app_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.registry = registry or build_agent_registry(SessionLocal, settings=settings)

    @app.on_event("startup")
    def _startup() -> None:
        init_database()
        if not settings.start_agents_on_boot:
            return

        with SessionLocal() as db:
            user_ids = Repository(db).list_active_subscriber_ids()
        for user_id in user_ids:
            app.state.registry.start(user_id, run_now=False)
        logger.info("Restored schedules for %d subscribed users", len(user_ids))

    @app.on_event("shutdown")
    def _shutdown() -> None:
        app.state.registry.shutdown()

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok", "running_agents": len(app.state.registry.running_users())})

    app.include_router(api_router)
    return app
