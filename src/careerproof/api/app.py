from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from careerproof.api.errors import attach_error_handlers
from careerproof.api.routes import router as api_router
from careerproof.config import get_settings
from careerproof.db.init import init_database
from careerproof.logging_config import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title=settings.app_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    attach_error_handlers(app)

    @app.on_event("startup")
    def _startup() -> None:
        init_database()

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(api_router)
    return app
