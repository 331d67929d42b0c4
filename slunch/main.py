from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from slunch.api.router import api_router
from slunch.app_logging import configure_logging
from slunch.config import get_settings
from slunch.containers import AppContainer, build_container
from slunch.db.database import init_db
from slunch.errors import SlunchError
from slunch.scheduler.runner import start_scheduler


def create_app(
    container: Optional[AppContainer] = None,
    run_scheduler: bool = True,
) -> FastAPI:
    settings = container.settings if container else get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting up...")
        if getattr(app.state, "container", None) is None:
            configure_logging(settings)
            app.state.container = build_container(settings)
        init_db(app.state.container.engine)

        # 啟動排程器
        scheduler = start_scheduler(app.state.container) if run_scheduler else None
        app.state.scheduler = scheduler

        yield

        # 關閉排程器
        if scheduler:
            scheduler.shutdown()
        app.state.container.close()
        logger.info("Shutting down...")

    # Disable interactive docs in production
    docs_url = None if settings.is_production else "/docs"
    redoc_url = None if settings.is_production else "/redoc"

    app = FastAPI(
        title="Slunch API",
        description="학교 급식, 학사일정, 시간표 조회 및 알림 API",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=docs_url,
        redoc_url=redoc_url,
    )
    app.state.container = container
    app.state.scheduler = None

    # Configure CORS origins
    default_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
    if settings.cors_origins:
        cors_origins = [origin.strip() for origin in settings.cors_origins.split(",")]
    else:
        cors_origins = default_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "token"],
    )

    @app.exception_handler(SlunchError)
    async def slunch_error_handler(request: Request, exc: SlunchError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    app.include_router(api_router)

    @app.get("/health")
    def health_check():
        scheduler = app.state.scheduler
        return {
            "status": "ok",
            "scheduler_running": scheduler is not None and scheduler.running,
        }

    return app


app = create_app()
