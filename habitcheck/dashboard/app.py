#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HabitCheck Web Dashboard - FastAPI Application
JSON API over the habit and cough log store
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from habitcheck import __version__
from habitcheck.config import TrackerConfig, config
from habitcheck.core.models import NotFoundError, ValidationError
from habitcheck.core.store import EntryStore
from habitcheck.shared.models import HealthCheck
from .api import habits, coughs, stats
from .dependencies import build_entry_store, get_entry_store

logger = logging.getLogger(__name__)


def create_app(entry_store: Optional[EntryStore] = None,
               tracker_config: Optional[TrackerConfig] = None) -> FastAPI:
    """Build the dashboard; a provided store is used as-is and closed on shutdown"""
    tracker_config = tracker_config or config
    show_docs = tracker_config.server.debug_mode or tracker_config.is_development()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 Starting HabitCheck dashboard...")
        app.state.start_time = time.time()
        logger.debug(f"Configuration: {tracker_config.to_dict()}")

        store = entry_store
        if store is None:
            tracker_config.ensure_directories()
            store = build_entry_store(tracker_config)
        elif not store.is_initialized:
            store.initialize()
        store.database.start_scheduler()
        app.state.entry_store = store

        logger.info(f"📊 Habits loaded: {len(store.get_habits())}")
        logger.info(f"📝 Cough logs loaded: {len(store.get_cough_logs())}")
        logger.info(f"🌐 Dashboard available at http://{tracker_config.server.host}:{tracker_config.server.port}")

        yield

        logger.info("🛑 Stopping HabitCheck dashboard...")
        store.close()
        logger.info("✅ Resources released")

    app = FastAPI(
        title="HabitCheck Dashboard",
        description="Habit tracking and cough incident logging",
        version=__version__,
        docs_url="/api/docs" if show_docs else None,
        redoc_url="/api/redoc" if show_docs else None,
        openapi_url="/api/openapi.json" if show_docs else None,
        lifespan=lifespan
    )

    # ===== MIDDLEWARE =====

    app.add_middleware(
        CORSMiddleware,
        allow_origins=tracker_config.server.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ===== ERROR HANDLERS =====

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        logger.info(f"Rejected {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=422, content={"success": False, "message": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"success": False, "message": str(exc)})

    # ===== ROUTES =====

    app.include_router(habits.router)
    app.include_router(coughs.router)
    app.include_router(stats.router)

    @app.get("/health", response_model=HealthCheck)
    async def health_check(request: Request):
        store = get_entry_store(request)
        return HealthCheck(
            status="healthy",
            service="habitcheck-dashboard",
            version=__version__,
            timestamp=time.time(),
            habits=len(store.get_habits()),
            cough_logs=len(store.get_cough_logs())
        )

    return app


app = create_app()
