from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

import aiohttp
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from huequitas.core.config import settings
from huequitas.core.errors import error_response, install_error_handlers
from huequitas.core.logging_config import configure_logging
from huequitas.db.base import Base
from huequitas.db.session import engine

import huequitas.models

from huequitas.gateway.proxy import Upstream, build_router, default_upstreams
from huequitas.routers import auth, chat, likes, restaurants, reviews, users

configure_logging(log_dir=settings.log_dir, level=settings.log_level)
logger = logging.getLogger(__name__)


def _create_service(name: str, routers: list[APIRouter], *, lifespan=None) -> FastAPI:
    app = FastAPI(title=f"Huequitas {name}", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error")
            return error_response(500, "Internal server error")
        duration_ms = int((time.time() - start) * 1000)
        logger.info("%s %s -> %s (%sms)", request.method, request.url.path, response.status_code, duration_ms)
        return response

    @app.get("/health", include_in_schema=False)
    def health() -> dict:
        return {"status": "OK", "service": name}

    for router in routers:
        app.include_router(router)
    return app


@asynccontextmanager
async def _db_lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("DB ready")
    yield


def create_auth_app() -> FastAPI:
    return _create_service("auth-service", [auth.router, users.router], lifespan=_db_lifespan)


def create_core_app() -> FastAPI:
    return _create_service(
        "core-service", [restaurants.router, reviews.router, likes.router], lifespan=_db_lifespan
    )


def create_chat_app() -> FastAPI:
    return _create_service("chat-service", [chat.router], lifespan=_db_lifespan)


def create_gateway_app(upstreams: list[Upstream] | None = None) -> FastAPI:
    upstreams = upstreams or default_upstreams()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Tests may install their own session before startup
        owned = getattr(app.state, "http", None) is None
        if owned:
            app.state.http = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=settings.gateway_timeout_seconds)
            )
        try:
            yield
        finally:
            if owned:
                await app.state.http.close()
                app.state.http = None

    return _create_service("gateway", [build_router(upstreams)], lifespan=lifespan)
