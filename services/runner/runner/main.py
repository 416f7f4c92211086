"""FastAPI 应用入口：按配置装配输入目录服务，启动时初始化日志，并为每个请求绑定 X-Request-Id。"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import logging
from uuid import uuid4

from fastapi import FastAPI, Request

from runner.api.router import build_api_router
from runner.application.container import build_input_dir_service, shutdown_container_resources
from runner.config import Settings, get_settings
from runner.infra.logging.context import bind_log_context
from runner.infra.logging.setup import configure_logging, shutdown_logging

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        log_file = configure_logging(settings, role="api")
        logger.info("api ready: log_file=%s", log_file, extra={"event": "api.startup", "path": str(settings.data_root)})
        try:
            yield
        finally:
            logger.info("api stopping", extra={"event": "api.shutdown"})
            shutdown_container_resources()
            shutdown_logging()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.input_dir_service = build_input_dir_service(settings)

    @app.middleware("http")
    async def bind_request_id(request: Request, call_next):
        """透传或生成 X-Request-Id，请求期间写入日志上下文。"""
        request_id = request.headers.get("X-Request-Id") or str(uuid4())
        with bind_log_context(request_id=request_id):
            response = await call_next(request)
            logger.info(
                "%s %s -> %s",
                request.method,
                request.url.path,
                response.status_code,
                extra={"event": "http.request.completed"},
            )
        response.headers["X-Request-Id"] = request_id
        return response

    @app.get("/health")
    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok", "data_root": str(settings.data_root)}

    app.include_router(build_api_router(settings.api_prefix))
    return app
