"""API 总路由配置，按前缀注册输入目录子路由。"""

from __future__ import annotations

from fastapi import APIRouter

from runner.api.v1.input_dirs import router as input_dirs_router


def build_api_router(prefix: str) -> APIRouter:
    api_router = APIRouter(prefix=prefix)
    api_router.include_router(input_dirs_router, tags=["input-dirs"])
    return api_router
