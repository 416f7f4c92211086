"""API 请求/响应数据模型定义，约束输入目录接口的传参与返回结构。"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class InputDirCreateRequest(BaseModel):
    """创建输入目录接口请求模型。"""
    run_id: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)
    env_vars: dict[str, str] = Field(default_factory=dict)
    playbook_path: str | None = None
    role_path: str | None = None


class InputDirCreateResponse(BaseModel):
    """创建输入目录接口响应模型。"""
    run_id: str
    path: str
    has_playbook: bool


class InputDirDetailResponse(BaseModel):
    """输入目录详情接口响应模型。"""
    run_id: str
    path: str
    parameters: Any
    env_vars: Any
    inventory: str
    has_playbook: bool
