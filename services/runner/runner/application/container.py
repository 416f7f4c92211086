"""依赖容器模块，负责单例化创建输入目录写入器与应用服务对象。"""

from __future__ import annotations

import logging
from functools import lru_cache

from runner.application.input_dirs import InputDirService
from runner.config import Settings, get_settings
from runner.infra.storage.input_dir import InputDirWriter


@lru_cache(maxsize=1)
def get_input_dir_writer() -> InputDirWriter:
    """获取输入目录写入器单例。"""
    return InputDirWriter(logging.getLogger("runner.infra.storage.input_dir"))


def build_input_dir_service(settings: Settings | None = None) -> InputDirService:
    """按给定配置（缺省为全局配置）构建输入目录服务。"""
    return InputDirService(settings=settings or get_settings(), writer=get_input_dir_writer())


def shutdown_container_resources() -> None:
    get_input_dir_writer.cache_clear()
