"""领域枚举定义：统一输入目录物化失败的错误分类取值。"""

from __future__ import annotations

from enum import Enum


class InputDirErrorKind(str, Enum):
    """输入目录物化失败类型枚举。"""
    serialization = "serialization"
    directory_creation = "directory_creation"
    file_write = "file_write"
    source_read = "source_read"
