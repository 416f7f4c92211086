"""领域数据结构定义：ansible-runner 输入目录描述对象与物化错误。"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from runner.domain.enums import InputDirErrorKind


@dataclass(slots=True, frozen=True)
class InputDir:
    """ansible-runner 输入目录描述，写入前由调用方填充完整。"""
    path: Path
    playbook_path: str | None = None
    role_path: str | None = None  # metadata only, never written
    parameters: dict[str, Any] | None = field(default_factory=dict)
    env_vars: dict[str, str] | None = field(default_factory=dict)


class InputDirError(RuntimeError):
    """输入目录物化失败，携带失败类型、路径与底层异常。"""

    def __init__(self, kind: InputDirErrorKind, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.path = path
