"""输入目录服务门面：为每次运行解析根目录、物化输入目录并支持回读查询。"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from uuid import uuid4

from runner.config import Settings
from runner.domain.models import InputDir
from runner.infra.logging.context import bind_log_context
from runner.infra.logging.setup import mask_env_vars
from runner.infra.storage.input_dir import (
    ENVVARS_FILE,
    EXTRAVARS_FILE,
    INVENTORY_FILE,
    PLAYBOOK_FILE,
    InputDirWriter,
)

RUN_ID_RE = re.compile(r"^[A-Za-z0-9._-]+$")

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class InputDirSnapshot:
    """已物化输入目录的回读结果。"""
    run_id: str
    path: Path
    parameters: Any
    env_vars: Any
    inventory: str
    has_playbook: bool


class InputDirService:
    """输入目录服务，对外提供准备与查询能力。"""

    def __init__(self, *, settings: Settings, writer: InputDirWriter) -> None:
        self._settings = settings
        self._writer = writer

    def run_dir(self, run_id: str) -> Path:
        return self._settings.data_root / self._validate_run_id(run_id)

    def prepare(
        self,
        *,
        run_id: str | None = None,
        parameters: dict[str, Any] | None = None,
        env_vars: dict[str, str] | None = None,
        playbook_path: str | None = None,
        role_path: str | None = None,
    ) -> tuple[str, InputDir]:
        """构建描述对象并物化到 data_root/<run_id>，返回 run_id 与描述对象。"""
        resolved_run_id = run_id or str(uuid4())
        root = self.run_dir(resolved_run_id)
        if playbook_path:
            playbook_path = self._resolve_playbook(playbook_path)
        input_dir = InputDir(
            path=root,
            playbook_path=playbook_path or self._settings.default_playbook_path,
            role_path=role_path,
            parameters=parameters if parameters is not None else {},
            env_vars=env_vars if env_vars is not None else {},
        )
        with bind_log_context(run_id=resolved_run_id):
            logger.info(
                "prepare input dir: playbook=%s parameters=%s",
                input_dir.playbook_path or "-",
                ",".join(sorted(input_dir.parameters or {})) or "-",
                extra={
                    "event": "input_dir.prepare.started",
                    "path": str(root),
                    "env_vars": mask_env_vars(input_dir.env_vars),
                },
            )
            self._writer.write(input_dir)
            logger.info("input dir ready", extra={"event": "input_dir.prepare.succeeded", "path": str(root)})
        return resolved_run_id, input_dir

    def _resolve_playbook(self, requested: str) -> str:
        """请求的 playbook 按 playbook_root 解析，解析后（含符号链接）必须仍在该目录内。"""
        playbook_root = self._settings.playbook_root.resolve()
        candidate = (playbook_root / requested).resolve()
        if candidate != playbook_root and playbook_root not in candidate.parents:
            raise ValueError(f"playbook_path is outside playbook_root: {requested}")
        return str(candidate)

    def inspect(self, run_id: str) -> InputDirSnapshot:
        """回读已物化的输入目录内容。"""
        root = self.run_dir(run_id)
        if not root.is_dir():
            raise KeyError(f"input dir not found: {run_id}")
        return InputDirSnapshot(
            run_id=run_id,
            path=root,
            parameters=self._read_json(root / EXTRAVARS_FILE),
            env_vars=self._read_json(root / ENVVARS_FILE),
            inventory=self._read_text(root / INVENTORY_FILE),
            has_playbook=(root / PLAYBOOK_FILE).is_file(),
        )

    @staticmethod
    def _validate_run_id(run_id: str) -> str:
        # run_id 直接作为目录名，拒绝路径分隔符与 "."/".." 以免越出 data_root。
        if not RUN_ID_RE.match(run_id) or run_id in {".", ".."}:
            raise ValueError(f"invalid run_id: {run_id!r}")
        return run_id

    @staticmethod
    def _read_json(path: Path) -> Any:
        if not path.is_file():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    @staticmethod
    def _read_text(path: Path) -> str:
        if not path.is_file():
            return ""
        return path.read_text(encoding="utf-8")
