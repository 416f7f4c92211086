"""测试公共夹具：基于临时目录构建配置与输入目录服务。"""

from __future__ import annotations

from pathlib import Path

import pytest

from runner.application.input_dirs import InputDirService
from runner.config import Settings
from runner.infra.storage.input_dir import InputDirWriter


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    playbook_root = tmp_path / "playbooks"
    playbook_root.mkdir()
    return Settings(data_root=tmp_path / "runs", playbook_root=playbook_root, log_dir=tmp_path / "logs")


@pytest.fixture
def service(settings: Settings) -> InputDirService:
    return InputDirService(settings=settings, writer=InputDirWriter())
