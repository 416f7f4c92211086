"""输入目录服务测试：验证 run 目录解析、默认 playbook 与回读查询。"""

from __future__ import annotations

from pathlib import Path
from uuid import UUID

import pytest

from runner.application.input_dirs import InputDirService
from runner.config import Settings
from runner.infra.storage.input_dir import InputDirWriter


def test_prepare_generates_run_id(service: InputDirService, settings: Settings) -> None:
    """未提供 run_id 时生成 uuid4 并在 data_root 下物化。"""
    run_id, input_dir = service.prepare(parameters={"a": 1}, env_vars={"FOO": "bar"})

    assert UUID(run_id).version == 4
    assert input_dir.path == settings.data_root / run_id
    assert (input_dir.path / "env" / "extravars").read_bytes() == b'{"a":1}'


def test_prepare_uses_default_playbook(tmp_path: Path) -> None:
    """请求未携带 playbook 时使用配置中的默认 playbook。"""
    playbook = tmp_path / "default.yml"
    playbook.write_bytes(b"- hosts: localhost\n")
    settings = Settings(data_root=tmp_path / "runs", default_playbook_path=str(playbook))
    service = InputDirService(settings=settings, writer=InputDirWriter())

    _run_id, input_dir = service.prepare(run_id="memcached-sample")

    assert input_dir.playbook_path == str(playbook)
    assert (input_dir.path / "project" / "playbook.yaml").read_bytes() == b"- hosts: localhost\n"


@pytest.mark.parametrize("run_id", ["../escape", "a/b", "..", "", "with space"])
def test_prepare_rejects_unsafe_run_id(service: InputDirService, settings: Settings, run_id: str) -> None:
    """run_id 含路径分隔符或特殊名称时拒绝，避免写出 data_root。"""
    if run_id == "":
        # 空字符串按未提供处理，会生成新的 run_id。
        generated, _ = service.prepare(run_id=run_id)
        assert generated
        return
    with pytest.raises(ValueError):
        service.prepare(run_id=run_id)
    assert not (settings.data_root.parent / "escape").exists()


def test_inspect_reads_back_materialized_dir(service: InputDirService) -> None:
    service.prepare(run_id="run-1", parameters={"size": 3, "tags": ["x"]}, env_vars={"TOKEN": "abc"})

    snapshot = service.inspect("run-1")

    assert snapshot.parameters == {"size": 3, "tags": ["x"]}
    assert snapshot.env_vars == {"TOKEN": "abc"}
    assert snapshot.inventory == "localhost ansible_connection=local"
    assert snapshot.has_playbook is False


def test_inspect_missing_run(service: InputDirService) -> None:
    with pytest.raises(KeyError):
        service.inspect("does-not-exist")


def test_prepare_resolves_playbook_against_root(service: InputDirService, settings: Settings) -> None:
    """相对 playbook_path 按 playbook_root 解析；越出该目录时拒绝且不落盘。"""
    (settings.playbook_root / "site.yml").write_bytes(b"- hosts: all\n")

    _run_id, input_dir = service.prepare(run_id="inside", playbook_path="site.yml")
    assert input_dir.playbook_path == str((settings.playbook_root / "site.yml").resolve())

    with pytest.raises(ValueError):
        service.prepare(run_id="escape", playbook_path="../runs/inside/env/envvars")
    assert not (settings.data_root / "escape").exists()
