"""输入目录物化器：按 ansible-runner 约定生成 env/project/inventory 目录与文件。"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from runner.domain.enums import InputDirErrorKind
from runner.domain.models import InputDir, InputDirError

SUBDIRECTORIES = ("env", "project", "inventory")
ENVVARS_FILE = "env/envvars"
EXTRAVARS_FILE = "env/extravars"
INVENTORY_FILE = "inventory/hosts"
PLAYBOOK_FILE = "project/playbook.yaml"
INVENTORY_CONTENT = b"localhost ansible_connection=local"

FILE_MODE = 0o644
DIR_MODE = 0o777


def _check_keys(value: Any) -> None:
    """逐层检查映射键均为 str；json 会把 int/bool/None 键静默转成字符串。"""
    pending = [value]
    seen: set[int] = set()
    while pending:
        node = pending.pop()
        if not isinstance(node, (dict, list, tuple)) or id(node) in seen:
            continue
        seen.add(id(node))
        if isinstance(node, dict):
            for key, item in node.items():
                if not isinstance(key, str):
                    raise TypeError(f"keys must be str, not {type(key).__name__}: {key!r}")
                pending.append(item)
        else:
            pending.extend(node)


def serialize_json(value: Any) -> bytes:
    """紧凑 JSON 编码，键排序保证重复写入字节一致。"""
    encoded = json.dumps(
        value,
        ensure_ascii=False,
        allow_nan=False,
        sort_keys=True,
        separators=(",", ":"),
    )
    # 编码成功说明无环且有限，此时再做非递归的键检查。
    _check_keys(value)
    return encoded.encode("utf-8")


class InputDirWriter:
    """输入目录写入器，顺序执行、首错即停、不做回滚。"""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    def write(self, input_dir: InputDir) -> Path:
        """将描述对象物化到 input_dir.path 并返回根目录。"""
        root = Path(input_dir.path)
        # 序列化必须先于任何磁盘写入，非法输入不产生副作用。
        envvar_bytes = self._serialize(root, "env_vars", input_dir.env_vars)
        param_bytes = self._serialize(root, "parameters", input_dir.parameters)

        self._make_dirs(root)
        self._add_file(root / ENVVARS_FILE, envvar_bytes)
        self._add_file(root / EXTRAVARS_FILE, param_bytes)
        self._add_file(root / INVENTORY_FILE, INVENTORY_CONTENT)

        if input_dir.playbook_path:
            playbook_bytes = self._read_source(Path(input_dir.playbook_path))
            self._add_file(root / PLAYBOOK_FILE, playbook_bytes)

        self._logger.debug("input dir written: %s", root, extra={"event": "input_dir.write.succeeded", "path": str(root)})
        return root

    def _fail(self, kind: InputDirErrorKind, message: str, path: Path, exc: BaseException) -> InputDirError:
        """记录失败路径并构造带类型的错误，由调用方 raise ... from exc。"""
        self._logger.error(
            message,
            extra={"event": f"input_dir.{kind.value}.failed", "path": str(path), "kind": kind.value, "error": str(exc)},
        )
        return InputDirError(kind, f"{message}: {exc}", path=None if kind is InputDirErrorKind.serialization else path)

    def _serialize(self, root: Path, field_name: str, value: Any) -> bytes:
        try:
            return serialize_json(value)
        except (TypeError, ValueError, RecursionError) as exc:
            raise self._fail(
                InputDirErrorKind.serialization, f"unable to serialize {field_name} for {root}", root, exc
            ) from exc

    def _make_dirs(self, root: Path) -> None:
        for segment in SUBDIRECTORIES:
            full_path = root / segment
            try:
                full_path.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            except OSError as exc:
                raise self._fail(
                    InputDirErrorKind.directory_creation, f"unable to create directory {full_path}", full_path, exc
                ) from exc

    def _add_file(self, full_path: Path, content: bytes) -> None:
        """写入单个文件，已存在时截断覆盖。"""
        try:
            fd = os.open(full_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
            with os.fdopen(fd, "wb") as handle:
                handle.write(content)
        except OSError as exc:
            raise self._fail(InputDirErrorKind.file_write, f"unable to write file {full_path}", full_path, exc) from exc

    def _read_source(self, source: Path) -> bytes:
        try:
            with source.open("rb") as handle:
                return handle.read()
        except OSError as exc:
            raise self._fail(
                InputDirErrorKind.source_read, f"failed to read playbook file {source}", source, exc
            ) from exc
