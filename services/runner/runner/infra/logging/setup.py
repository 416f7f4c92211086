"""日志初始化：JSON 行输出、按 run_id 放行 DEBUG，以及环境变量取值脱敏。"""

from __future__ import annotations

import json
import logging
import logging.config
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from runner.config import Settings
from runner.infra.logging.context import LOG_CONTEXT_FIELDS, get_log_context

MASK = "***"
_HANDLER_NAMES = ("runner_file", "runner_stderr")

# 变量名中出现这些片段时视为凭据，其取值不得进入日志。
_SECRET_NAME = r"[A-Za-z0-9_]*(?:TOKEN|PASSWORD|PASSWD|SECRET|API_KEY|PRIVATE_KEY|CREDENTIAL|AUTH)[A-Za-z0-9_]*"
_SECRET_ASSIGNMENT = re.compile(rf"(?i)\b({_SECRET_NAME})(\s*[=:]\s*)(\"[^\"]*\"|'[^']*'|[^\s,;}}]+)")
_SECRET_JSON_PAIR = re.compile(rf"(?i)(\"{_SECRET_NAME}\"\s*:\s*)\"(?:[^\"\\]|\\.)*\"")
_ANY_ASSIGNMENT = re.compile(r"\b([A-Z][A-Z0-9_]*)=(\S+)")


def mask_env_vars(env_vars: Mapping[str, Any] | None) -> dict[str, str]:
    """保留变量名、隐藏全部取值，用于记录一次运行收到了哪些环境变量。"""
    return {name: MASK for name in sorted(env_vars or {})}


def redact_text(value: str | None, mode: str) -> str | None:
    """off 不处理；standard 隐藏凭据类变量取值；strict 额外隐藏所有 NAME=value 形式的取值。"""
    if value is None or mode == "off":
        return value
    text = _SECRET_JSON_PAIR.sub(rf'\1"{MASK}"', value)
    text = _SECRET_ASSIGNMENT.sub(rf"\1\2{MASK}", text)
    if mode == "strict":
        text = _ANY_ASSIGNMENT.sub(rf"\1={MASK}", text)
    return text


class RunLogFilter(logging.Filter):
    """把上下文标识写入 record；低于阈值的记录仅在 DEBUG 且 run_id 被点名时放行。"""

    def __init__(self, *, min_level: int, debug_run_ids: set[str]) -> None:
        super().__init__()
        self._min_level = min_level
        self._debug_run_ids = debug_run_ids

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = get_log_context()
        for name in LOG_CONTEXT_FIELDS:
            if getattr(record, name, None) is None:
                setattr(record, name, ctx[name])
        if record.levelno >= self._min_level:
            return True
        return record.levelno == logging.DEBUG and record.run_id in self._debug_run_ids


class JsonLineFormatter(logging.Formatter):
    """每条记录输出一行 JSON，携带输入目录的 path 与失败 kind。"""

    def __init__(self, *, role: str, redaction_mode: str) -> None:
        super().__init__()
        self._role = role
        self._redaction_mode = redaction_mode

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_log_context()
        error = getattr(record, "error", None)
        if error is None and record.exc_info:
            error = self.formatException(record.exc_info)
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "role": self._role,
            "logger": record.name,
            "event": getattr(record, "event", None),
            "request_id": getattr(record, "request_id", None) or ctx["request_id"],
            "run_id": getattr(record, "run_id", None) or ctx["run_id"],
            "path": getattr(record, "path", None),
            "kind": getattr(record, "kind", None),
            "message": redact_text(record.getMessage(), self._redaction_mode),
            "error": redact_text(str(error), self._redaction_mode) if error is not None else None,
            "env_vars": getattr(record, "env_vars", None),
        }
        return json.dumps(entry, ensure_ascii=False)


def configure_logging(settings: Settings, *, role: str) -> Path:
    """按角色写入 log_dir/<role>/runner.jsonl，ERROR 同时输出到 stderr。"""
    log_file = settings.log_dir / role / "runner.jsonl"
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "run": {
                    "()": RunLogFilter,
                    "min_level": logging.getLevelNamesMapping().get(settings.log_level.upper(), logging.INFO),
                    "debug_run_ids": settings.debug_run_ids(),
                },
            },
            "formatters": {
                "json": {"()": JsonLineFormatter, "role": role, "redaction_mode": settings.log_redaction_mode},
            },
            "handlers": {
                "runner_file": {
                    "class": "logging.handlers.RotatingFileHandler",
                    "filename": str(log_file),
                    "maxBytes": settings.log_max_bytes,
                    "backupCount": settings.log_backup_count,
                    "encoding": "utf-8",
                    "filters": ["run"],
                    "formatter": "json",
                },
                "runner_stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "level": "ERROR",
                    "filters": ["run"],
                    "formatter": "json",
                },
            },
            "root": {"level": "DEBUG", "handlers": list(_HANDLER_NAMES)},
        }
    )
    return log_file


def shutdown_logging() -> None:
    """摘除并关闭 configure_logging 安装的处理器。"""
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() in _HANDLER_NAMES:
            root.removeHandler(handler)
            handler.close()
