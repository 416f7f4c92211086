"""日志上下文：用单个 ContextVar 保存当前请求与运行的标识。"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Iterator, Mapping

LOG_CONTEXT_FIELDS = ("request_id", "run_id")

_log_context: ContextVar[Mapping[str, str | None]] = ContextVar(
    "runner_log_context", default=MappingProxyType({})
)


def get_log_context() -> dict[str, str | None]:
    current = _log_context.get()
    return {name: current.get(name) for name in LOG_CONTEXT_FIELDS}


@contextmanager
def bind_log_context(**fields: str | None) -> Iterator[None]:
    """在上下文范围内叠加日志字段，退出时恢复外层取值。"""
    unknown = set(fields) - set(LOG_CONTEXT_FIELDS)
    if unknown:
        raise TypeError(f"unknown log context fields: {sorted(unknown)}")
    token = _log_context.set(MappingProxyType({**_log_context.get(), **fields}))
    try:
        yield
    finally:
        _log_context.reset(token)
