"""运行配置：输入目录根路径、playbook 白名单目录与日志参数，从环境变量加载。"""

from __future__ import annotations

import errno
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOCAL_DATA_ROOT = Path("data") / "runner"


class Settings(BaseSettings):
    """服务配置，所有相对路径在加载时按当前工作目录转为绝对路径。"""
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", validate_default=True
    )

    app_name: str = "Ansible Runner Input Service"
    api_prefix: str = "/api/v1"

    # 每次运行的输入目录为 data_root/<run_id>
    data_root: Path = Field(default=_LOCAL_DATA_ROOT)
    # 请求携带的 playbook_path 必须落在该目录内
    playbook_root: Path = Field(default=Path("playbooks"))
    # 请求未携带 playbook 时使用，不受 playbook_root 约束
    default_playbook_path: str | None = None

    log_dir: Path = Field(default=Path("logs"))
    log_level: str = "INFO"
    log_debug_run_ids: str = ""
    log_redaction_mode: str = "standard"  # off | standard | strict
    log_max_bytes: int = 10 * 1024 * 1024
    log_backup_count: int = 5

    @field_validator("data_root", "playbook_root", "log_dir")
    @classmethod
    def _absolute(cls, value: Path) -> Path:
        return value if value.is_absolute() else (Path.cwd() / value).resolve()

    def debug_run_ids(self) -> set[str]:
        """需要放行 DEBUG 日志的 run_id 集合（逗号分隔配置）。"""
        return {item.strip() for item in self.log_debug_run_ids.split(",") if item.strip()}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """加载并缓存配置；data_root 不可写时回退到工作目录下的本地目录。"""
    settings = Settings()
    try:
        settings.data_root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        if exc.errno not in {errno.EACCES, errno.EPERM, errno.EROFS}:
            raise
        settings.data_root = (Path.cwd() / _LOCAL_DATA_ROOT).resolve()
        settings.data_root.mkdir(parents=True, exist_ok=True)
    return settings
