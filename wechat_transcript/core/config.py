"""Persistent settings of the transcript API.

Settings live in one JSON file so the selected account directory and the
export target survive restarts. The file location is
``~/.wechat_transcript/config.json`` unless one of ``CONFIG_ENV_VARS`` is set.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional


_LOCK = threading.Lock()

APP_HOME = Path.home() / ".wechat_transcript"
DEFAULT_EXPORT_DIR = APP_HOME / "exports"
CONFIG_FILE_NAME = "config.json"

# (env var, is it a directory), first one set wins
CONFIG_ENV_VARS = (
    ("WECHAT_TRANSCRIPT_CONFIG_FILE", False),
    ("WECHAT_TRANSCRIPT_CONFIG_DIR", True),
)


def config_file_path() -> Path:
    for var, is_dir in CONFIG_ENV_VARS:
        value = os.environ.get(var)
        if value:
            return Path(value) / CONFIG_FILE_NAME if is_dir else Path(value)
    return APP_HOME / CONFIG_FILE_NAME


@dataclass
class AppConfig:
    data_path: Optional[str] = None  # wxid_* account directory
    export_dir: Optional[str] = None

    def resolved_export_dir(self) -> Path:
        return Path(self.export_dir) if self.export_dir else DEFAULT_EXPORT_DIR

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        """Build from stored JSON; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def _read() -> AppConfig:
    cfg_file = config_file_path()
    if not cfg_file.exists():
        return AppConfig()
    try:
        return AppConfig.from_dict(json.loads(cfg_file.read_text(encoding="utf-8")))
    except (OSError, ValueError, AttributeError, TypeError):
        return AppConfig()


def _write(cfg: AppConfig) -> None:
    cfg_file = config_file_path()
    cfg_file.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".config", dir=str(cfg_file.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(asdict(cfg), f, indent=2, ensure_ascii=False)
        os.replace(tmp, cfg_file)
    except OSError:
        try:
            os.remove(tmp)
        except OSError:
            pass
        raise


def load_config() -> AppConfig:
    with _LOCK:
        return _read()


def save_config(cfg: AppConfig) -> None:
    with _LOCK:
        _write(cfg)


def update_config(**changes: Optional[str]) -> AppConfig:
    """Change some fields and persist, under one lock.

    Raises:
        TypeError: A field name is unknown
    """
    with _LOCK:
        cfg = _read()
        for name, value in changes.items():
            if not hasattr(cfg, name):
                raise TypeError(f"Unknown config field: {name}")
            setattr(cfg, name, value)
        _write(cfg)
        return cfg
