from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError
from .lib.env import Layout
from .logging_utils import DEFAULT_LOG_PATH

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = "/etc/w3p-ups-installer.yaml"

_KNOWN_KEYS = {"repo", "arch", "api_url", "download_url", "timeout_seconds", "log_path", "paths"}


@dataclass(frozen=True)
class Settings:
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def repo(self) -> str:
        return str(self.raw.get("repo") or "Web3-Pi/Web3-Pi-UPS-Service")

    @property
    def arch(self) -> str:
        return str(self.raw.get("arch") or "aarch64")

    @property
    def api_url(self) -> str:
        return str(self.raw.get("api_url") or "https://api.github.com").rstrip("/")

    @property
    def download_url(self) -> str:
        return str(self.raw.get("download_url") or "https://github.com").rstrip("/")

    @property
    def timeout_seconds(self) -> float:
        return float(self.raw.get("timeout_seconds") or 30)

    @property
    def log_path(self) -> str:
        return str(self.raw.get("log_path") or DEFAULT_LOG_PATH)

    @property
    def layout(self) -> Layout:
        paths = self.raw.get("paths") or {}
        allowed = {f.name for f in fields(Layout)}
        return Layout(**{k: str(v) for k, v in paths.items() if k in allowed and v})


def load_settings(path: Optional[str] = None) -> Settings:
    """Load installer settings.

    With no explicit path the default location is optional; an explicitly
    requested file must exist.
    """

    explicit = path is not None
    p = Path(path or DEFAULT_SETTINGS_PATH)
    if not p.exists():
        if explicit:
            raise ConfigError(f"Settings file not found: {p}")
        return Settings()

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read settings file {p}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"{p} must contain a mapping/object")
    paths = raw.get("paths")
    if paths is not None and not isinstance(paths, dict):
        raise ConfigError(f"{p}: 'paths' must be a mapping/object")

    for key in sorted(set(raw) - _KNOWN_KEYS):
        logger.debug("Ignoring unknown settings key %s", key)

    logger.debug("Loaded settings from %s", p)
    return Settings(raw=raw)
