"""
Configuration management for promptqueue.

Loads settings from ~/.promptqueue/settings.json and provides
typed access to all configurable values.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any

log = logging.getLogger("promptqueue.config")


class Config:
    """Manages promptqueue configuration and directory structure."""

    def __init__(self, base_dir: Path | str | None = None) -> None:
        if base_dir is not None:
            self.base_dir = Path(base_dir).expanduser()
        else:
            env_dir = os.getenv("PROMPTQUEUE_DIR")
            self.base_dir = Path(env_dir).expanduser() if env_dir else Path.home() / ".promptqueue"

        # Sub-directories
        self.log_dir = self.base_dir / "log"
        self.data_dir = self.base_dir / "data"
        self.browser_dir = self.base_dir / "browser"

        self.settings_file = self.base_dir / "settings.json"
        self.state_file = self.data_dir / "state.json"

        self._ensure_dirs()
        self._settings: dict[str, Any] = self._load_settings()

    def _ensure_dirs(self) -> None:
        for d in [self.base_dir, self.log_dir, self.data_dir, self.browser_dir]:
            d.mkdir(parents=True, exist_ok=True)

    def _default_settings(self) -> dict[str, Any]:
        return {
            "version": "1.0.0",
            "created_at": datetime.now().isoformat(),
            "server": {"host": "127.0.0.1", "port": 8765},
            "browser": {"url": "https://chatgpt.com/", "headless": False},
            "monitor": {
                "settle_delay_ms": 150,
                "poll_interval_ms": 1000,
                "poll_fallback": True,
            },
            "logging": {"level": "INFO", "keep": 30},
        }

    def _load_settings(self) -> dict[str, Any]:
        if self.settings_file.exists():
            try:
                data = json.loads(self.settings_file.read_text())
                # Merge with defaults (adds any missing keys)
                defaults = self._default_settings()
                return self._deep_merge(defaults, data)
            except (OSError, ValueError) as e:
                log.warning("Ignoring unreadable settings file %s: %s", self.settings_file, e)
        return self._default_settings()

    def _deep_merge(self, base: dict, override: dict) -> dict:
        result = base.copy()
        for k, v in override.items():
            if k in result and isinstance(result[k], dict) and isinstance(v, dict):
                result[k] = self._deep_merge(result[k], v)
            else:
                result[k] = v
        return result

    def save(self) -> None:
        self.settings_file.write_text(json.dumps(self._settings, indent=2))

    def get(self, key_path: str, default: Any = None) -> Any:
        """Dot-notation access. e.g. config.get('monitor.settle_delay_ms')"""
        parts = key_path.split(".")
        val: Any = self._settings
        for part in parts:
            if not isinstance(val, dict) or part not in val:
                return default
            val = val[part]
        return val

    def set(self, key_path: str, value: Any, save: bool = True) -> None:
        parts = key_path.split(".")
        d = self._settings
        for part in parts[:-1]:
            d = d.setdefault(part, {})
        d[parts[-1]] = value
        if save:
            self.save()

    @property
    def log_level(self) -> str:
        return str(self.get("logging.level", "INFO")).upper()

    @property
    def log_keep(self) -> int:
        return int(self.get("logging.keep", 30))

    @property
    def dev_mode(self) -> bool:
        return os.getenv("DEV_MODE", "").lower() in ("1", "true", "yes")

    @property
    def host(self) -> str:
        return str(self.get("server.host", "127.0.0.1"))

    @property
    def port(self) -> int:
        return int(self.get("server.port", 8765))

    @property
    def browser_url(self) -> str:
        return str(self.get("browser.url", "https://chatgpt.com/"))

    @property
    def browser_headless(self) -> bool:
        return bool(self.get("browser.headless", False))

    @property
    def settle_delay(self) -> float:
        """Settle delay in seconds."""
        return max(0, int(self.get("monitor.settle_delay_ms", 150))) / 1000.0

    @property
    def poll_interval(self) -> float:
        """Fallback polling interval in seconds."""
        return max(50, int(self.get("monitor.poll_interval_ms", 1000))) / 1000.0

    @property
    def poll_fallback(self) -> bool:
        return bool(self.get("monitor.poll_fallback", True))

    def __repr__(self) -> str:
        return f"Config(base_dir={str(self.base_dir)!r})"


# Module-level singleton
_config: Config | None = None


def get_config(base_dir: Path | str | None = None) -> Config:
    global _config
    if _config is None:
        _config = Config(base_dir)
    return _config


def reset_config() -> None:
    """Reset singleton, for testing."""
    global _config
    _config = None
