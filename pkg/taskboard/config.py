# Task board: configuration
# Override via config/taskboard.yaml, environment variables, or CLI args.

import logging
import os
import yaml
from pathlib import Path
from dataclasses import dataclass, fields
from typing import Optional

from .document import AUTH_STORE_KEY, BOARD_STORE_KEY, DEFAULT_BOARD_ID

CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "taskboard.yaml"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Raised when configuration is invalid."""
    pass


@dataclass
class Settings:
    """Runtime configuration for the task board."""

    # Storage ("" disables persistence, ":memory:" keeps it in-process)
    db_path: str = "~/.local/share/taskboard/taskboard.db"
    board_key: str = BOARD_STORE_KEY
    auth_key: str = AUTH_STORE_KEY

    # Behavior
    default_board_id: str = DEFAULT_BOARD_ID
    auth_latency: float = 0.5  # simulated login/signup round trip, seconds
    log_level: str = "INFO"

    def resolve_paths(self):
        """Expand ~ in the database path."""
        if self.db_path and self.db_path != ":memory:":
            self.db_path = str(Path(self.db_path).expanduser())

    def apply_env(self, environ=None):
        """TASKBOARD_DB, TASKBOARD_AUTH_LATENCY and TASKBOARD_LOG_LEVEL win over the file."""
        env = os.environ if environ is None else environ
        if "TASKBOARD_DB" in env:
            self.db_path = env["TASKBOARD_DB"]
        if env.get("TASKBOARD_AUTH_LATENCY"):
            try:
                self.auth_latency = float(env["TASKBOARD_AUTH_LATENCY"])
            except ValueError:
                raise ConfigError(
                    f"TASKBOARD_AUTH_LATENCY must be a number, got {env['TASKBOARD_AUTH_LATENCY']!r}"
                ) from None
        if env.get("TASKBOARD_LOG_LEVEL"):
            self.log_level = env["TASKBOARD_LOG_LEVEL"]

    def validate(self):
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"Invalid log_level: {self.log_level}. Available: {list(LOG_LEVELS)}")
        try:
            self.auth_latency = float(self.auth_latency)
        except (TypeError, ValueError):
            raise ConfigError(f"auth_latency must be a number, got {self.auth_latency!r}") from None
        if self.auth_latency < 0:
            raise ConfigError("auth_latency cannot be negative")
        if not self.board_key or not self.auth_key:
            raise ConfigError("board_key and auth_key must be non-empty")
        if self.board_key == self.auth_key:
            raise ConfigError("board_key and auth_key must differ")

    @property
    def level(self) -> int:
        return getattr(logging, self.log_level, logging.INFO)

    @classmethod
    def load(cls, path: Optional[str] = None, environ=None) -> "Settings":
        """Load config from YAML file, falling back to defaults."""
        cfg_path = Path(path) if path else CONFIG_PATH
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
                known = {fld.name for fld in fields(cls)}
                cfg = cls(**{k: v for k, v in data.items() if k in known})
            except (OSError, yaml.YAMLError, AttributeError) as e:
                logging.getLogger(__name__).warning(
                    "Could not read %s (%s); using defaults", cfg_path, e
                )
                cfg = cls()
        elif path:
            raise ConfigError(f"Config file not found: {cfg_path}")
        else:
            cfg = cls()
        cfg.apply_env(environ)
        cfg.validate()
        cfg.resolve_paths()
        return cfg
