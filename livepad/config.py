"""
Configuration management for livepad.

Settings come from three places, later ones winning:
1. Dataclass defaults
2. ~/.livepad/config.json
3. LIVEPAD_* environment variables (a .env in the working directory is read first)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".livepad" / "config.json"


def _filter_dataclass_fields(data: dict[str, Any], cls: type) -> dict[str, Any]:
    """Filter dict to only include fields that exist in the dataclass."""
    valid_fields = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in valid_fields}


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class LivepadConfig:
    """
    Complete livepad configuration.

    Attributes:
        debounce_ms: Delay before re-interpreting after an edit with no trigger
        immediate_triggers: Substrings of an edit that interpret right away
        rewrite_imports: Rewrite ES module imports before feeding the REPL
        result_prefix: Prefix for result lines in the rendered document
        log_level: Logging level name for the CLI
        filename: Filename reported by the REPL in tracebacks
    """

    debounce_ms: int = 2000
    immediate_triggers: list[str] = field(default_factory=lambda: [";", "\n"])
    rewrite_imports: bool = True
    result_prefix: str = "// "
    log_level: str = "INFO"
    filename: str = "<livepad>"

    @classmethod
    def load(cls, path: Path | None = None, use_env: bool = True) -> "LivepadConfig":
        """
        Load configuration from file, then apply environment overrides.

        Args:
            path: Optional config file path. Defaults to ~/.livepad/config.json
            use_env: Apply LIVEPAD_* environment overrides

        Returns:
            LivepadConfig with user settings merged over defaults
        """
        if path is None:
            path = CONFIG_PATH

        data: dict[str, Any] = {}
        if path.exists():
            try:
                data = json.loads(path.read_text())
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Ignoring unreadable config {path}: {e}")

        config = cls(**_filter_dataclass_fields(data, cls))
        if use_env:
            config.apply_env()
        return config

    def apply_env(self) -> None:
        """Apply LIVEPAD_* environment variables."""
        env_file = Path.cwd() / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        debounce = os.getenv("LIVEPAD_DEBOUNCE_MS")
        if debounce is not None:
            try:
                self.debounce_ms = int(debounce)
            except ValueError:
                logger.warning(f"LIVEPAD_DEBOUNCE_MS is not an integer: {debounce!r}")

        rewrite = os.getenv("LIVEPAD_REWRITE_IMPORTS")
        if rewrite is not None:
            self.rewrite_imports = _env_bool(rewrite)

        level = os.getenv("LIVEPAD_LOG_LEVEL")
        if level:
            self.log_level = level.upper()

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file."""
        if path is None:
            path = CONFIG_PATH

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(asdict(self), f, indent=2)


# Default configuration instance
default_config = LivepadConfig()
