"""Configuration Management Package"""

import json
import os
import sys
import threading
from argparse import Namespace
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Callable, Optional

from git_ai_commit import DEFAULT_PORT, FALLBACK_MODEL


class ConfigError(Exception):
    """Raised for unusable user-supplied configuration."""
    pass


@dataclass
class Config:
    """User configuration with sensible defaults."""
    model: Optional[str] = None
    max_files: int = 10
    max_diff_lines: int = 50
    port: int = DEFAULT_PORT
    timeout_seconds: int = 300

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def validate(self) -> list[str]:
        """Validate config values and return list of warnings.

        Invalid values are replaced with defaults after warning.
        """
        warnings = []
        defaults = Config()

        if self.model is not None and (not isinstance(self.model, str) or not self.model.strip()):
            warnings.append(f"Invalid model '{self.model}', using default")
            self.model = defaults.model

        for name in ('max_files', 'max_diff_lines', 'timeout_seconds'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                default = getattr(defaults, name)
                warnings.append(f"Invalid {name} '{value}', using {default}")
                setattr(self, name, default)

        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 0 < self.port < 65536:
            warnings.append(f"Invalid port '{self.port}', using {defaults.port}")
            self.port = defaults.port

        return warnings

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        config = cls(**filtered)
        for warning in config.validate():
            print(f"Config warning: {warning}", file=sys.stderr)
        return config


def default_config_path() -> Path:
    base = os.environ.get('XDG_CONFIG_HOME')
    config_dir = Path(base) if base else Path.home() / ".config"
    return config_dir / "git-ai-commit" / "config.json"


class ConfigManager:
    """Loads and saves the per-user configuration file."""

    def __init__(self, path: Path | None = None):
        self.path = path or default_config_path()
        self._config: Optional[Config] = None

    def load(self) -> Config:
        if self._config is not None:
            return self._config

        if self.path.exists():
            self._config = self._load_from_file(self.path)
        else:
            self._config = Config()
        return self._config

    def _load_from_file(self, path: Path) -> Config:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            print(f"Warning: Could not load {path}: {e}", file=sys.stderr)
            return Config()

        if not isinstance(data, dict):
            print(f"Warning: Ignoring {path}: expected a JSON object", file=sys.stderr)
            return Config()
        return Config.from_dict(data)

    def save(self, config: Config) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(config.to_dict(), f, indent=2)
        self._config = config
        return self.path


def _last_local_model() -> str | None:
    from git_ai_commit.ollama import OllamaClient, OllamaError

    client = OllamaClient(port=DEFAULT_PORT)
    if not client.is_running():
        return None
    try:
        return client.last_model()
    except OllamaError:
        return None


class DefaultModel:
    """Fallback model, computed on first use and then fixed for the process.

    The lookup asks a running local Ollama for its last listed model and
    falls back to FALLBACK_MODEL.
    """

    def __init__(self, lookup: Callable[[], str | None] = _last_local_model):
        self._lookup = lookup
        self._value: str | None = None
        self._lock = threading.Lock()

    def get(self) -> str:
        with self._lock:
            if self._value is None:
                self._value = self._lookup() or FALLBACK_MODEL
            return self._value

    def reset(self) -> None:
        """Forget the computed value. Intended for tests."""
        with self._lock:
            self._value = None


default_model = DefaultModel()


@dataclass(frozen=True)
class Settings:
    """Effective run settings after merging CLI flags and the config file."""
    model: str
    max_files: int
    max_diff_lines: int
    port: int
    timeout_seconds: int


def resolve_settings(args: Namespace, config: Config, fallback: DefaultModel = default_model) -> Settings:
    """Merge settings. Precedence: CLI flag > config file > built-in default.

    Flags default to None, so None means "not given on the command line".
    """
    def pick(name):
        value = getattr(args, name, None)
        return value if value is not None else getattr(config, name)

    model = pick('model') or fallback.get()
    return Settings(
        model=model,
        max_files=pick('max_files'),
        max_diff_lines=pick('max_diff_lines'),
        port=pick('port'),
        timeout_seconds=pick('timeout_seconds'),
    )


_manager = ConfigManager()


def load_config() -> Config:
    return _manager.load()


def save_config(config: Config) -> Path:
    return _manager.save(config)


def get_config_path() -> Path:
    return _manager.path


__all__ = [
    "Config",
    "ConfigError",
    "ConfigManager",
    "DefaultModel",
    "Settings",
    "default_config_path",
    "default_model",
    "get_config_path",
    "load_config",
    "resolve_settings",
    "save_config",
]
