"""Configuration management for batch-transcode."""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .core.modules.errors import ConfigError
from .core.modules.interface.reporting import parse_relay

DEFAULT_EXTENSIONS = "mkv,mp4,avi,mov,wmv,m4v,ts"


def load_env_file(env_path: Optional[Path] = None) -> Dict[str, str]:
    """Load environment variables from .env file."""
    if env_path is None:
        # Look for .env in current directory, then in package directory
        candidates = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for candidate in candidates:
            if candidate.exists():
                env_path = candidate
                break

    env_vars = {}

    if env_path and env_path.exists():
        with open(env_path, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#'):
                    if '=' in line:
                        key, value = line.split('=', 1)
                        env_vars[key.strip().lower()] = value.strip().strip('"').strip("'")

    return env_vars


def _parse_bool(value: str) -> bool:
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')


@dataclass
class TranscodeConfig:
    """Everything a batch run needs. Fixed for the duration of the run."""
    source_root: Optional[Path] = None
    output_root: Optional[Path] = None
    temp_root: Optional[Path] = None
    encoder_path: str = "HandBrakeCLI"
    log_file: Path = field(default_factory=lambda: Path.cwd() / "batch_transcode.log")
    report_file: Optional[Path] = None
    profile_file: Optional[Path] = None
    max_retries: int = 3
    retry_delay: float = 30.0
    skip_existing: bool = True
    min_file_size: int = 100 * 1024 * 1024
    min_output_size: int = 1024 * 1024
    output_suffix: str = "_optimized"
    output_extension: str = ".mkv"
    extensions: Tuple[str, ...] = tuple(DEFAULT_EXTENSIONS.split(","))
    workers: int = 1
    smtp_from: Optional[str] = None
    smtp_to: Optional[str] = None
    smtp_server: Optional[str] = None
    debug: bool = False

    def validate(self) -> "TranscodeConfig":
        """Raise ConfigError for missing or out-of-range settings."""
        missing = [name for name in ("source_root", "output_root", "temp_root")
                   if getattr(self, name) is None]
        if missing:
            raise ConfigError(f"Missing required setting(s): {', '.join(missing)}")
        if self.max_retries < 1:
            raise ConfigError(f"max_retries must be at least 1 (got {self.max_retries})")
        if self.retry_delay < 0:
            raise ConfigError(f"retry_delay must not be negative (got {self.retry_delay})")
        if self.min_file_size < 0 or self.min_output_size < 0:
            raise ConfigError("size thresholds must not be negative")
        if self.workers < 1:
            raise ConfigError(f"workers must be at least 1 (got {self.workers})")
        if not self.extensions:
            raise ConfigError("at least one file extension is required")
        if self.smtp_server:
            parse_relay(self.smtp_server)
        return self


_CONVERTERS = {
    'source_root': Path,
    'output_root': Path,
    'temp_root': Path,
    'log_file': Path,
    'report_file': Path,
    'profile_file': Path,
    'encoder_path': str,
    'max_retries': int,
    'retry_delay': float,
    'skip_existing': _parse_bool,
    'min_file_size': int,
    'min_output_size': int,
    'output_suffix': str,
    'output_extension': str,
    'extensions': lambda v: tuple(e.strip() for e in str(v).split(",") if e.strip()),
    'workers': int,
    'smtp_from': str,
    'smtp_to': str,
    'smtp_server': str,
    'debug': _parse_bool,
}


def get_config(env_path: Optional[Path] = None, **overrides: Any) -> TranscodeConfig:
    """
    Get configuration from the .env file, environment variables and explicit overrides.

    Precedence: overrides (non-None) > .env file > environment (upper-case names) > defaults.
    """
    env_vars = load_env_file(env_path)
    values: Dict[str, Any] = {}

    for f in fields(TranscodeConfig):
        raw = env_vars.get(f.name, os.getenv(f.name.upper()))
        if raw is None or raw == "":
            continue
        try:
            values[f.name] = _CONVERTERS[f.name](raw)
        except ValueError as e:
            raise ConfigError(f"Invalid value for {f.name}: {raw!r} ({e})") from e

    for name, value in overrides.items():
        if name not in _CONVERTERS:
            raise ConfigError(f"Unknown setting: {name}")
        if value is not None:
            values[name] = value

    return TranscodeConfig(**values)
