"""
Configuration for mdsurgeon.

All tunable parameters in one place. Loaded from:
1. Defaults (this file)
2. Config file (~/.config/mdsurgeon/config.toml) if exists
3. Environment variables (MDS_*) override file
4. CLI flags override everything
"""

from __future__ import annotations

import contextlib
import logging
import os
import tomllib  # stdlib in 3.11+
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("text", "json")


@dataclass
class OutputConfig:
    """How results are rendered."""
    format: str = "text"  # "text" or "json"


@dataclass
class MagicConfig:
    """Placeholder expansion in written content."""
    enabled: bool = True


@dataclass
class IOConfig:
    """Whole-file read/write settings."""
    encoding: str = "utf-8"


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class Config:
    """Root config with all settings."""
    output: OutputConfig = field(default_factory=OutputConfig)
    magic: MagicConfig = field(default_factory=MagicConfig)
    io: IOConfig = field(default_factory=IOConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_path() -> Path:
    """Get config file path, respecting XDG."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "mdsurgeon" / "config.toml"
    return Path.home() / ".config" / "mdsurgeon" / "config.toml"


def load_config() -> Config:
    """Load config from file if exists, else return defaults."""
    config = Config()
    path = get_config_path()

    if path.exists():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
            config = _apply_toml(config, data)
        except (OSError, tomllib.TOMLDecodeError, ValueError, TypeError) as e:
            logger.warning("ignoring config file %s: %s", path, e)
            config = Config()

    # env var overrides
    config = _apply_env(config)

    return config


def _to_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.lower() in ("true", "1", "yes")
    return bool(value)


def _apply_toml(config: Config, data: dict) -> Config:
    """Apply toml data to config."""
    if "output" in data:
        o = data["output"]
        if "format" in o:
            fmt = str(o["format"]).lower()
            if fmt not in OUTPUT_FORMATS:
                raise ValueError(f"output.format must be one of {OUTPUT_FORMATS}, got {fmt!r}")
            config.output.format = fmt

    if "magic" in data:
        m = data["magic"]
        if "enabled" in m:
            config.magic.enabled = _to_bool(m["enabled"])

    if "io" in data:
        io = data["io"]
        if "encoding" in io:
            config.io.encoding = str(io["encoding"])

    if "logging" in data:
        lg = data["logging"]
        if "level" in lg:
            config.logging.level = str(lg["level"]).upper()

    return config


def _apply_env(config: Config) -> Config:
    """Apply environment variable overrides."""
    env_map: dict[str, tuple[str, str, type]] = {
        "MDS_OUTPUT_FORMAT": ("output", "format", str),
        "MDS_MAGIC": ("magic", "enabled", bool),
        "MDS_ENCODING": ("io", "encoding", str),
        "MDS_LOG_LEVEL": ("logging", "level", str),
    }

    for env_key, (section, attr, conv) in env_map.items():
        val = os.environ.get(env_key)
        if val is not None:
            with contextlib.suppress(ValueError, AttributeError):
                converted = _to_bool(val) if conv is bool else conv(val)
                setattr(getattr(config, section), attr, converted)

    config.output.format = config.output.format.lower()
    if config.output.format not in OUTPUT_FORMATS:
        logger.warning("unknown output format %r, using text", config.output.format)
        config.output.format = "text"
    config.logging.level = config.logging.level.upper()

    return config


# Module-level config instance, loaded once on first use
_config: Config | None = None


def get_config() -> Config:
    """Get the global config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
