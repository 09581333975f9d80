"""
ParseSight configuration.

Settings are layered, later layers winning:

1. Dataclass defaults below
2. The first config file found (``parsesight.yaml`` / ``.toml`` / ``.json``
   in the working directory, then ``$XDG_CONFIG_HOME/parsesight/``), or the
   file passed explicitly
3. ``PARSESIGHT_*`` environment variables
4. CLI flags (applied by the CLI on the loaded object)

Usage:
    from parsesight.core.config import get_config

    width = get_config().ocr.target_width
"""

import json
import logging
import logging.handlers
import os
from collections.abc import Callable
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from parsesight.core.constants import (
    DEFAULT_TARGET_WIDTH,
    GAP_THRESHOLD_SECONDS,
    TESSERACT_LANGUAGE,
    TESSERACT_PAGE_SEG_MODE,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Sections
# ============================================================================


@dataclass
class OcrConfig:
    """Image preprocessing and text recognition."""

    # Screenshots narrower than this are upscaled before recognition
    target_width: int = DEFAULT_TARGET_WIDTH

    language: str = TESSERACT_LANGUAGE
    page_segmentation_mode: int = TESSERACT_PAGE_SEG_MODE
    # Column alignment matters ("Bar 1 Time" vs "Bar 2 Time")
    preserve_interword_spaces: bool = True

    # Explicit tesseract binary, None = search PATH
    tesseract_cmd: str | None = None

    # Write "<name>-debug.png" next to each input screenshot
    save_debug_image: bool = False


@dataclass
class LogParserConfig:
    """Text log parsing."""

    gap_threshold_seconds: float = GAP_THRESHOLD_SECONDS


@dataclass
class BatchConfig:
    """Multi-screenshot extraction."""

    max_workers: int = 4
    concurrent: bool = True


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    file: str | None = None
    file_max_bytes: int = 5 * 1024 * 1024
    file_backup_count: int = 3


@dataclass
class ParseSightConfig:
    ocr: OcrConfig = field(default_factory=OcrConfig)
    logs: LogParserConfig = field(default_factory=LogParserConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    config_version: str = "1.0"


SECTIONS = ("ocr", "logs", "batch", "logging")

CONFIG_FILENAMES = ("parsesight.yaml", "parsesight.yml", "parsesight.toml", "parsesight.json")

ENV_VARS: dict[str, tuple[str, str]] = {
    "PARSESIGHT_LOG_LEVEL": ("logging", "level"),
    "PARSESIGHT_LOG_FILE": ("logging", "file"),
    "PARSESIGHT_TARGET_WIDTH": ("ocr", "target_width"),
    "PARSESIGHT_OCR_LANGUAGE": ("ocr", "language"),
    "PARSESIGHT_TESSERACT_CMD": ("ocr", "tesseract_cmd"),
    "PARSESIGHT_SAVE_DEBUG_IMAGE": ("ocr", "save_debug_image"),
    "PARSESIGHT_GAP_THRESHOLD": ("logs", "gap_threshold_seconds"),
    "PARSESIGHT_MAX_WORKERS": ("batch", "max_workers"),
    "PARSESIGHT_CONCURRENT": ("batch", "concurrent"),
}


# ============================================================================
# Reading
# ============================================================================


def config_search_paths() -> list[Path]:
    """Candidate config files, in lookup order."""
    xdg_home = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    user_dir = xdg_home / "parsesight"
    return [Path.cwd() / name for name in CONFIG_FILENAMES] + [
        user_dir / "config.yaml",
        user_dir / "config.toml",
    ]


def load_yaml_config(path: Path) -> dict[str, Any]:
    return yaml.safe_load(path.read_text()) or {}


def _load_toml(path: Path) -> dict[str, Any]:
    import tomllib

    return tomllib.loads(path.read_text())


def _load_json(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text())


_READERS: dict[str, Callable[[Path], dict[str, Any]]] = {
    ".yaml": load_yaml_config,
    ".yml": load_yaml_config,
    ".toml": _load_toml,
    ".json": _load_json,
}


def load_config_file(path: Path) -> dict[str, Any]:
    """Read a config file as a plain dict; a missing file reads as empty."""
    if not path.is_file():
        return {}

    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        logger.warning(f"Ignoring config file with unsupported extension: {path}")
        return {}
    return reader(path)


def _coerce(raw: str, default: Any) -> Any:
    """Convert an environment string to the type of the field's default."""
    if isinstance(default, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw


def load_env_config() -> dict[str, Any]:
    """Collect ``PARSESIGHT_*`` overrides as a nested dict."""
    defaults = ParseSightConfig()
    overrides: dict[str, Any] = {}

    for name, (section, key) in ENV_VARS.items():
        raw = os.environ.get(name)
        if raw is None:
            continue
        default = getattr(getattr(defaults, section), key)
        try:
            value = _coerce(raw, default)
        except ValueError:
            logger.warning(f"Ignoring {name}={raw!r}: expected {type(default).__name__}")
            continue
        overrides.setdefault(section, {})[key] = value

    return overrides


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = merge_configs(current, value)
        merged[key] = value
    return merged


def dict_to_config(data: dict[str, Any]) -> ParseSightConfig:
    """Build a config from a plain dict. Unknown keys are logged and dropped."""
    config = ParseSightConfig()

    for section in SECTIONS:
        values = data.get(section) or {}
        current = getattr(config, section)
        known = {f.name for f in fields(current)}

        for key in sorted(set(values) - known):
            logger.warning(f"Ignoring unknown config key: {section}.{key}")

        updates = {k: v for k, v in values.items() if k in known}
        setattr(config, section, replace(current, **updates))

    return config


def load_config(config_file: Path | None = None, include_env: bool = True) -> ParseSightConfig:
    """
    Resolve the effective configuration.

    Args:
        config_file: Use this file instead of searching the default locations
        include_env: Apply ``PARSESIGHT_*`` overrides

    Returns:
        ParseSightConfig
    """
    if config_file is None:
        config_file = next((p for p in config_search_paths() if p.is_file()), None)

    data: dict[str, Any] = {}
    if config_file is not None:
        data = load_config_file(config_file)
        logger.debug(f"Using config file {config_file}")

    if include_env:
        data = merge_configs(data, load_env_config())

    return dict_to_config(data)


# ============================================================================
# Writing
# ============================================================================


def config_to_dict(config: ParseSightConfig) -> dict[str, Any]:
    return asdict(config)


def _dump_yaml(data: dict[str, Any]) -> str:
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)


def _dump_json(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2) + "\n"


_WRITERS: dict[str, Callable[[dict[str, Any]], str]] = {
    ".yaml": _dump_yaml,
    ".yml": _dump_yaml,
    ".json": _dump_json,
}


def save_config(config: ParseSightConfig, path: Path) -> None:
    """Write ``config`` as YAML or JSON, chosen by the file extension.

    Raises:
        ValueError: For any other extension (TOML is read-only)
    """
    writer = _WRITERS.get(path.suffix.lower())
    if writer is None:
        raise ValueError(f"Unsupported config format for saving: {path.suffix}")

    path.write_text(writer(config_to_dict(config)))
    logger.info(f"Wrote config to {path}")


DEFAULT_CONFIG_YAML = """\
# ParseSight configuration
# Environment variables (PARSESIGHT_*) override values in this file.

ocr:
  target_width: 3000          # upscale narrower screenshots to this width
  language: eng
  page_segmentation_mode: 6   # tesseract: single uniform block of text
  preserve_interword_spaces: true
  # tesseract_cmd: /usr/bin/tesseract
  save_debug_image: false

logs:
  gap_threshold_seconds: 1.0  # longer pauses between casts are gaps

batch:
  max_workers: 4
  concurrent: true

logging:
  level: INFO
  # file: parsesight.log
"""


def generate_default_config(path: Path) -> None:
    """Write a starter config; YAML gets the commented template."""
    if path.suffix.lower() in (".yaml", ".yml"):
        path.write_text(DEFAULT_CONFIG_YAML)
        logger.info(f"Wrote config to {path}")
    else:
        save_config(ParseSightConfig(), path)


# ============================================================================
# Logging
# ============================================================================


def configure_logging(config: LoggingConfig) -> None:
    """Install root handlers: stderr always, plus a rotating file if configured."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.file:
        handlers.append(
            logging.handlers.RotatingFileHandler(
                config.file,
                maxBytes=config.file_max_bytes,
                backupCount=config.file_backup_count,
            )
        )

    logging.basicConfig(
        level=getattr(logging, str(config.level).upper(), logging.INFO),
        format=config.format,
        handlers=handlers,
        force=True,
    )


# ============================================================================
# Process-wide config
# ============================================================================

_active: ParseSightConfig | None = None


def get_config() -> ParseSightConfig:
    """The active configuration, loaded on first use."""
    global _active
    if _active is None:
        _active = load_config()
    return _active


def set_config(config: ParseSightConfig) -> None:
    global _active
    _active = config


def reset_config() -> None:
    """Forget the active configuration so the next get_config reloads it."""
    global _active
    _active = None
