"""
Build configuration loading: model defaults <- YAML file <- environment <- explicit overrides.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from models import BuildConfig

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

DEFAULT_CONFIG_FILE = Path("distbuild.yml")

# env var -> (field, is_bool)
ENV_FIELDS = {
    "DISTBUILD_SRC_PATH": ("src_path", False),
    "DISTBUILD_DIST_PATH": ("dist_path", False),
    "DISTBUILD_DEVELOPMENT": ("development", True),
    "DISTBUILD_BUNDLE": ("bundle_in_development", True),
    "DISTBUILD_CONVERT_PAGE_TO_DIRECTORY": ("convert_page_to_directory", True),
}

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off", ""}


def _parse_bool(name: str, value: str) -> bool:
    normalized = value.lower().strip()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ValueError(f"Invalid {name} '{value}'. Must be one of: true, false")


def read_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a YAML config file into a dict of BuildConfig fields."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


def read_env() -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for name, (field, is_bool) in ENV_FIELDS.items():
        raw = os.getenv(name)
        if raw is None:
            continue
        values[field] = _parse_bool(name, raw) if is_bool else raw
    return values


def load_config(config_path: Optional[Union[str, Path]] = None, **overrides: Any) -> BuildConfig:
    """
    Build the immutable configuration for one build.

    Args:
        config_path: YAML file to read; `distbuild.yml` is used when present and none is given
        **overrides: Field values that win over file and environment (None values are ignored)

    Returns:
        Validated BuildConfig

    Raises:
        ValueError: On unreadable/invalid config values
    """
    data: Dict[str, Any] = {}

    if config_path is not None:
        if not Path(config_path).is_file():
            raise ValueError(f"Config file not found: {config_path}")
        data.update(read_config_file(config_path))
        logger.info(f"Loaded config from {config_path}")
    elif DEFAULT_CONFIG_FILE.is_file():
        data.update(read_config_file(DEFAULT_CONFIG_FILE))
        logger.info(f"Loaded config from {DEFAULT_CONFIG_FILE}")

    data.update(read_env())
    data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return BuildConfig(**data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ValueError(f"Invalid build configuration ({fields}): {e}") from e
