"""Loading and validation of the platform seed configuration.

The seed file (``config/platform.yml``) holds default app settings, the
canonical narration hierarchy and bootstrap accounts. It is validated
against ``schemas/platform.schema.json`` before use.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from jsonschema import Draft7Validator

from .config import config
from .exceptions import PlatformConfigError

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parent.parent


def _resolve(path: Path) -> Path:
    """Resolve a configured path against the cwd, then the repository root."""
    if path.is_absolute() or path.exists():
        return path
    return REPO_ROOT / path


def get_platform_config_path(path: Optional[Path] = None) -> Path:
    return _resolve(Path(path) if path else config.PLATFORM_CONFIG_FILE)


def get_schema_path() -> Path:
    return _resolve(config.SCHEMAS_DIR) / "platform.schema.json"


def validate_platform_config(data: Dict[str, Any]) -> List[str]:
    """Validate a parsed seed configuration.

    Args:
        data: Parsed YAML content

    Returns:
        List of human-readable problems, empty when valid
    """
    schema_path = get_schema_path()
    with open(schema_path, "r", encoding="utf-8") as f:
        schema = json.load(f)

    validator = Draft7Validator(schema)
    errors = []
    for error in sorted(validator.iter_errors(data), key=lambda e: list(e.path)):
        location = "/".join(str(p) for p in error.path) or "<root>"
        errors.append(f"{location}: {error.message}")

    # Narrator names must be unique across readings
    seen = set()
    for item in data.get("narrations", []) if isinstance(data, dict) else []:
        for narrator in item.get("narrators", []) if isinstance(item, dict) else []:
            if narrator in seen:
                errors.append(f"narrations: duplicate narrator '{narrator}'")
            seen.add(narrator)

    return errors


def load_platform_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load and validate the platform seed configuration.

    Args:
        path: Optional explicit path; defaults to ``config.PLATFORM_CONFIG_FILE``

    Returns:
        The validated configuration dictionary

    Raises:
        PlatformConfigError: If the file is missing, unparsable or invalid
    """
    config_path = get_platform_config_path(path)
    if not config_path.exists():
        raise PlatformConfigError(f"Platform config file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise PlatformConfigError(f"Invalid YAML in {config_path}: {e}")

    errors = validate_platform_config(data)
    if errors:
        raise PlatformConfigError(
            f"Platform config {config_path} failed validation: " + "; ".join(errors)
        )

    data.setdefault("accounts", [])
    logger.info(
        "Loaded platform config from %s (%d narration readings, %d bootstrap accounts)",
        config_path,
        len(data["narrations"]),
        len(data["accounts"]),
    )
    return data
