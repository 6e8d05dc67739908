"""Field and catalogue configuration loading."""

import json
from pathlib import Path
from typing import Optional

from .config import settings
from .models import DEFAULT_CATALOGUES, DEFAULT_FIELDS, Catalogue, FieldConfig
from .utils import get_logger

logger = get_logger(__name__)


def _read_json_list(path: Optional[Path], what: str) -> Optional[list[dict]]:
    if path is None:
        return None
    if not path.exists():
        logger.warning(f"{what} config not found at {path}, using defaults")
        return None
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Failed to read {what} config {path}: {e}")
        return None
    if isinstance(data, dict):
        data = data.get(what.lower() + "s") or data.get("items")
    if not isinstance(data, list):
        logger.warning(f"{what} config {path} is not a list, using defaults")
        return None
    return data


def load_field_configs(path: Optional[Path] = None) -> list[FieldConfig]:
    """Load field configuration, falling back to the ten default fields.

    Accepts either a JSON list of field objects or ``{"fields": [...]}``.
    """
    data = _read_json_list(path or settings.fields_config_path, "Field")
    if not data:
        return [FieldConfig.from_dict(f.to_dict()) for f in DEFAULT_FIELDS]
    try:
        return [FieldConfig.from_dict(item) for item in data]
    except (KeyError, TypeError) as e:
        logger.warning(f"Invalid field config entry: {e}, using defaults")
        return [FieldConfig.from_dict(f.to_dict()) for f in DEFAULT_FIELDS]


def enabled_field_configs(configs: Optional[list[FieldConfig]] = None) -> list[FieldConfig]:
    """Only the fields switched on in configuration, in configured order."""
    configs = configs if configs is not None else load_field_configs()
    return [f for f in configs if f.enabled]


def load_catalogues(path: Optional[Path] = None) -> list[Catalogue]:
    """Load catalogue definitions, falling back to the single Master catalogue."""
    data = _read_json_list(path or settings.catalogues_config_path, "Catalogue")
    if not data:
        return [Catalogue.from_dict(c.to_dict()) for c in DEFAULT_CATALOGUES]
    try:
        return [Catalogue.from_dict(item) for item in data]
    except (KeyError, TypeError) as e:
        logger.warning(f"Invalid catalogue config entry: {e}, using defaults")
        return [Catalogue.from_dict(c.to_dict()) for c in DEFAULT_CATALOGUES]
