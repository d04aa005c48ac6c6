# advisor/engine/storage.py
import json
import logging
import math
import os
from typing import Any, Dict

from ..exceptions import StorageError

logger = logging.getLogger(__name__)


def ensure_user_data_dir(path: str) -> None:
    folder = os.path.dirname(path)
    if folder and not os.path.exists(folder):
        os.makedirs(folder, exist_ok=True)


def _sanitize_json_compat(value: Any):
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return value
    if isinstance(value, dict):
        return {str(key): _sanitize_json_compat(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [_sanitize_json_compat(item) for item in value]
    return value


def load_records(path: str) -> Dict[str, Any]:
    """Read a JSON object from ``path``; missing, empty or corrupt files give ``{}``."""
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw_text = f.read().strip()
            if not raw_text:
                return {}
            data = json.loads(raw_text)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Ignoring unreadable data file %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring data file %s: expected a JSON object", path)
        return {}
    return _sanitize_json_compat(data)


def save_records(path: str, records: Dict[str, Any]) -> None:
    ensure_user_data_dir(path)
    tmp_path = f"{path}.tmp"
    clean = _sanitize_json_compat(records)
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(clean, f, allow_nan=False, indent=2)
        os.replace(tmp_path, path)
    except (OSError, TypeError, ValueError) as exc:
        raise StorageError(f"Could not write {path}: {exc}") from exc
