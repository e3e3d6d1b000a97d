"""
Key-value storage for the station ledger.

The whole namespace (pump readings, tanks, store items, credits, workers,
history...) lives in one JSON file as {key: value}. Every page reads the keys
it needs, mutates them, and writes the file back. Last write wins.
"""

import copy
import json
import os
import shutil
import tempfile
from pathlib import Path


class InvalidBackupError(ValueError):
    """Raised when an uploaded backup is not a JSON object of keys."""


def _backup_path(path: Path) -> Path:
    return Path(str(path) + ".bak")


def load_store(path: Path) -> dict:
    """Load the namespace. Falls back to the .bak copy if the main file is corrupt."""
    path = Path(path)
    for p in (path, _backup_path(path)):
        if not p.exists():
            continue
        try:
            with open(p, "r", encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                if p != path:
                    print(f"[Store] {path.name} unreadable, loaded backup copy")
                return data
        except (OSError, ValueError):
            continue
    return {}


def save_store(path: Path, data: dict) -> None:
    """Write the namespace using atomic rename, keeping the previous file as .bak."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists():
        shutil.copy2(path, _backup_path(path))
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".json.tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        Path(tmp_path).replace(path)
    except Exception:
        Path(tmp_path).unlink(missing_ok=True)
        raise


def reset_store(path: Path) -> None:
    """Delete ALL local data."""
    path = Path(path)
    for p in (path, _backup_path(path)):
        p.unlink(missing_ok=True)


def get_value(data: dict, key: str, fallback=None):
    if key in data and data[key] is not None:
        return data[key]
    return copy.deepcopy(fallback)


def set_value(data: dict, key: str, value) -> None:
    data[key] = value


def remove_value(data: dict, key: str) -> None:
    data.pop(key, None)


def export_namespace(data: dict) -> dict:
    """
    Serialize every key the way the browser build did: {key: "<json text>"}.
    Backups made by either version can be imported by the other.
    """
    return {key: json.dumps(value, ensure_ascii=False) for key, value in data.items()}


def import_namespace(raw) -> dict:
    """
    Parse a backup into a fresh namespace. Values may be JSON text (browser
    backups) or plain JSON values. Text that is not JSON is kept as a string.
    """
    if isinstance(raw, (bytes, str)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise InvalidBackupError("Invalid backup file") from e
    if not isinstance(raw, dict):
        raise InvalidBackupError("Invalid backup file")
    data = {}
    for key, value in raw.items():
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                pass
        data[str(key)] = value
    return data


def backup_filename(day: str) -> str:
    return f"waali-gas-backup-{day}.json"
