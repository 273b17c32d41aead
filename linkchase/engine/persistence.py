"""JSON save/load for AtomTable.

The file holds the plain-dict export of AtomTable.to_dict():

    {"nodes": [{"handle", "type", "properties"}, ...],
     "links": [{"handle", "type", "outgoing", "properties"}, ...]}
"""

from __future__ import annotations

import json
from pathlib import Path

from .core import AtomTable


def _validate_path(path: str | Path) -> Path:
    """Resolve a file path, rejecting embedded null bytes.

    Raises:
        ValueError: If path contains null bytes
    """
    if "\x00" in str(path):
        raise ValueError(f"Invalid path (contains null bytes): {str(path)!r}")
    return Path(path).resolve()


def save_table(table: AtomTable, path: str | Path) -> None:
    """Save an AtomTable to a JSON file, creating parent directories.

    Raises:
        ValueError: If path is invalid
    """
    validated_path = _validate_path(path)
    data = table.to_dict()

    validated_path.parent.mkdir(parents=True, exist_ok=True)

    with open(validated_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def load_table(path: str | Path) -> AtomTable:
    """Load an AtomTable from a JSON file.

    Raises:
        ValueError: If path is invalid
        FileNotFoundError: If file does not exist
    """
    validated_path = _validate_path(path)

    with open(validated_path, encoding="utf-8") as f:
        data = json.load(f)

    return AtomTable.from_dict(data)
