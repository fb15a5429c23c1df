import json
from typing import Any, Dict, List

from ..utils.logging import good


def _rows_to_dicts(rows: List[Any]) -> List[Dict]:
    """Convert result objects to dicts for serialization."""
    return [row.to_dict() if hasattr(row, "to_dict") else row for row in rows]


def write_json(path: str, rows: List[Any], silent: bool = False):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(_rows_to_dicts(rows), f, indent=2, default=str)
    if not silent:
        good(f"Wrote JSON results to {path}")
