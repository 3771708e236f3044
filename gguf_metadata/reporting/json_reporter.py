# gguf_metadata/reporting/json_reporter.py
"""
JSON reporting utilities.
"""

from __future__ import annotations

import json
from typing import Any, Dict

from gguf_metadata.model_formats.gguf.gguf import GGUFMetadata
from gguf_metadata.observability import to_dict


def to_json_dict(result: GGUFMetadata | Dict[str, Any]) -> Dict[str, Any]:
    """Convert a validated record or a raw metadata tree to a JSON-serializable dict."""
    if isinstance(result, GGUFMetadata):
        return result.to_dict()
    return to_dict(result)


def write_json(result: GGUFMetadata | Dict[str, Any], path: str) -> None:
    """Write a record or raw tree to a file as pretty JSON."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(to_json_dict(result), f, indent=2)
