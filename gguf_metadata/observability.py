"""
Observability helpers: decode timers and record → dict conversion.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, fields, is_dataclass
from typing import Any, Dict, Mapping


@dataclass
class Timer:
    """Context manager for measuring durations in milliseconds."""

    name: str
    start: float = 0.0
    duration_ms: float = 0.0

    def __enter__(self) -> "Timer":
        self.start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.duration_ms = (time.perf_counter() - self.start) * 1000.0


def to_dict(obj: Any, *, drop_none: bool = False) -> Dict[str, Any] | list[Any] | Any:
    """Recursively convert dataclasses and read-only mappings to plain dicts and lists.

    With ``drop_none`` set, dataclass fields and dict entries holding ``None``
    are left out instead of being emitted as nulls.
    """
    if is_dataclass(obj) and not isinstance(obj, type):
        items = ((f.name, getattr(obj, f.name)) for f in fields(obj))
        return {
            k: to_dict(v, drop_none=drop_none)
            for k, v in items
            if not (drop_none and v is None)
        }
    if isinstance(obj, (list, tuple)):
        return [to_dict(x, drop_none=drop_none) for x in obj]
    if isinstance(obj, Mapping):
        return {
            k: to_dict(v, drop_none=drop_none)
            for k, v in obj.items()
            if not (drop_none and v is None)
        }
    return obj
