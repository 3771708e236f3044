"""
Pytest fixtures for gguf_metadata tests.
"""

from pathlib import Path
from typing import Callable, List, Tuple, Any

import pytest

from gguf_builders import LLAMA_REQUIRED, TEST_CHUNK, header, kv, write_gguf


@pytest.fixture
def gguf_file(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing an encoded header to a chunk-padded file under tmp_path."""
    counter = {"n": 0}

    def _write(payload: bytes, *, name: str | None = None, chunk_size: int = TEST_CHUNK) -> Path:
        counter["n"] += 1
        path = tmp_path / (name or f"model-{counter['n']}.gguf")
        return write_gguf(path, payload, chunk_size)

    return _write


@pytest.fixture
def llama_entries() -> List[Tuple[str, int, Any]]:
    """The required llama key-value set as ``(key, tag, value)`` triples."""
    return list(LLAMA_REQUIRED)


@pytest.fixture
def llama_header(llama_entries) -> Callable[..., bytes]:
    """Build a llama header, optionally dropping keys or appending extra entries."""

    def _build(*, drop: Tuple[str, ...] = (), extra: Tuple[bytes, ...] = (), version: int = 2) -> bytes:
        entries = [kv(k, t, v, version) for k, t, v in llama_entries if k not in drop]
        entries.extend(extra)
        return header(entries, version=version)

    return _build
