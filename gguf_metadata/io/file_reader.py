"""
Chunked local file reader and the forward-only byte cursor the GGUF decoder runs on.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import BinaryIO, Optional, Union

from loguru import logger

from gguf_metadata.model_formats.gguf.gguf import TruncatedReadError

# Every fetch asks for this many bytes, however few the pending read needs.
CHUNK_SIZE = 10 * 1024 * 1024

PathOrFile = Union[str, "os.PathLike[str]", BinaryIO]


@dataclass
class LocalFileSource:
    """Local file source read in fixed-size chunks.

    Attributes:
        path: Path to the local file.
    """

    path: Union[str, "os.PathLike[str]"]

    def open(self) -> "OpenedFile":
        """Open the file read-only."""
        return OpenedFile(self.path)


class OpenedFile:
    """Context manager that owns a binary file handle for the length of one parse."""

    __slots__ = ("_fh", "path")

    def __init__(self, path: Union[str, "os.PathLike[str]"]):
        self.path = os.fspath(path)
        self._fh: Optional[BinaryIO] = None

    def __enter__(self) -> "OpenedFile":
        self._fh = open(self.path, "rb")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    @property
    def handle(self) -> BinaryIO:
        if self._fh is None:
            raise RuntimeError("OpenedFile is not entered")
        return self._fh


def _stream_length(fh: BinaryIO) -> Optional[int]:
    """Bytes left in ``fh`` from its current position, or None if it cannot seek."""
    try:
        if not fh.seekable():
            return None
        start = fh.tell()
        end = fh.seek(0, os.SEEK_END)
        fh.seek(start)
    except (AttributeError, OSError):
        return None
    return end - start


class ByteCursor:
    """Growable buffer over a binary stream with a monotonically increasing offset.

    Bytes are pulled from the stream only when a read runs past the end of the
    buffer, and always in whole chunks of ``chunk_size``. A chunk fetch that
    comes back short means EOF or a truncated file and raises
    :class:`TruncatedReadError`. When the source can seek, a read that would run
    past its end fails before anything is fetched.
    """

    __slots__ = ("_fh", "_buf", "_size", "offset", "chunk_size", "chunks_fetched")

    def __init__(self, fh: BinaryIO, *, chunk_size: int = CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._fh = fh
        self._buf = bytearray()
        self.offset = 0
        self.chunk_size = chunk_size
        self.chunks_fetched = 0
        self._size = _stream_length(fh)

    def __len__(self) -> int:
        return len(self._buf)

    @property
    def remaining(self) -> Optional[int]:
        """Bytes left in the source after ``offset``; None for unseekable streams."""
        if self._size is None:
            return None
        return self._size - self.offset

    def ensure_available(self, n: int) -> None:
        """Fail fast when the source is known to hold fewer than ``n`` more bytes."""
        remaining = self.remaining
        if remaining is not None and n > remaining:
            raise TruncatedReadError(
                f"unexpected bytes read: need {n} bytes at offset {self.offset}, "
                f"only {remaining} left"
            )

    def _fetch_chunk(self) -> None:
        chunk = self._fh.read(self.chunk_size)
        got = len(chunk) if chunk else 0
        if got != self.chunk_size:
            raise TruncatedReadError(
                f"unexpected bytes read: wanted a {self.chunk_size}-byte chunk at "
                f"{len(self._buf)}, got {got}"
            )
        self._buf += chunk
        self.chunks_fetched += 1
        logger.debug(
            "Fetched chunk #{n} ({size} bytes), buffer now {total} bytes",
            n=self.chunks_fetched,
            size=got,
            total=len(self._buf),
        )

    def read(self, n: int) -> bytes:
        """Return exactly ``n`` bytes at the current offset and advance past them."""
        if n < 0:
            raise ValueError(f"cannot read a negative number of bytes ({n})")
        end = self.offset + n
        if end > len(self._buf):
            self.ensure_available(n)
        while end > len(self._buf):
            self._fetch_chunk()
        out = bytes(self._buf[self.offset : end])
        self.offset = end
        return out
