"""
Top-level GGUF metadata entry points: raw tree decode and validated parse.
"""
from __future__ import annotations

from contextlib import ExitStack

from loguru import logger

from gguf_metadata.io.file_reader import CHUNK_SIZE, ByteCursor, LocalFileSource, PathOrFile
from gguf_metadata.model_formats.gguf.gguf import GGUFMetadata, MetadataTree
from gguf_metadata.model_formats.gguf.gguf_schema import validate_metadata
from gguf_metadata.model_formats.gguf.gguf_versions import read_metadata_tree
from gguf_metadata.observability import Timer


def parse_raw(source: PathOrFile, *, chunk_size: int = CHUNK_SIZE) -> MetadataTree:
    """Decode the metadata header of a GGUF file into a nested dict.

    Args:
        source: Path to a GGUF file, or a binary file object positioned at the
            start of one. Paths are opened and closed here; file objects are
            left open for the caller.
        chunk_size: Bytes requested per read from the source.

    Raises:
        GGUFParseError: On the first malformed or truncated field.
        KeyConflictError: When two keys disagree about the tree's shape.
    """
    with ExitStack() as stack:
        if hasattr(source, "read"):
            fh = source
            name = getattr(source, "name", "<stream>")
        else:
            opened = stack.enter_context(LocalFileSource(source).open())
            fh = opened.handle
            name = opened.path

        cursor = ByteCursor(fh, chunk_size=chunk_size)
        with Timer("decode") as t:
            tree = read_metadata_tree(cursor)
        logger.debug(
            "Decoded {path}: {n} header bytes in {ms:.2f}ms",
            path=name,
            n=cursor.offset,
            ms=t.duration_ms,
        )
        return tree


def parse(source: PathOrFile, *, chunk_size: int = CHUNK_SIZE) -> GGUFMetadata:
    """Decode and validate a GGUF metadata header.

    Returns the architecture-specific record (``LlamaMetadata`` for a llama
    file, and so on). Decode errors from :func:`parse_raw` propagate unchanged.

    Raises:
        MissingFieldError: ``general.architecture`` is absent.
        UnsupportedArchitectureError: The architecture is not one we dispatch on.
        SchemaValidationError: A required field is missing or mistyped.
    """
    tree = parse_raw(source, chunk_size=chunk_size)
    with Timer("validate") as t:
        record = validate_metadata(tree)
    logger.debug(
        "Validated {arch} metadata in {ms:.2f}ms", arch=record.architecture, ms=t.duration_ms
    )
    return record
