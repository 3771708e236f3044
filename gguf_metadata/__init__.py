# gguf_metadata/__init__.py
"""
gguf_metadata
=============

Pure-Python reader for the metadata header of GGUF model files: chunked
forward-only decoding, a nested key-value tree, and architecture-specific
validated records.
"""
from __future__ import annotations

from importlib.metadata import version as _pkg_version

from loguru import logger

from gguf_metadata.io.file_reader import CHUNK_SIZE
from gguf_metadata.metadata_parser import parse, parse_raw
from gguf_metadata.model_formats.gguf.gguf import (
    ArchitectureError,
    BloomMetadata,
    FalconMetadata,
    GemmaMetadata,
    GeneralMetadata,
    GGUFError,
    GGUFMetadata,
    GGUFParseError,
    GPT2Metadata,
    GPTJMetadata,
    GPTNeoXMetadata,
    InvalidMagicError,
    KeyConflictError,
    LlamaMetadata,
    MissingFieldError,
    MPTMetadata,
    RWKVMetadata,
    SchemaValidationError,
    TruncatedReadError,
    UnknownTypeError,
    UnsupportedArchitectureError,
    UnsupportedVersionError,
    WhisperMetadata,
)
from gguf_metadata.model_formats.gguf.gguf_schema import (
    build_record,
    is_bloom_metadata,
    is_falcon_metadata,
    is_gemma_metadata,
    is_gpt2_metadata,
    is_gptj_metadata,
    is_gptneox_metadata,
    is_llama_metadata,
    is_mpt_metadata,
    is_rwkv_metadata,
    is_whisper_metadata,
    validate_metadata,
)

__all__ = [
    "__version__",
    "CHUNK_SIZE",
    "parse",
    "parse_raw",
    "validate_metadata",
    "build_record",
    "GGUFError",
    "GGUFParseError",
    "TruncatedReadError",
    "InvalidMagicError",
    "UnsupportedVersionError",
    "UnknownTypeError",
    "ArchitectureError",
    "MissingFieldError",
    "UnsupportedArchitectureError",
    "SchemaValidationError",
    "KeyConflictError",
    "GeneralMetadata",
    "GGUFMetadata",
    "LlamaMetadata",
    "MPTMetadata",
    "GPTNeoXMetadata",
    "GPTJMetadata",
    "GPT2Metadata",
    "BloomMetadata",
    "FalconMetadata",
    "GemmaMetadata",
    "RWKVMetadata",
    "WhisperMetadata",
    "is_llama_metadata",
    "is_mpt_metadata",
    "is_gptneox_metadata",
    "is_gptj_metadata",
    "is_gpt2_metadata",
    "is_bloom_metadata",
    "is_falcon_metadata",
    "is_gemma_metadata",
    "is_rwkv_metadata",
    "is_whisper_metadata",
]

# Library code stays quiet until an application opts in via configure_logging().
logger.disable("gguf_metadata")

try:
    # Read version dynamically from installed package metadata
    __version__: str = _pkg_version("gguf-metadata")
except Exception:  # pragma: no cover - fallback for development environments
    __version__ = "0.0.0-dev"
