# gguf_metadata/model_formats/gguf/gguf_schema.py
"""
Architecture dispatch and schema validation for decoded GGUF metadata trees.

One generic validator walks the rule tables in gguf_rules.py; the tables are
the only per-architecture code. Validation never mutates the input tree and
keeps only keys the schema names.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, TypeGuard

from loguru import logger

from .gguf import (
    RECORD_TYPES,
    BloomMetadata,
    FalconMetadata,
    GemmaMetadata,
    GeneralMetadata,
    GGUFMetadata,
    GPT2Metadata,
    GPTJMetadata,
    GPTNeoXMetadata,
    LlamaMetadata,
    MetadataTree,
    MissingFieldError,
    MPTMetadata,
    RWKVMetadata,
    SchemaValidationError,
    UnsupportedArchitectureError,
    WhisperMetadata,
)
from .gguf_quantization import FILE_TYPE_NAMES, normalize_file_type
from .gguf_rules import (
    ARCHITECTURE_KEYS,
    BOOLEAN,
    FILE_TYPE,
    GENERAL_KEYS,
    NUMBER,
    STRING,
    SUPPORTED_ARCHITECTURES,
)

_MISSING = object()


def _lookup(tree: MetadataTree, key: str) -> Tuple[Any, Optional[str]]:
    """Follow a dotted key. Returns ``(value_or_MISSING, bad_intermediate_path)``."""
    node: Any = tree
    parts = key.split(".")
    for i, part in enumerate(parts):
        if not isinstance(node, dict):
            return _MISSING, ".".join(parts[:i])
        if part not in node:
            return _MISSING, None
        node = node[part]
    return node, None


def _assign(out: Dict[str, Any], key: str, value: Any) -> None:
    *parents, leaf = key.split(".")
    node = out
    for part in parents:
        node = node.setdefault(part, {})
    node[leaf] = value


def _type_ok(kind: str, value: Any) -> bool:
    if kind == NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind == STRING:
        return isinstance(value, str)
    if kind == BOOLEAN:
        return isinstance(value, bool)
    raise ValueError(f"unknown rule type {kind!r}")


def _freeze(node: Dict[str, Any]) -> Mapping[str, Any]:
    """Read-only view of a validated block, nested mappings included."""
    return MappingProxyType(
        {k: _freeze(v) if isinstance(v, dict) else v for k, v in node.items()}
    )


def _describe(value: Any) -> str:
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    return type(value).__name__


def build_record(tree: MetadataTree, architecture: str) -> GGUFMetadata:
    """Validate ``tree`` against one architecture's rules and build its record.

    Unlike :func:`validate_metadata` this accepts every defined schema,
    including ones the top-level dispatch does not route to.
    """
    if architecture not in ARCHITECTURE_KEYS:
        raise UnsupportedArchitectureError(architecture)

    rules = {**GENERAL_KEYS, **ARCHITECTURE_KEYS[architecture]}
    issues: List[Tuple[str, str]] = []
    bad_intermediates = set()
    out: Dict[str, Any] = {}

    declared, _ = _lookup(tree, "general.architecture")
    if declared != architecture:
        issues.append(("general.architecture", f"expected {architecture!r}, got {declared!r}"))

    for key, rule in rules.items():
        value, bad_path = _lookup(tree, key)
        if bad_path is not None:
            if bad_path not in bad_intermediates:
                bad_intermediates.add(bad_path)
                got = _lookup(tree, bad_path)[0]
                issues.append((bad_path, f"expected object, got {_describe(got)}"))
            continue
        if value is _MISSING:
            if rule["required"]:
                issues.append((key, "required field is missing"))
            continue

        kind = rule["type"]
        if kind == FILE_TYPE:
            # Already-normalized names pass through unchanged.
            name = value if value in FILE_TYPE_NAMES.values() else normalize_file_type(value)
            if name is None:
                logger.debug("Dropping unrecognized {key}={value!r}", key=key, value=value)
            else:
                _assign(out, key, name)
            continue
        if not _type_ok(kind, value):
            issues.append((key, f"expected {kind.lower()}, got {_describe(value)}"))
            continue
        _assign(out, key, value)

    if issues:
        path, message = issues[0]
        raise SchemaValidationError(path, message, issues)

    frozen = _freeze(out)
    general = GeneralMetadata.from_tree(frozen["general"])
    record_type = RECORD_TYPES[architecture]
    block = frozen.get(architecture, MappingProxyType({}))
    return record_type(general=general, **{architecture: block})


def validate_metadata(tree: MetadataTree) -> GGUFMetadata:
    """Dispatch on ``general.architecture`` and return the validated record."""
    general = tree.get("general")
    architecture = general.get("architecture") if isinstance(general, dict) else None
    if architecture is None or architecture == "":
        raise MissingFieldError("general.architecture")
    if not isinstance(architecture, str) or architecture not in SUPPORTED_ARCHITECTURES:
        raise UnsupportedArchitectureError(architecture)
    return build_record(tree, architecture)


def is_llama_metadata(metadata: GGUFMetadata) -> TypeGuard[LlamaMetadata]:
    return metadata.general.architecture == "llama"


def is_mpt_metadata(metadata: GGUFMetadata) -> TypeGuard[MPTMetadata]:
    return metadata.general.architecture == "mpt"


def is_gptneox_metadata(metadata: GGUFMetadata) -> TypeGuard[GPTNeoXMetadata]:
    return metadata.general.architecture == "gptneox"


def is_gptj_metadata(metadata: GGUFMetadata) -> TypeGuard[GPTJMetadata]:
    return metadata.general.architecture == "gptj"


def is_gpt2_metadata(metadata: GGUFMetadata) -> TypeGuard[GPT2Metadata]:
    return metadata.general.architecture == "gpt2"


def is_bloom_metadata(metadata: GGUFMetadata) -> TypeGuard[BloomMetadata]:
    return metadata.general.architecture == "bloom"


def is_falcon_metadata(metadata: GGUFMetadata) -> TypeGuard[FalconMetadata]:
    return metadata.general.architecture == "falcon"


def is_gemma_metadata(metadata: GGUFMetadata) -> TypeGuard[GemmaMetadata]:
    return metadata.general.architecture == "gemma"


def is_rwkv_metadata(metadata: GGUFMetadata) -> TypeGuard[RWKVMetadata]:
    return metadata.general.architecture == "rwkv"


def is_whisper_metadata(metadata: GGUFMetadata) -> TypeGuard[WhisperMetadata]:
    return metadata.general.architecture == "whisper"
