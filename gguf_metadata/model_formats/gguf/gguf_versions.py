# gguf_metadata/model_formats/gguf/gguf_versions.py
"""
Version-aware GGUF metadata decoding (v1/v2/v3, little-endian).

Everything here reads forward through a :class:`ByteCursor`; nothing seeks.
The header is ``magic | version | n_tensors | n_kv`` followed by ``n_kv``
entries of ``key string | u32 type tag | value``. Only the key-value section is
decoded; the tensor infos and tensor data that follow are left untouched.
"""

from __future__ import annotations

import struct
from typing import Callable, Dict, List

from loguru import logger

from gguf_metadata.io.file_reader import ByteCursor

from .gguf import (
    GGUFKV,
    GGUFValueType,
    GGUFVersion,
    InvalidMagicError,
    KeyConflictError,
    MetadataScalar,
    MetadataTree,
    MetadataValue,
    UnknownTypeError,
    UnsupportedVersionError,
)

# b"GGUF" read as a little-endian u32
GGUF_MAGIC = 0x46554747

MAX_KEY_DEPTH = 5

_U8 = struct.Struct("<B")
_I8 = struct.Struct("<b")
_U16 = struct.Struct("<H")
_I16 = struct.Struct("<h")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")
_U64 = struct.Struct("<Q")
_I64 = struct.Struct("<q")
_F32 = struct.Struct("<f")
_F64 = struct.Struct("<d")

_SIZE_FIELDS = {_U32.size: _U32, _U64.size: _U64}


def _unpack(cursor: ByteCursor, st: struct.Struct):
    return st.unpack(cursor.read(st.size))[0]


def read_uint8(cursor: ByteCursor) -> int:
    return _unpack(cursor, _U8)


def read_int8(cursor: ByteCursor) -> int:
    return _unpack(cursor, _I8)


def read_uint16(cursor: ByteCursor) -> int:
    return _unpack(cursor, _U16)


def read_int16(cursor: ByteCursor) -> int:
    return _unpack(cursor, _I16)


def read_uint32(cursor: ByteCursor) -> int:
    return _unpack(cursor, _U32)


def read_int32(cursor: ByteCursor) -> int:
    return _unpack(cursor, _I32)


def read_uint64(cursor: ByteCursor) -> int:
    return _unpack(cursor, _U64)


def read_int64(cursor: ByteCursor) -> int:
    return _unpack(cursor, _I64)


def read_float32(cursor: ByteCursor) -> float:
    return _unpack(cursor, _F32)


def read_float64(cursor: ByteCursor) -> float:
    return _unpack(cursor, _F64)


def read_bool(cursor: ByteCursor) -> bool:
    return cursor.read(1)[0] != 0


def read_versioned_size(cursor: ByteCursor, version: GGUFVersion) -> int:
    """Read a count/length field: u32 in v1, u64 from v2 on."""
    return _unpack(cursor, _SIZE_FIELDS[version.size_width])


def read_string(cursor: ByteCursor, version: GGUFVersion) -> str:
    """Read a length-prefixed UTF-8 string with any NUL padding removed."""
    n = read_versioned_size(cursor, version)
    raw = cursor.read(n)
    return raw.decode("utf-8", "replace").replace("\x00", "")


ValueReader = Callable[[ByteCursor, GGUFVersion], MetadataScalar]


def _fixed(reader: Callable[[ByteCursor], MetadataScalar]) -> ValueReader:
    return lambda cursor, _version: reader(cursor)


# Shared by top-level values and array elements. ARRAY is deliberately absent:
# it is only legal at the top level, where read_value handles it.
SCALAR_READERS: Dict[GGUFValueType, ValueReader] = {
    GGUFValueType.UINT8: _fixed(read_uint8),
    GGUFValueType.INT8: _fixed(read_int8),
    GGUFValueType.UINT16: _fixed(read_uint16),
    GGUFValueType.INT16: _fixed(read_int16),
    GGUFValueType.UINT32: _fixed(read_uint32),
    GGUFValueType.INT32: _fixed(read_int32),
    GGUFValueType.FLOAT32: _fixed(read_float32),
    GGUFValueType.BOOL: _fixed(read_bool),
    GGUFValueType.STRING: read_string,
    GGUFValueType.UINT64: _fixed(read_uint64),
    GGUFValueType.INT64: _fixed(read_int64),
    GGUFValueType.FLOAT64: _fixed(read_float64),
}

# Encoded width of fixed-size elements. A string element takes at least its
# length field.
_ELEMENT_WIDTHS: Dict[GGUFValueType, int] = {
    GGUFValueType.UINT8: _U8.size,
    GGUFValueType.INT8: _I8.size,
    GGUFValueType.UINT16: _U16.size,
    GGUFValueType.INT16: _I16.size,
    GGUFValueType.UINT32: _U32.size,
    GGUFValueType.INT32: _I32.size,
    GGUFValueType.FLOAT32: _F32.size,
    GGUFValueType.BOOL: 1,
    GGUFValueType.UINT64: _U64.size,
    GGUFValueType.INT64: _I64.size,
    GGUFValueType.FLOAT64: _F64.size,
}


def _scalar_reader(type_tag: int, context: str) -> ValueReader:
    try:
        return SCALAR_READERS[GGUFValueType(type_tag)]
    except (ValueError, KeyError):
        raise UnknownTypeError(type_tag, context) from None


def read_array(cursor: ByteCursor, version: GGUFVersion) -> List[MetadataScalar]:
    """Read ``u32 element tag | count | elements``; nested arrays are rejected."""
    elem_tag = read_uint32(cursor)
    reader = _scalar_reader(elem_tag, "array element")
    count = read_versioned_size(cursor, version)
    width = _ELEMENT_WIDTHS.get(GGUFValueType(elem_tag), version.size_width)
    cursor.ensure_available(count * width)
    return [reader(cursor, version) for _ in range(count)]


def read_value(cursor: ByteCursor, version: GGUFVersion, type_tag: int) -> MetadataValue:
    """Decode one metadata value whose type tag has already been read."""
    if type_tag == GGUFValueType.ARRAY:
        return read_array(cursor, version)
    return _scalar_reader(type_tag, "value")(cursor, version)


def read_kv(cursor: ByteCursor, version: GGUFVersion) -> GGUFKV:
    key = read_string(cursor, version)
    type_tag = read_uint32(cursor)
    value = read_value(cursor, version, type_tag)
    return GGUFKV(
        key=key,
        type=GGUFValueType(type_tag),
        is_array=type_tag == GGUFValueType.ARRAY,
        value=value,
    )


def insert_metadata_value(tree: MetadataTree, key: str, value: MetadataValue) -> None:
    """Place ``value`` at the dotted path ``key``, creating intermediate mappings.

    Keys split into at most ``MAX_KEY_DEPTH`` segments; any further dots stay in
    the last segment. An empty segment ends the path, so ``"general."`` names
    ``general`` itself. A segment that already holds a leaf cannot become a
    mapping, and a leaf cannot replace a mapping.
    """
    segments = key.split(".", MAX_KEY_DEPTH - 1)
    if "" in segments[1:]:
        segments = segments[: segments.index("", 1)]
    *parents, leaf = segments
    node = tree
    walked: List[str] = []
    for segment in parents:
        walked.append(segment)
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            path = ".".join(walked)
            raise KeyConflictError(path, f"already holds a value, cannot nest {key!r} under it")
        node = child

    existing = node.get(leaf)
    if isinstance(existing, dict):
        raise KeyConflictError(
            ".".join(segments), "already holds nested metadata, cannot assign a value"
        )
    if leaf in node:
        logger.warning("Duplicate metadata key {key}; keeping the later value", key=key)
    node[leaf] = value


def read_header(cursor: ByteCursor) -> tuple[GGUFVersion, int, int]:
    """Read ``magic | version | n_tensors | n_kv`` and return the last three."""
    magic = read_uint32(cursor)
    if magic != GGUF_MAGIC:
        raise InvalidMagicError(f"invalid gguf magic number: 0x{magic:08x}")

    raw_version = read_uint32(cursor)
    try:
        version = GGUFVersion(raw_version)
    except ValueError:
        raise UnsupportedVersionError(raw_version) from None

    # The tensor count is consumed to keep the stream aligned; tensor infos are not read.
    n_tensors = read_versioned_size(cursor, version)
    n_kv = read_versioned_size(cursor, version)
    logger.debug(
        "GGUF v{version}: {n_tensors} tensors, {n_kv} metadata entries",
        version=int(version),
        n_tensors=n_tensors,
        n_kv=n_kv,
    )
    return version, n_tensors, n_kv


def read_metadata_tree(cursor: ByteCursor) -> MetadataTree:
    """Decode the header and every key-value entry into a nested dict.

    The first failure aborts the whole decode; no partial tree is returned.
    """
    version, _n_tensors, n_kv = read_header(cursor)
    tree: MetadataTree = {}
    for _ in range(n_kv):
        item = read_kv(cursor, version)
        logger.trace(
            "kv {key} type={type} array={is_array}",
            key=item.key,
            type=item.type.name,
            is_array=item.is_array,
        )
        insert_metadata_value(tree, item.key, item.value)
    return tree
