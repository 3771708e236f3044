# gguf_metadata/model_formats/gguf/gguf.py
"""
GGUF shared structures and exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import IntEnum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from gguf_metadata.observability import to_dict

MetadataScalar = Union[int, float, bool, str]
MetadataValue = Union[MetadataScalar, List[MetadataScalar]]
MetadataTree = Dict[str, Any]


class GGUFVersion(IntEnum):
    """Supported GGUF header revisions."""

    V1 = 1
    V2 = 2
    V3 = 3

    @property
    def size_width(self) -> int:
        """Width in bytes of every count/length field for this revision."""
        return 4 if self is GGUFVersion.V1 else 8


class GGUFValueType(IntEnum):
    """GGUF metadata value type tags."""

    UINT8 = 0
    INT8 = 1
    UINT16 = 2
    INT16 = 3
    UINT32 = 4
    INT32 = 5
    FLOAT32 = 6
    BOOL = 7
    STRING = 8
    ARRAY = 9
    UINT64 = 10
    INT64 = 11
    FLOAT64 = 12


@dataclass
class GGUFKV:
    key: str
    type: GGUFValueType
    is_array: bool
    value: MetadataValue


class GGUFError(Exception):
    """Base class for everything this package raises about a GGUF file."""


class GGUFParseError(GGUFError):
    """Raised when a GGUF file is malformed."""


class TruncatedReadError(GGUFParseError):
    """The source could not supply the requested bytes."""


class InvalidMagicError(GGUFParseError):
    """The first four bytes are not the GGUF magic."""


class UnsupportedVersionError(GGUFParseError):
    def __init__(self, version: int):
        super().__init__(f"unsupported gguf version: {version}")
        self.version = version


class UnknownTypeError(GGUFParseError):
    def __init__(self, type_tag: int, context: str = "value"):
        super().__init__(f"unknown metadata {context} type: {type_tag}")
        self.type_tag = type_tag
        self.context = context


class ArchitectureError(GGUFError):
    """``general.architecture`` is unusable."""


class MissingFieldError(ArchitectureError):
    def __init__(self, path: str):
        super().__init__(f"{path} not found")
        self.path = path


class UnsupportedArchitectureError(ArchitectureError):
    def __init__(self, architecture: Any):
        super().__init__(f"invalid architecture: {architecture!r}")
        self.architecture = architecture


class SchemaValidationError(GGUFError):
    """Metadata does not satisfy its architecture schema.

    ``path`` is the dotted path of the first offending field; ``issues`` holds
    every ``(path, message)`` pair found.
    """

    def __init__(self, path: str, message: str, issues: Optional[List[Tuple[str, str]]] = None):
        self.path = path
        self.issues: List[Tuple[str, str]] = issues or [(path, message)]
        summary = "; ".join(f"{p}: {m}" for p, m in self.issues)
        super().__init__(f"metadata validation failed: {summary}")


class KeyConflictError(SchemaValidationError):
    """A dotted key collides with a leaf or subtree already in the metadata tree."""


@dataclass(frozen=True)
class GeneralMetadata:
    architecture: str
    name: Optional[str] = None
    author: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    license: Optional[str] = None
    source: Optional[Mapping[str, Any]] = None
    file_type: Optional[str] = None
    alignment: Optional[Union[int, float]] = None
    quantization_version: Optional[Union[int, float]] = None

    @classmethod
    def from_tree(cls, block: Mapping[str, Any]) -> "GeneralMetadata":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in block.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return to_dict(self, drop_none=True)


@dataclass(frozen=True)
class GGUFMetadata:
    """Validated metadata: the ``general`` block plus one architecture block."""

    general: GeneralMetadata

    @property
    def architecture(self) -> str:
        return self.general.architecture

    @property
    def block(self) -> Mapping[str, Any]:
        """The architecture-named block (``record.llama`` for a llama file, etc.)."""
        return getattr(self, self.architecture)

    def to_dict(self) -> Dict[str, Any]:
        return {"general": self.general.to_dict(), self.architecture: to_dict(self.block)}


@dataclass(frozen=True)
class LlamaMetadata(GGUFMetadata):
    llama: Mapping[str, Any]


@dataclass(frozen=True)
class MPTMetadata(GGUFMetadata):
    mpt: Mapping[str, Any]


@dataclass(frozen=True)
class GPTNeoXMetadata(GGUFMetadata):
    gptneox: Mapping[str, Any]


@dataclass(frozen=True)
class GPTJMetadata(GGUFMetadata):
    gptj: Mapping[str, Any]


@dataclass(frozen=True)
class GPT2Metadata(GGUFMetadata):
    gpt2: Mapping[str, Any]


@dataclass(frozen=True)
class BloomMetadata(GGUFMetadata):
    bloom: Mapping[str, Any]


@dataclass(frozen=True)
class FalconMetadata(GGUFMetadata):
    falcon: Mapping[str, Any]


@dataclass(frozen=True)
class GemmaMetadata(GGUFMetadata):
    gemma: Mapping[str, Any]


@dataclass(frozen=True)
class RWKVMetadata(GGUFMetadata):
    rwkv: Mapping[str, Any]


@dataclass(frozen=True)
class WhisperMetadata(GGUFMetadata):
    whisper: Mapping[str, Any]


RECORD_TYPES: Dict[str, type] = {
    "llama": LlamaMetadata,
    "mpt": MPTMetadata,
    "gptneox": GPTNeoXMetadata,
    "gptj": GPTJMetadata,
    "gpt2": GPT2Metadata,
    "bloom": BloomMetadata,
    "falcon": FalconMetadata,
    "gemma": GemmaMetadata,
    "rwkv": RWKVMetadata,
    "whisper": WhisperMetadata,
}
