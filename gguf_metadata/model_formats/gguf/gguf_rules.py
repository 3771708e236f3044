"""
GGUF Key-Value Store Specification and Validation Rules.
This file acts as a Python-based rule registry for the GGUF architectures we
understand. Each architecture maps dotted keys to their expected type and
whether they must be present; intermediate mappings are implied by the keys.
Adding an architecture means adding an entry here and a record type in gguf.py.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

NUMBER = "Number"
STRING = "String"
BOOLEAN = "Boolean"
FILE_TYPE = "FileType"


def _req(kind: str) -> Dict[str, Any]:
    return {"type": kind, "required": True}


def _opt(kind: str) -> Dict[str, Any]:
    return {"type": kind, "required": False}


# Shared by every architecture. general.architecture is checked by the
# dispatcher before any of these rules run.
GENERAL_KEYS: Dict[str, Dict[str, Any]] = {
    "general.architecture": _req(STRING),
    "general.name": _opt(STRING),
    "general.author": _opt(STRING),
    "general.url": _opt(STRING),
    "general.description": _opt(STRING),
    "general.license": _opt(STRING),
    "general.source.url": _opt(STRING),
    "general.source.huggingface.repository": _opt(STRING),
    "general.file_type": _opt(FILE_TYPE),
    "general.alignment": _opt(NUMBER),
    "general.quantization_version": _opt(NUMBER),
}

ARCHITECTURE_KEYS: Dict[str, Dict[str, Dict[str, Any]]] = {
    "llama": {
        "llama.attention.head_count": _req(NUMBER),
        "llama.attention.head_count_kv": _opt(NUMBER),
        "llama.attention.layer_norm_rms_epsilon": _req(NUMBER),
        "llama.context_length": _req(NUMBER),
        "llama.embedding_length": _req(NUMBER),
        "llama.feed_forward_length": _req(NUMBER),
        "llama.layer_count": _opt(NUMBER),
        "llama.rope.dimension_count": _req(NUMBER),
        "llama.rope.freq_base": _opt(NUMBER),
        "llama.rope.scale": _opt(NUMBER),
        "llama.rope.scale_linear": _opt(NUMBER),
        "llama.tensor_data_layout": _opt(STRING),
    },
    "mpt": {
        "mpt.attention.alibi_bias_max": _req(NUMBER),
        "mpt.attention.clip_kqv": _req(NUMBER),
        "mpt.attention.head_count": _req(NUMBER),
        "mpt.attention.layer_norm_epsilon": _req(NUMBER),
        "mpt.context_length": _req(NUMBER),
        "mpt.embedding_length": _req(NUMBER),
        "mpt.layer_count": _req(NUMBER),
    },
    "gptneox": {
        "gptneox.attention.head_count": _req(NUMBER),
        "gptneox.attention.layer_norm_epsilon": _req(NUMBER),
        "gptneox.context_length": _req(NUMBER),
        "gptneox.embedding_length": _req(NUMBER),
        "gptneox.layer_count": _req(NUMBER),
        "gptneox.rope.dimension_count": _req(NUMBER),
        "gptneox.rope.scale": _opt(NUMBER),
        "gptneox.use_parallel_residual": _req(BOOLEAN),
    },
    "gptj": {
        "gptj.attention.head_count": _req(NUMBER),
        "gptj.attention.layer_norm_epsilon": _req(NUMBER),
        "gptj.context_length": _req(NUMBER),
        "gptj.embedding_length": _req(NUMBER),
        "gptj.layer_count": _req(NUMBER),
        "gptj.rope.dimension_count": _req(NUMBER),
        "gptj.rope.scale": _opt(NUMBER),
    },
    "gpt2": {
        "gpt2.attention.head_count": _req(NUMBER),
        "gpt2.attention.layer_norm_epsilon": _req(NUMBER),
        "gpt2.context_length": _req(NUMBER),
        "gpt2.embedding_length": _req(NUMBER),
        "gpt2.layer_count": _req(NUMBER),
    },
    "bloom": {
        "bloom.attention.head_count": _req(NUMBER),
        "bloom.attention.layer_norm_epsilon": _req(NUMBER),
        "bloom.context_length": _req(NUMBER),
        "bloom.embedding_length": _req(NUMBER),
        "bloom.feed_forward_length": _req(NUMBER),
        "bloom.layer_count": _req(NUMBER),
    },
    "falcon": {
        "falcon.attention.head_count": _req(NUMBER),
        "falcon.attention.head_count_kv": _req(NUMBER),
        "falcon.attention.layer_norm_epsilon": _req(NUMBER),
        "falcon.attention.use_norm": _req(BOOLEAN),
        "falcon.context_length": _req(NUMBER),
        "falcon.embedding_length": _req(NUMBER),
        "falcon.layer_count": _req(NUMBER),
        "falcon.tensor_data_layout": _opt(STRING),
    },
    "gemma": {
        "gemma.attention.head_count": _req(NUMBER),
        "gemma.attention.head_count_kv": _opt(NUMBER),
        "gemma.attention.layer_norm_rms_epsilon": _req(NUMBER),
        "gemma.block_count": _req(NUMBER),
        "gemma.context_length": _req(NUMBER),
        "gemma.embedding_length": _req(NUMBER),
        "gemma.feed_forward_length": _req(NUMBER),
    },
    "rwkv": {
        "rwkv.architecture_version": _req(NUMBER),
        "rwkv.context_length": _req(NUMBER),
        "rwkv.embedding_length": _req(NUMBER),
        "rwkv.feed_forward_length": _req(NUMBER),
        "rwkv.layer_count": _req(NUMBER),
    },
    # Encoder/decoder shape; defined but not reachable from parse() dispatch.
    "whisper": {
        "whisper.decoder.attention.head_count": _req(NUMBER),
        "whisper.decoder.context_length": _req(NUMBER),
        "whisper.decoder.embedding_length": _req(NUMBER),
        "whisper.decoder.layer_count": _req(NUMBER),
        "whisper.encoder.attention.head_count": _req(NUMBER),
        "whisper.encoder.context_length": _req(NUMBER),
        "whisper.encoder.embedding_length": _req(NUMBER),
        "whisper.encoder.layer_count": _req(NUMBER),
        "whisper.encoder.mels_count": _req(NUMBER),
    },
}

# Architectures that parse() will dispatch on.
SUPPORTED_ARCHITECTURES: Tuple[str, ...] = (
    "llama",
    "mpt",
    "gptneox",
    "gptj",
    "gpt2",
    "bloom",
    "falcon",
    "gemma",
    "rwkv",
)
