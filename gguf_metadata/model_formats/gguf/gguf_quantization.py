# gguf_metadata/model_formats/gguf/gguf_quantization.py
"""
GGUF ``general.file_type`` codes (the dominant quantization of a model file).
"""
from __future__ import annotations

from enum import IntEnum
from typing import Any, Optional


class GGUFFileType(IntEnum):
    """Values of ``general.file_type`` as written by llama.cpp converters."""

    ALL_F32 = 0
    MOSTLY_F16 = 1
    MOSTLY_Q4_0 = 2
    MOSTLY_Q4_1 = 3
    MOSTLY_Q4_1_SOME_F16 = 4
    # Deprecated
    MOSTLY_Q4_2 = 5
    MOSTLY_Q4_3 = 6
    MOSTLY_Q8_0 = 7
    MOSTLY_Q5_0 = 8
    MOSTLY_Q5_1 = 9
    MOSTLY_Q2_K = 10
    MOSTLY_Q3_K_S = 11
    MOSTLY_Q3_K_M = 12
    MOSTLY_Q3_K_L = 13
    MOSTLY_Q4_K_S = 14
    MOSTLY_Q4_K_M = 15
    MOSTLY_Q5_K_S = 16
    MOSTLY_Q5_K_M = 17
    MOSTLY_Q6_K = 18
    MOSTLY_IQ2_XXS = 19
    MOSTLY_IQ2_XS = 20
    MOSTLY_Q2_K_S = 21
    MOSTLY_Q3_K_XS = 22
    MOSTLY_IQ3_XXS = 23


FILE_TYPE_NAMES = {member.value: member.name for member in GGUFFileType}


def normalize_file_type(value: Any) -> Optional[str]:
    """Map a raw ``general.file_type`` to its symbolic name.

    Whole-number floats count as their integer code. Codes newer than this table
    (and anything that is not a whole number) come back as ``None`` rather than
    failing, so files from newer converters still load.
    """
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return FILE_TYPE_NAMES.get(value)
