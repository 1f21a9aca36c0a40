from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Optional

import numpy as np


# Seconds between 1904-01-01 (instrument epoch) and 1970-01-01.
LABVIEW_EPOCH_OFFSET = 2082844800

# Opaque attribute block that trails every waveform record.
WAVEFORM_ATTRIBUTE_BYTES = 29

# Width used to step over codes missing from the table.
FALLBACK_WIDTH = 4


class TypeCode(IntEnum):
    INT8 = 1
    INT16 = 2
    INT32 = 3
    INT64 = 4
    UINT8 = 5
    UINT16 = 6
    UINT32 = 7
    UINT64 = 8
    FLOAT32 = 9
    FLOAT64 = 10
    ENUM = 22
    TAB = 23
    BOOLEAN = 33
    STRING = 48
    PICTURE = 51
    DAC_RESOURCE = 55
    ARRAY = 64
    CLUSTER = 80
    WAVEFORM = 84
    VISA_RESOURCE = 112


class Strategy(Enum):
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    TEXT = "text"
    WAVEFORM = "waveform"
    ARRAY = "array"
    CLUSTER = "cluster"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TypeSpec:
    """
    How one type code is laid out in the payload.

    width is the byte size of one element for fixed-width strategies
    (NUMERIC, BOOLEAN, UNKNOWN) and None for variable-size ones.
    dtype is the little-endian numpy dtype used for bulk reads.
    """
    code: int
    name: str
    strategy: Strategy
    width: Optional[int] = None
    dtype: Optional[np.dtype] = None

    @property
    def is_bulk(self) -> bool:
        """True when a run of n elements is one contiguous n*width read."""
        return self.strategy in (Strategy.NUMERIC, Strategy.BOOLEAN)


def _numeric(code: TypeCode, dtype: str) -> TypeSpec:
    dt = np.dtype(dtype)
    return TypeSpec(int(code), code.name.lower(), Strategy.NUMERIC, int(dt.itemsize), dt)


TYPE_TABLE: Dict[int, TypeSpec] = {
    spec.code: spec
    for spec in (
        _numeric(TypeCode.INT8, "<i1"),
        _numeric(TypeCode.INT16, "<i2"),
        _numeric(TypeCode.INT32, "<i4"),
        _numeric(TypeCode.INT64, "<i8"),
        _numeric(TypeCode.UINT8, "<u1"),
        _numeric(TypeCode.UINT16, "<u2"),
        _numeric(TypeCode.UINT32, "<u4"),
        _numeric(TypeCode.UINT64, "<u8"),
        _numeric(TypeCode.FLOAT32, "<f4"),
        _numeric(TypeCode.FLOAT64, "<f8"),
        _numeric(TypeCode.ENUM, "<u2"),
        _numeric(TypeCode.TAB, "<u4"),
        TypeSpec(int(TypeCode.BOOLEAN), "boolean", Strategy.BOOLEAN, 1, np.dtype("u1")),
        TypeSpec(int(TypeCode.STRING), "string", Strategy.TEXT),
        TypeSpec(int(TypeCode.PICTURE), "picture", Strategy.TEXT),
        TypeSpec(int(TypeCode.DAC_RESOURCE), "dac_resource", Strategy.TEXT),
        TypeSpec(int(TypeCode.VISA_RESOURCE), "visa_resource", Strategy.TEXT),
        TypeSpec(int(TypeCode.ARRAY), "array", Strategy.ARRAY),
        TypeSpec(int(TypeCode.CLUSTER), "cluster", Strategy.CLUSTER),
        TypeSpec(int(TypeCode.WAVEFORM), "waveform", Strategy.WAVEFORM),
    )
}


def lookup(code: int) -> TypeSpec:
    """Return the layout of a type code; unknown codes get the 4-byte fallback."""
    spec = TYPE_TABLE.get(int(code))
    if spec is not None:
        return spec
    return TypeSpec(int(code), f"unknown_{int(code)}", Strategy.UNKNOWN, FALLBACK_WIDTH, np.dtype("<u4"))
