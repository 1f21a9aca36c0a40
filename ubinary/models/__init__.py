from .segments import DecodedFile, NamedSegment, SegmentFailure, SegmentResult
from .values import UnknownTypeCode, Waveform, describe, iter_unknown

__all__ = [
    "DecodedFile",
    "NamedSegment",
    "SegmentFailure",
    "SegmentResult",
    "UnknownTypeCode",
    "Waveform",
    "describe",
    "iter_unknown",
]
