from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Tuple


@dataclass(frozen=True)
class NamedSegment:
    """A tag found in the buffer and the offset right after its closing delimiter."""
    name: str
    offset: int


@dataclass(frozen=True)
class SegmentResult:
    """
    One decoded segment (one header + payload).

    tag: raw tag name, None for an untagged buffer
    key: sanitized tag name used in the aggregate (None for an untagged buffer)
    offset/end: byte range consumed by the header and the payload
    """
    tag: Optional[str]
    key: Optional[str]
    offset: int
    end: int
    value: Any
    warnings: Tuple[str, ...] = ()

    @property
    def n_bytes(self) -> int:
        return int(self.end - self.offset)


@dataclass(frozen=True)
class SegmentFailure:
    """A segment skipped in lenient mode, with the reason it failed."""
    tag: str
    offset: int
    error: str


@dataclass(frozen=True)
class DecodedFile:
    """
    Result of decoding one buffer or file.

    Notes
    - data is the aggregate mapping when the buffer is tagged, or the single
      decoded value of the whole buffer when it carries no tags.
    - tags lists the raw tag names that were decoded, in discovery order.
    - failures is only populated in lenient mode.
    """
    data: Any
    segments: Tuple[SegmentResult, ...]
    tags: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    source_path: Optional[Path] = None
    failures: Tuple[SegmentFailure, ...] = ()

    @property
    def n_segments(self) -> int:
        return len(self.segments)

    @property
    def is_tagged(self) -> bool:
        return bool(self.segments) and self.segments[0].tag is not None

    def keys(self) -> List[str]:
        if isinstance(self.data, dict):
            return list(self.data.keys())
        return []

    def __getitem__(self, key: str) -> Any:
        if not isinstance(self.data, dict):
            raise KeyError(key)
        return self.data[key]

    def segment(self, tag: str) -> SegmentResult:
        for s in self.segments:
            if s.tag == tag:
                return s
        raise KeyError(f"No decoded segment for tag '{tag}'.")
