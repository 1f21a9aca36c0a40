from __future__ import annotations

import re
from typing import List

from ubinary.models.segments import NamedSegment


# @@@@@TAG}}}}} -- the tag text cannot contain '@' or '}'.
TAG_PATTERN = re.compile(rb"@{5}([^@}]*)\}{5}")

# Marks the format itself, not a data segment.
RESERVED_TAG = "ubinary"


def scan_tags(buffer: bytes, encoding: str = "utf-8") -> List[NamedSegment]:
    """
    Find every tag in the buffer, in discovery order.

    The offset of each NamedSegment is the byte right after the closing '}}}}}',
    where the tagged segment's header begins. An empty list means the buffer
    is untagged and should be decoded as a single segment at offset 0.
    """
    found: List[NamedSegment] = []
    for m in TAG_PATTERN.finditer(bytes(buffer)):
        name = m.group(1).decode(encoding, errors="replace")
        if name == RESERVED_TAG:
            continue
        found.append(NamedSegment(name=name, offset=m.end()))
    return found


def list_tags(buffer: bytes, encoding: str = "utf-8") -> List[str]:
    """Tag names of the buffer in discovery order (no decoding)."""
    return [s.name for s in scan_tags(buffer, encoding)]
