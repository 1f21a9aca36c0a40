from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

from ubinary.errors import MalformedHeader


@dataclass(frozen=True)
class HeaderQueues:
    """
    Parallel name/type-code queues that drive structural decoding.

    The queues are never mutated: popping returns the entry together with a new
    HeaderQueues whose read position moved by one. Decode steps thread this
    value through their return values, the same way they thread the cursor.

    Pop discipline:
      - every structural node pops exactly one type code
      - named nodes (cluster members, array elements) pop exactly one name
      - arrays additionally pop their dimension count, clusters their member count
    """
    types: Tuple[int, ...]
    names: Tuple[str, ...]
    type_pos: int = 0
    name_pos: int = 0

    @classmethod
    def from_lists(cls, types: Iterable[int], names: Iterable[str]) -> "HeaderQueues":
        return cls(tuple(int(t) for t in types), tuple(str(n) for n in names))

    @classmethod
    def synthetic(cls, *types: int) -> "HeaderQueues":
        """Queue for a layout that is implied by the format rather than stored in a header.

        One empty name is provided per structural step so that array element
        names can be popped like in any stored header.
        """
        return cls(tuple(int(t) for t in types), ("",) * len(types))

    @property
    def remaining_types(self) -> int:
        return len(self.types) - self.type_pos

    @property
    def remaining_names(self) -> int:
        return len(self.names) - self.name_pos

    @property
    def has_types(self) -> bool:
        return self.type_pos < len(self.types)

    def pop_type(self) -> Tuple[int, "HeaderQueues"]:
        if not self.has_types:
            raise MalformedHeader(f"type queue exhausted after {len(self.types)} entries")
        return self.types[self.type_pos], HeaderQueues(self.types, self.names, self.type_pos + 1, self.name_pos)

    def pop_name(self) -> Tuple[str, "HeaderQueues"]:
        if self.name_pos >= len(self.names):
            raise MalformedHeader(
                f"name queue exhausted after {len(self.names)} entries "
                f"({self.remaining_types} type entries still pending)"
            )
        return self.names[self.name_pos], HeaderQueues(self.types, self.names, self.type_pos, self.name_pos + 1)
