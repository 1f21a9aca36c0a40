from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ubinary.errors import DuplicateFieldName, EmptyInput, UbinaryError
from ubinary.ingest.decoder import MAX_NESTING_DEPTH, DecoderOptions, decode_cluster
from ubinary.ingest.header import read_header
from ubinary.ingest.names import DEFAULT_MAX_LENGTH, sanitize
from ubinary.ingest.tags import scan_tags
from ubinary.models.segments import DecodedFile, NamedSegment, SegmentFailure, SegmentResult
from ubinary.models.values import iter_unknown


LAYOUTS = ("merged", "by_tag")


@dataclass(frozen=True)
class UbinaryReaderConfig:
    """
    Configuration shared by the segment assembler and the file reader.

    text_encoding:
      Codec for length-prefixed text values. latin-1 maps every byte to one
      character and never fails.
    tag_encoding:
      Codec for tag names found in the buffer (undecodable bytes are replaced).
    max_identifier_length:
      Field and tag names are truncated to this length after sanitizing.
    layout:
      - "merged": the fields of every selected segment are concatenated into one
        mapping (a field name may then only occur once across segments).
      - "by_tag": one entry per segment, keyed by the sanitized tag name.
    strict:
      - True: the first failing segment aborts the whole call; nothing is returned.
      - False: failing segments are skipped and listed in DecodedFile.failures.
    unique_members:
      Raise DuplicateFieldName when two members of one cluster sanitize to the
      same name (default: the later member replaces the earlier one).
    max_depth:
      Deepest accepted cluster nesting; deeper headers are a MalformedHeader.
    """
    text_encoding: str = "latin-1"
    tag_encoding: str = "utf-8"
    max_identifier_length: int = DEFAULT_MAX_LENGTH
    layout: str = "merged"
    strict: bool = True
    unique_members: bool = False
    max_depth: int = MAX_NESTING_DEPTH

    def __post_init__(self) -> None:
        if self.layout not in LAYOUTS:
            raise ValueError(f"layout must be one of {LAYOUTS}, got {self.layout!r}")

    @property
    def decoder_options(self) -> DecoderOptions:
        return DecoderOptions(
            text_encoding=self.text_encoding,
            max_identifier_length=self.max_identifier_length,
            unique_members=self.unique_members,
            max_depth=self.max_depth,
        )


def select_segments(found: Sequence[NamedSegment], requested: Optional[Iterable[str]]) -> List[NamedSegment]:
    """Requested ∩ found, in discovery order. No request selects everything found."""
    if requested is None:
        return list(found)
    if isinstance(requested, str):
        requested = [requested]
    wanted = set(requested)
    if not wanted:
        return list(found)
    return [s for s in found if s.name in wanted]


class SegmentAssembler:
    """
    Decodes the segments of one buffer and assembles them into a DecodedFile.

    A buffer without tags is one anonymous segment at offset 0 and its decoded
    value is returned as-is. Tagged buffers are decoded tag by tag, each
    segment from its own offset, and merged according to config.layout.
    """

    def __init__(self, config: Optional[UbinaryReaderConfig] = None):
        self.config = config or UbinaryReaderConfig()

    def decode_segment(self, buffer: bytes, offset: int, tag: Optional[str] = None) -> SegmentResult:
        """Header + top-level cluster starting at offset."""
        opts = self.config.decoder_options
        cursor, queues = read_header(buffer, offset, opts)
        cursor, value, queues = decode_cluster(buffer, cursor, queues, None, opts)

        warnings: List[str] = []
        for path, marker in iter_unknown(value):
            warnings.append(
                f"unknown type code {marker.type_code} at '{path}': decoded as {len(marker.raw)} raw bytes (low confidence)"
            )
        if queues.remaining_names:
            warnings.append(f"{queues.remaining_names} unused field names left after the last type code")

        key = sanitize(tag, self.config.max_identifier_length) if tag is not None else None
        return SegmentResult(tag=tag, key=key, offset=int(offset), end=int(cursor), value=value, warnings=tuple(warnings))

    def assemble(self, buffer: bytes, tags: Optional[Iterable[str]] = None) -> DecodedFile:
        buf = bytes(buffer)
        found = scan_tags(buf, self.config.tag_encoding)
        requested = [tags] if isinstance(tags, str) else (list(tags) if tags is not None else None)

        if not found:
            if not buf:
                raise EmptyInput()
            warnings: List[str] = []
            if requested:
                warnings.append(f"buffer has no tags; requested tags ignored: {', '.join(requested)}")
            seg = self.decode_segment(buf, 0)
            return DecodedFile(
                data=seg.value,
                segments=(seg,),
                tags=(),
                warnings=tuple(warnings) + seg.warnings,
            )

        selected = select_segments(found, requested)
        warnings = []
        if requested:
            present = {s.name for s in found}
            missing = [t for t in requested if t not in present]
            if missing:
                warnings.append(f"requested tags not found: {', '.join(missing)}")

        results: List[SegmentResult] = []
        failures: List[SegmentFailure] = []
        for s in selected:
            try:
                results.append(self.decode_segment(buf, s.offset, s.name))
            except UbinaryError as e:
                if self.config.strict:
                    raise
                failures.append(SegmentFailure(tag=s.name, offset=s.offset, error=f"{type(e).__name__}: {e}"))
                warnings.append(f"segment '{s.name}' at offset {s.offset} skipped ({type(e).__name__}: {e})")

        data = self._merge(results)
        for r in results:
            warnings.extend(f"[{r.tag}] {w}" for w in r.warnings)

        return DecodedFile(
            data=data,
            segments=tuple(results),
            tags=tuple(r.tag for r in results),
            warnings=tuple(warnings),
            failures=tuple(failures),
        )

    def _merge(self, results: Sequence[SegmentResult]) -> Dict[str, Any]:
        """Build the aggregate mapping; any key collision is a DuplicateFieldName."""
        out: Dict[str, Any] = {}
        if self.config.layout == "by_tag":
            for r in results:
                if r.key in out:
                    raise DuplicateFieldName(r.key, f"tag '{r.tag}'")
                out[r.key] = r.value
            return out

        for r in results:
            if not isinstance(r.value, dict):
                fields: Tuple[Tuple[str, Any], ...] = ((r.key, r.value),)
            else:
                fields = tuple(r.value.items())
            for k, v in fields:
                if k in out:
                    raise DuplicateFieldName(k, f"segment '{r.tag}'")
                out[k] = v
        return out
