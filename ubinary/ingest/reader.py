from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, List, Optional

from ubinary.ingest.assembler import SegmentAssembler, UbinaryReaderConfig
from ubinary.ingest.tags import list_tags as _list_tags
from ubinary.models.segments import DecodedFile


class UbinaryReader:
    """
    Reads ubinary files (binary payloads with an embedded name/type header).

    The whole file is loaded into memory, then handed to SegmentAssembler.
    Tags of the form @@@@@NAME}}}}} split the file into independently decodable
    segments; files without tags are decoded as one segment.
    """

    def __init__(self, config: Optional[UbinaryReaderConfig] = None):
        self.config = config or UbinaryReaderConfig()

    @staticmethod
    def _load(file_path: str | Path) -> tuple[Path, bytes]:
        path = Path(file_path).expanduser().resolve()
        if not path.exists():
            raise FileNotFoundError(str(path))
        if not path.is_file():
            raise FileNotFoundError(f"Not a file: {path}")
        return path, path.read_bytes()

    def list_tags(self, file_path: str | Path) -> List[str]:
        _, buf = self._load(file_path)
        return _list_tags(buf, self.config.tag_encoding)

    def read(self, file_path: str | Path, tags: Optional[Iterable[str]] = None) -> DecodedFile:
        path, buf = self._load(file_path)
        res = SegmentAssembler(self.config).assemble(buf, tags)
        return DecodedFile(
            data=res.data,
            segments=res.segments,
            tags=res.tags,
            warnings=res.warnings,
            source_path=path,
            failures=res.failures,
        )


def list_tags(buffer: bytes, encoding: str = "utf-8") -> List[str]:
    """Tag names found in a buffer, in order, excluding the reserved 'ubinary' marker."""
    return _list_tags(buffer, encoding)


def decode(
    buffer: bytes,
    tags: Optional[Iterable[str]] = None,
    config: Optional[UbinaryReaderConfig] = None,
) -> Any:
    """
    Decode a buffer.

    Returns the aggregate mapping of the selected tags, or, for a buffer without
    tags, the decoded value of the whole buffer.
    """
    return SegmentAssembler(config).assemble(buffer, tags).data


def load(
    file_path: str | Path,
    tags: Optional[Iterable[str]] = None,
    config: Optional[UbinaryReaderConfig] = None,
) -> Any:
    """Decode a file; same return value as decode()."""
    return UbinaryReader(config).read(file_path, tags).data
