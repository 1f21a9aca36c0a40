"""Ingest package - ubinary decoding and file discovery.

This package handles:
- Locating @@@@@TAG}}}}} markers that split a file into segments
- Reading each segment's header (field-name and type-code tables)
- Decoding the payload driven by those tables (scalars, text, arrays,
  clusters, waveforms)
- Assembling the segments of one file into a single result
- Listing folders of files to decode

Key classes:
- UbinaryReader: reads a file and returns a DecodedFile
- SegmentAssembler: decodes the segments of an in-memory buffer
- UbinaryReaderConfig: frozen configuration shared by both

Design principle:
- The buffer is never modified; cursor and queues are passed explicitly
- Malformed input fails with a UbinaryError, never reads past the buffer
- Unknown type codes degrade to low-confidence values and are reported
"""
from .assembler import SegmentAssembler, UbinaryReaderConfig
from .reader import UbinaryReader, decode, list_tags, load

__all__ = [
    "SegmentAssembler",
    "UbinaryReader",
    "UbinaryReaderConfig",
    "decode",
    "list_tags",
    "load",
]
