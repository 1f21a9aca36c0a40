"""ubinary -- Python tooling for instrument binary files with an embedded header.

The acquisition software writes its data as a plain little-endian byte stream,
preceded by a small header listing the field names and type codes of what
follows. Several such blocks can share one file, each announced by a text tag
of the form ``@@@@@NAME}}}}}``.

This package provides tools for:
- Listing the tags of a file
- Decoding one, several, or all tagged segments (or an untagged file)
- Decoding scalars, text, n-D arrays, nested clusters and waveform records
- Converting decoded arrays of clusters and waveforms to DataFrames
- Applying a function to every file of a folder
- Nonlinear least-squares fitting with fixed parameters, bounds and weights

Key principles:
- The header drives every byte read; nothing is guessed from the payload
- Truncated or inconsistent files fail with an explicit error
- Unknown type codes are kept as low-confidence values and reported

Main subpackages:
- ingest: Tag scanning, header reading, decoding, file discovery
- models: Result data models (DecodedFile, SegmentResult, Waveform)
- analysis: DataFrame helpers and the nonlinear fit
- scripts: Command-line inspection tool
"""
from .errors import BufferOverrun, DuplicateFieldName, EmptyInput, MalformedHeader, UbinaryError
from .ingest import SegmentAssembler, UbinaryReader, UbinaryReaderConfig, decode, list_tags, load
from .models import DecodedFile, UnknownTypeCode, Waveform

__all__ = [
    "BufferOverrun",
    "DecodedFile",
    "DuplicateFieldName",
    "EmptyInput",
    "MalformedHeader",
    "SegmentAssembler",
    "UbinaryError",
    "UbinaryReader",
    "UbinaryReaderConfig",
    "UnknownTypeCode",
    "Waveform",
    "decode",
    "list_tags",
    "load",
]
