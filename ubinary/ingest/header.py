from __future__ import annotations

from typing import Tuple

from ubinary.errors import MalformedHeader
from ubinary.ingest.decoder import DecoderOptions, decode_array
from ubinary.ingest.queues import HeaderQueues
from ubinary.ingest.typecodes import TypeCode


# The two header arrays have a layout implied by the format: a 1-D array of
# strings (field names) and a 1-D array of uint8 (type codes).
NAME_TABLE_LAYOUT = HeaderQueues.synthetic(1, TypeCode.STRING)
TYPE_TABLE_LAYOUT = HeaderQueues.synthetic(1, TypeCode.UINT8)


def read_header(
    buffer: bytes,
    cursor: int,
    options: DecoderOptions = DecoderOptions(),
) -> Tuple[int, HeaderQueues]:
    """
    Read the segment header starting at `cursor`.

    Layout:
      uint32 n_names, then n_names length-prefixed strings
      uint32 n_types, then n_types uint8 type codes

    Returns (cursor after the header, queues seeded with names and type codes).
    """
    start = cursor
    cursor, names, _ = decode_array(buffer, cursor, NAME_TABLE_LAYOUT, options)
    cursor, types, _ = decode_array(buffer, cursor, TYPE_TABLE_LAYOUT, options)
    if len(types) and not len(names):
        raise MalformedHeader(f"header declares {len(types)} type codes but no field names", offset=start)
    return cursor, HeaderQueues.from_lists(types.tolist(), names)
