"""Recursive type-driven decoder for ubinary payloads.

The payload carries no delimiters: a cluster is its members written one after
another, an array is its dimension lengths followed by its elements. Structure
comes from the name/type queues read from the segment header, consumed in
lockstep with the payload bytes.

Every function here is pure with respect to its inputs: the buffer is never
modified, the cursor is an int passed in and returned advanced, and the queues
are an immutable :class:`~ubinary.ingest.queues.HeaderQueues` passed in and
returned advanced. A read that would cross the end of the buffer raises
:class:`~ubinary.errors.BufferOverrun` before touching any byte.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass
from math import prod
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ubinary.errors import BufferOverrun, DuplicateFieldName, MalformedHeader
from ubinary.ingest.names import DEFAULT_MAX_LENGTH, sanitize
from ubinary.ingest.queues import HeaderQueues
from ubinary.ingest.typecodes import (
    FALLBACK_WIDTH,
    LABVIEW_EPOCH_OFFSET,
    WAVEFORM_ATTRIBUTE_BYTES,
    Strategy,
    TypeCode,
    lookup,
)
from ubinary.models.values import UnknownTypeCode, Waveform


_U32 = np.dtype("<u4")
_F64 = np.dtype("<f8")

# Smallest possible encoding of one element, used to reject corrupt dimension
# lengths before looping over them.
_MIN_ELEMENT_BYTES = {
    Strategy.TEXT: 4,
    Strategy.WAVEFORM: 8 + 8 + 8 + 4 + WAVEFORM_ATTRIBUTE_BYTES,
    Strategy.UNKNOWN: FALLBACK_WIDTH,
}


#: Clusters nested deeper than this (counting array-of-cluster elements) are
#: rejected as MalformedHeader instead of exhausting the interpreter stack.
MAX_NESTING_DEPTH = 64


@dataclass(frozen=True)
class DecoderOptions:
    """
    text_encoding:
      Codec for length-prefixed text values.
    max_identifier_length:
      Member names are truncated to this length after sanitizing.
    unique_members:
      - False: a member whose sanitized name repeats inside one cluster
        replaces the earlier value.
      - True: the repeat raises DuplicateFieldName.
    max_depth:
      Deepest accepted cluster nesting level.
    """
    text_encoding: str = "latin-1"
    max_identifier_length: int = DEFAULT_MAX_LENGTH
    unique_members: bool = False
    max_depth: int = MAX_NESTING_DEPTH


_DEFAULT_OPTIONS = DecoderOptions()


# -------------------------
# Raw reads
# -------------------------
def _check(buffer: bytes, cursor: int, n: int) -> None:
    available = len(buffer) - cursor
    if n < 0 or n > available:
        raise BufferOverrun(cursor, n, max(available, 0))


def read_bytes(buffer: bytes, cursor: int, n: int) -> Tuple[bytes, int]:
    """Return (bytes, cursor + n)."""
    n = int(n)
    _check(buffer, cursor, n)
    end = cursor + n
    return bytes(buffer[cursor:end]), end


def read_array(buffer: bytes, cursor: int, dtype: np.dtype, count: int) -> Tuple[np.ndarray, int]:
    """Bulk read of count little-endian elements; returns (array copy, advanced cursor)."""
    count = int(count)
    n = count * int(dtype.itemsize)
    _check(buffer, cursor, n)
    if count == 0:
        return np.empty(0, dtype=dtype), cursor
    arr = np.frombuffer(buffer, dtype=dtype, count=count, offset=cursor).copy()
    return arr, cursor + n


def read_u32(buffer: bytes, cursor: int) -> Tuple[int, int]:
    arr, cursor = read_array(buffer, cursor, _U32, 1)
    return int(arr[0]), cursor


# -------------------------
# Leaf values
# -------------------------
def decode_text(buffer: bytes, cursor: int, options: DecoderOptions = _DEFAULT_OPTIONS) -> Tuple[int, str]:
    """uint32 length prefix followed by that many bytes."""
    length, cursor = read_u32(buffer, cursor)
    raw, cursor = read_bytes(buffer, cursor, length)
    return cursor, raw.decode(options.text_encoding, errors="replace")


def decode_waveform(buffer: bytes, cursor: int, options: DecoderOptions = _DEFAULT_OPTIONS) -> Tuple[int, Waveform]:
    raw1, cursor = read_bytes(buffer, cursor, 8)
    raw2, cursor = read_bytes(buffer, cursor, 8)
    dt, cursor = read_array(buffer, cursor, _F64, 1)
    cursor, y, _ = decode_array(buffer, cursor, HeaderQueues.synthetic(1, TypeCode.FLOAT64), options)
    attributes, cursor = read_bytes(buffer, cursor, WAVEFORM_ATTRIBUTE_BYTES)
    wf = Waveform(
        timestamp1=int.from_bytes(raw1, "little"),
        timestamp2=int.from_bytes(raw2, "little", signed=True) - LABVIEW_EPOCH_OFFSET,
        dt=float(dt[0]),
        Y=y,
        attributes=attributes,
    )
    return cursor, wf


def decode_run(
    buffer: bytes,
    cursor: int,
    code: int,
    count: int = 1,
    options: DecoderOptions = _DEFAULT_OPTIONS,
) -> Tuple[int, Any]:
    """
    Decode data (not structure) for one type code.

    Numeric and boolean codes read count elements in one run and return a
    1-D array. Text and waveform codes read one value (count is ignored, the
    callers loop). Unknown codes read count 4-byte words and return them wrapped
    in an UnknownTypeCode marker.
    """
    spec = lookup(code)
    if spec.is_bulk:
        arr, cursor = read_array(buffer, cursor, spec.dtype, count)
        if spec.strategy is Strategy.BOOLEAN:
            arr = arr != 0
        return cursor, arr
    if spec.strategy is Strategy.TEXT:
        return decode_text(buffer, cursor, options)
    if spec.strategy is Strategy.WAVEFORM:
        return decode_waveform(buffer, cursor, options)
    if spec.strategy is Strategy.UNKNOWN:
        raw, cursor = read_bytes(buffer, cursor, int(count) * FALLBACK_WIDTH)
        words = np.frombuffer(raw, dtype=_U32).copy() if raw else np.empty(0, dtype=_U32)
        value = words[0] if int(count) == 1 else words
        return cursor, UnknownTypeCode(type_code=int(code), value=value, raw=raw)
    raise MalformedHeader(f"type code {int(code)} ({spec.name}) is structural, not data", offset=cursor)


# -------------------------
# Structure
# -------------------------
def _nest(items: Sequence[Any], dims: Tuple[int, ...]) -> List[Any]:
    """Split a flat row-major element list into nested lists following dims."""
    if len(dims) <= 1:
        return list(items)
    step = prod(dims[1:])
    return [_nest(items[i * step:(i + 1) * step], dims[1:]) for i in range(dims[0])]


def _check_list_shape(buffer: bytes, dims: Tuple[int, ...], total: int, offset: int) -> None:
    # Nested lists are built in Python, so their size must stay tied to the
    # buffer even when an empty trailing dimension makes total zero.
    outer = prod(dims[:-1]) if len(dims) > 1 else 0
    if max(outer, total) > len(buffer):
        raise MalformedHeader(
            f"array dimensions {dims} describe more elements than a {len(buffer)}-byte buffer can hold",
            offset=offset,
        )


def _check_depth(depth: int, options: DecoderOptions, offset: Optional[int] = None) -> None:
    if depth > options.max_depth:
        raise MalformedHeader(f"clusters nested deeper than {options.max_depth} levels", offset=offset)


def decode_array(
    buffer: bytes,
    cursor: int,
    queues: HeaderQueues,
    options: DecoderOptions = _DEFAULT_OPTIONS,
    depth: int = 0,
) -> Tuple[int, Any, HeaderQueues]:
    """
    Decode an array node.

    Queue usage: dimension count N, element type code, element name, and for
    cluster elements the member count followed by the members' own entries.
    Payload: N uint32 dimension lengths, then the elements in row-major order.

    Returns a numpy array shaped by the dimensions for numeric/boolean elements,
    a list (nested lists for N-D) otherwise.
    """
    start = cursor
    ndim, queues = queues.pop_type()
    dim_arr, cursor = read_array(buffer, cursor, _U32, ndim)
    dims = tuple(int(d) for d in dim_arr)
    total = prod(dims)

    elem, queues = queues.pop_type()
    _, queues = queues.pop_name()
    spec = lookup(elem)

    if spec.strategy is Strategy.CLUSTER:
        members, queues = queues.pop_type()
        _check_list_shape(buffer, dims, total, start)
        return _decode_cluster_array(buffer, cursor, queues, members, dims, total, options, depth + 1)

    if spec.strategy is Strategy.ARRAY:
        raise MalformedHeader("array element type cannot be another array", offset=start)

    if spec.is_bulk:
        cursor, run = decode_run(buffer, cursor, elem, total, options)
        return cursor, run.reshape(dims), queues

    min_bytes = _MIN_ELEMENT_BYTES[spec.strategy] * total
    if min_bytes > len(buffer) - cursor:
        raise BufferOverrun(cursor, min_bytes, len(buffer) - cursor)
    _check_list_shape(buffer, dims, total, start)
    items: List[Any] = []
    for _ in range(total):
        cursor, item = decode_run(buffer, cursor, elem, 1, options)
        items.append(item)
    return cursor, _nest(items, dims), queues


def _decode_cluster_array(
    buffer: bytes,
    cursor: int,
    queues: HeaderQueues,
    members: int,
    dims: Tuple[int, ...],
    total: int,
    options: DecoderOptions,
    depth: int,
) -> Tuple[int, List[Any], HeaderQueues]:
    # Every element is described by the same queue entries: each one starts from
    # the same queue position and the last one hands back the advanced queues.
    if total == 0:
        return cursor, _nest([], dims), skip_cluster(queues, members, options, depth)

    items: List[Any] = []
    end_queues = queues
    for i in range(total):
        elem_start = cursor
        cursor, item, end_queues = decode_cluster(buffer, cursor, queues, members, options, depth)
        items.append(item)
        if cursor == elem_start:
            # zero-width element: the remaining ones are identical
            items.extend(copy.deepcopy(item) for _ in range(total - i - 1))
            break
    return cursor, _nest(items, dims), end_queues


def decode_cluster(
    buffer: bytes,
    cursor: int,
    queues: HeaderQueues,
    count: Optional[int] = None,
    options: DecoderOptions = _DEFAULT_OPTIONS,
    depth: int = 0,
) -> Tuple[int, Dict[str, Any], HeaderQueues]:
    """
    Decode a cluster of `count` members into an ordered dict.

    count=None decodes members until the type queue is empty (segment top level).
    A declared count larger than the remaining type entries is a MalformedHeader.
    Empty member names become unnamed1, unnamed2, ... (numbered per cluster).
    A repeated sanitized name replaces the earlier value unless
    options.unique_members is set. depth counts enclosing clusters and is
    limited by options.max_depth.
    """
    _check_depth(depth, options, cursor)
    fields: Dict[str, Any] = {}
    unnamed = 1
    remaining = count
    while queues.has_types and (remaining is None or remaining > 0):
        code, queues = queues.pop_type()
        name, queues = queues.pop_name()
        if name == "":
            name = f"unnamed{unnamed}"
            unnamed += 1
        key = sanitize(name, options.max_identifier_length)

        cursor, value, queues = decode_member(buffer, cursor, code, queues, options, depth + 1)

        if key in fields:
            if options.unique_members:
                raise DuplicateFieldName(key, "cluster")
            del fields[key]
        fields[key] = value
        if remaining is not None:
            remaining -= 1

    if remaining:
        raise MalformedHeader(
            f"cluster declares {count} members but the type queue ran out after {count - remaining}",
            offset=cursor,
        )
    return cursor, fields, queues


def decode_member(
    buffer: bytes,
    cursor: int,
    code: int,
    queues: HeaderQueues,
    options: DecoderOptions = _DEFAULT_OPTIONS,
    depth: int = 0,
) -> Tuple[int, Any, HeaderQueues]:
    """Decode one cluster member whose type code (and name) were already popped."""
    if lookup(code).strategy is Strategy.CLUSTER:
        members, queues = queues.pop_type()
        return decode_node(buffer, cursor, code, queues, members, options, depth)
    return decode_node(buffer, cursor, code, queues, 1, options, depth)


def decode_node(
    buffer: bytes,
    cursor: int,
    code: int,
    queues: HeaderQueues,
    count: Optional[int] = 1,
    options: DecoderOptions = _DEFAULT_OPTIONS,
    depth: int = 0,
) -> Tuple[int, Any, HeaderQueues]:
    """
    Decode one structural node of type `code`.

    count is the member count for clusters (None: until the queue is empty) and
    the element count for data codes; a single numeric/boolean element is
    returned as a numpy scalar.
    """
    spec = lookup(code)
    if spec.strategy is Strategy.ARRAY:
        return decode_array(buffer, cursor, queues, options, depth)
    if spec.strategy is Strategy.CLUSTER:
        return decode_cluster(buffer, cursor, queues, count, options, depth)

    n = 1 if count is None else int(count)
    cursor, value = decode_run(buffer, cursor, code, n, options)
    if spec.is_bulk and n == 1:
        value = value[0]
    return cursor, value, queues


# -------------------------
# Structural skipping (no payload bytes)
# -------------------------
def skip_cluster(
    queues: HeaderQueues,
    count: int,
    options: DecoderOptions = _DEFAULT_OPTIONS,
    depth: int = 0,
) -> HeaderQueues:
    """Advance the queues past the description of a cluster without reading data."""
    _check_depth(depth, options)
    remaining = int(count)
    while remaining > 0 and queues.has_types:
        code, queues = queues.pop_type()
        _, queues = queues.pop_name()
        queues = _skip_member(code, queues, options, depth + 1)
        remaining -= 1
    if remaining:
        raise MalformedHeader(f"cluster declares {count} members but the type queue ran out after {count - remaining}")
    return queues


def _skip_member(code: int, queues: HeaderQueues, options: DecoderOptions, depth: int) -> HeaderQueues:
    strategy = lookup(code).strategy
    if strategy is Strategy.ARRAY:
        _, queues = queues.pop_type()
        elem, queues = queues.pop_type()
        _, queues = queues.pop_name()
        if lookup(elem).strategy is Strategy.CLUSTER:
            members, queues = queues.pop_type()
            queues = skip_cluster(queues, members, options, depth + 1)
    elif strategy is Strategy.CLUSTER:
        members, queues = queues.pop_type()
        queues = skip_cluster(queues, members, options, depth)
    return queues
