"""Byte builders for synthetic ubinary payloads (tests only)."""
from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np


def u8s(values: Iterable[int]) -> bytes:
    return np.asarray(list(values), dtype="<u1").tobytes()


def u32(v: int) -> bytes:
    return np.asarray([v], dtype="<u4").tobytes()


def u64(v: int) -> bytes:
    return np.asarray([v], dtype="<u8").tobytes()


def i32s(values: Iterable[int]) -> bytes:
    return np.asarray(list(values), dtype="<i4").tobytes()


def f64s(values: Iterable[float]) -> bytes:
    return np.asarray(list(values), dtype="<f8").tobytes()


def text(s: str) -> bytes:
    raw = s.encode("latin-1")
    return u32(len(raw)) + raw


def header(names: Sequence[str], types: Sequence[int]) -> bytes:
    """Name table (1-D string array) followed by type table (1-D uint8 array)."""
    out = u32(len(names)) + b"".join(text(n) for n in names)
    return out + u32(len(types)) + u8s(types)


def waveform(seconds_1904: int, fraction: int, dt: float, y: Sequence[float], attributes: bytes = b"\x00" * 29) -> bytes:
    assert len(attributes) == 29
    return u64(fraction) + u64(seconds_1904) + f64s([dt]) + u32(len(y)) + f64s(y) + attributes


def tag(name: str) -> bytes:
    return b"@@@@@" + name.encode("utf-8") + b"}}}}}"
