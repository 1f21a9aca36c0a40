from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator, Tuple

import numpy as np


@dataclass(frozen=True)
class Waveform:
    """
    Fixed-layout waveform record.

    timestamp1:
        Raw 64-bit word stored first (fractional part of the acquisition time stamp).
    timestamp2:
        Whole seconds of the time stamp moved from the 1904 epoch to the Unix epoch.
    dt:
        Sample interval [s].
    Y:
        Sample values (float64).
    attributes:
        Opaque trailing attribute bytes, passed through unchanged.
    """
    timestamp1: int
    timestamp2: int
    dt: float
    Y: np.ndarray
    attributes: bytes

    @property
    def n_samples(self) -> int:
        return int(np.asarray(self.Y).size)

    @property
    def t0(self) -> datetime:
        """Acquisition start as an aware UTC datetime."""
        frac = float(self.timestamp1) / 2.0**64
        return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=int(self.timestamp2) + frac)

    def time_axis(self) -> np.ndarray:
        """Relative sample times k*dt, starting at 0."""
        return np.arange(self.n_samples, dtype=np.float64) * float(self.dt)


@dataclass(frozen=True)
class UnknownTypeCode:
    """
    A member whose type code is not in the type table.

    The bytes were consumed with the 4-byte fallback width and interpreted as
    little-endian uint32. The value is kept, but marked as low confidence so
    callers can decide whether to trust it.
    """
    type_code: int
    value: Any
    raw: bytes
    low_confidence: bool = True


def iter_unknown(value: Any, path: str = "") -> Iterator[Tuple[str, UnknownTypeCode]]:
    """Yield (path, marker) for every UnknownTypeCode inside a decoded tree."""
    if isinstance(value, UnknownTypeCode):
        yield path or "<root>", value
    elif isinstance(value, dict):
        for k, v in value.items():
            yield from iter_unknown(v, f"{path}.{k}" if path else str(k))
    elif isinstance(value, list):
        for i, v in enumerate(value):
            yield from iter_unknown(v, f"{path}[{i}]")


def describe(value: Any) -> str:
    """One-line summary of a decoded value (kind and shape)."""
    if isinstance(value, dict):
        return f"cluster({len(value)} fields)"
    if isinstance(value, Waveform):
        return f"waveform(n={value.n_samples}, dt={value.dt:.6g})"
    if isinstance(value, UnknownTypeCode):
        return f"unknown(type={value.type_code}, value={value.value!r}, low confidence)"
    if isinstance(value, np.ndarray):
        return f"array({value.dtype}, shape={value.shape})"
    if isinstance(value, list):
        return f"list(len={len(value)})"
    if isinstance(value, str):
        txt = value if len(value) <= 40 else value[:37] + "..."
        return f"text({txt!r})"
    if isinstance(value, np.generic):
        return f"{value.dtype}({value.item()!r})"
    return f"{type(value).__name__}({value!r})"
