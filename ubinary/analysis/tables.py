from __future__ import annotations

from typing import Any, Dict, Sequence

import numpy as np
import pandas as pd

from ubinary.models.values import UnknownTypeCode, Waveform


def _cell(v: Any) -> Any:
    if isinstance(v, np.generic):
        return v.item()
    if isinstance(v, UnknownTypeCode):
        return _cell(v.value)
    return v


def _flatten(prefix: str, value: Dict[str, Any], row: Dict[str, Any]) -> None:
    for k, v in value.items():
        key = f"{prefix}.{k}" if prefix else k
        if isinstance(v, dict):
            _flatten(key, v, row)
        else:
            row[key] = _cell(v)


def clusters_to_frame(items: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    """
    One row per cluster of a decoded array of clusters.

    Nested clusters are flattened into dotted column names ('outer.inner').
    Scalars become plain Python values; arrays, lists and waveforms are kept as
    object cells.
    """
    rows = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise TypeError(f"element {i} is not a cluster: {type(item).__name__}")
        row: Dict[str, Any] = {}
        _flatten("", item, row)
        rows.append(row)
    return pd.DataFrame(rows)


def waveform_to_frame(wf: Waveform, absolute: bool = False) -> pd.DataFrame:
    """
    Waveform samples as a DataFrame with columns 't' and 'Y'.

    absolute=False: t is relative (k*dt).
    absolute=True : t is Unix time in seconds (t0 + k*dt).
    """
    t = wf.time_axis()
    if absolute:
        t = t + wf.t0.timestamp()
    y = np.asarray(wf.Y, dtype=np.float64).ravel()
    return pd.DataFrame({"t": t, "Y": y})
