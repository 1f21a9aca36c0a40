"""Analysis helpers for decoded ubinary data.

Design principle:
  - Ingest produces plain decoded trees (dicts, numpy arrays, Waveform records).
  - Analysis consumes them and produces DataFrames or fit results; it never
    reads files itself.
"""

from .nlfit import FitConfig, FitResult, nlfit
from .tables import clusters_to_frame, waveform_to_frame

__all__ = [
    "FitConfig",
    "FitResult",
    "nlfit",
    "clusters_to_frame",
    "waveform_to_frame",
]
