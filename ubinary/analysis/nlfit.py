"""Nonlinear least-squares fitting with fixed parameters, bounds and weights.

Thin layer over :func:`scipy.optimize.least_squares`. The fit options live in
an explicit :class:`FitConfig` instead of being captured by the model wrapper.

Conventions
-----------
- ``model(params, x)`` returns the model evaluated at ``x`` (same shape as ``y``).
- ``sigma`` are the per-point 1-sigma errors. Points with non-finite or zero
  sigma get zero weight. For the solver sigma is normalized by its mean, so
  the parameter errors come from the scatter of the residuals (not from the
  absolute size of sigma); the reduced chi-square uses the raw sigma.
- Parameter errors and confidence intervals follow the Jacobian/Student-t
  construction: ``se = sqrt(diag(mse * (J^T J)^-1))`` and a t quantile with
  ``n_points - n_free`` degrees of freedom. ``errors`` is the half width of the
  interval at the one-sigma level (68.27 %).
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

import numpy as np
from scipy import optimize, stats


ONE_SIGMA_LEVEL = math.erf(1.0 / math.sqrt(2.0))


@dataclass(frozen=True)
class FitConfig:
    """
    fixed:
      Truthy entries hold the matching parameter at its initial value.
    lower, upper:
      Parameter bounds (default -inf/+inf). Reversed pairs are swapped.
    sigma:
      Per-point 1-sigma errors of y (default: all ones).
    confidence:
      Level of the returned confidence interval.
    ftol:
      Relative cost tolerance passed to the solver.
    """
    fixed: Optional[Sequence[Any]] = None
    lower: Optional[Sequence[float]] = None
    upper: Optional[Sequence[float]] = None
    sigma: Optional[Sequence[float]] = None
    confidence: float = 0.95
    ftol: float = 1e-9


@dataclass(frozen=True)
class FitResult:
    """
    params:
        Fitted parameters (fixed ones at their initial value).
    errors:
        1-sigma errors (0 for fixed parameters).
    ci:
        Confidence interval, shape (2, n_params): row 0 lower, row 1 upper.
    reduced_chi2:
        sum((model - y)^2 / sigma^2) / (n_points - n_free).
    """
    params: np.ndarray
    errors: np.ndarray
    ci: np.ndarray
    reduced_chi2: float
    success: bool = True
    message: str = ""


def _as_vector(v: Optional[Sequence[Any]], n: int, fill: float, name: str) -> np.ndarray:
    if v is None:
        return np.full(n, fill, dtype=np.float64)
    arr = np.asarray(v, dtype=np.float64).ravel()
    if arr.size != n:
        raise ValueError(f"Parameters p0 and {name} must have the same size ({n} != {arr.size}).")
    return arr


def _reduced_chi2(resid: np.ndarray, var: np.ndarray, dof: int) -> float:
    if dof <= 0:
        return float("nan")
    return float(np.sum(resid**2 / var) / dof)


def nlfit(
    x: Any,
    y: Sequence[float],
    model: Callable[[np.ndarray, Any], Any],
    p0: Sequence[float],
    config: Optional[FitConfig] = None,
) -> FitResult:
    cfg = config or FitConfig()
    p0 = np.asarray(p0, dtype=np.float64).ravel()
    y = np.asarray(y, dtype=np.float64)
    n = p0.size

    fixed = _as_vector(cfg.fixed, n, 0.0, "fixed") != 0
    lb = _as_vector(cfg.lower, n, -np.inf, "lower")
    ub = _as_vector(cfg.upper, n, np.inf, "upper")
    lo = np.minimum(lb, ub)
    hi = np.maximum(lb, ub)
    free = ~fixed
    if np.any(lo[free] == hi[free]):
        raise ValueError("Lower and upper bound cannot be the same for a free parameter.")

    if cfg.sigma is None:
        sigma = np.ones_like(y)
    else:
        sigma = np.asarray(cfg.sigma, dtype=np.float64)
        if sigma.shape != y.shape:
            raise ValueError(f"sigma must have the shape of y ({y.shape} != {sigma.shape}).")

    good = np.isfinite(sigma) & (sigma != 0) & np.isfinite(y)
    if not np.any(good):
        raise ValueError("No data point with finite y and non-zero, finite sigma.")
    var = sigma[good] ** 2
    weight = float(np.mean(np.abs(sigma[good]))) / np.abs(sigma[good])
    y_good = y[good]
    n_points = int(np.sum(good))

    def full_params(beta: np.ndarray) -> np.ndarray:
        b = p0.copy()
        b[free] = beta
        return b

    def model_good(b: np.ndarray) -> np.ndarray:
        f = np.broadcast_to(np.asarray(model(b, x), dtype=np.float64), y.shape)
        return f[good]

    if not np.any(free):
        resid = model_good(p0) - y_good
        return FitResult(
            params=p0.copy(),
            errors=np.zeros(n),
            ci=np.vstack([p0, p0]),
            reduced_chi2=_reduced_chi2(resid, var, n_points),
            message="all parameters fixed",
        )

    def residual(beta: np.ndarray) -> np.ndarray:
        return (model_good(full_params(beta)) - y_good) * weight

    beta0 = np.clip(p0[free], lo[free], hi[free])
    sol = optimize.least_squares(residual, beta0, bounds=(lo[free], hi[free]), ftol=cfg.ftol)

    k = int(np.sum(free))
    dof = n_points - k
    J = np.atleast_2d(sol.jac)
    if dof > 0:
        mse = float(np.sum(sol.fun**2) / dof)
        cov = mse * np.linalg.pinv(J.T @ J)
        se = np.sqrt(np.clip(np.diag(cov), 0.0, None))
        t_one = float(stats.t.ppf(0.5 + ONE_SIGMA_LEVEL / 2.0, dof))
        t_ci = float(stats.t.ppf(0.5 + float(cfg.confidence) / 2.0, dof))
    else:
        se = np.full(k, np.nan)
        t_one = t_ci = float("nan")

    params = full_params(sol.x)
    errors = np.zeros(n)
    errors[free] = t_one * se
    ci = np.vstack([params, params])
    ci[0, free] = sol.x - t_ci * se
    ci[1, free] = sol.x + t_ci * se

    return FitResult(
        params=params,
        errors=errors,
        ci=ci,
        reduced_chi2=_reduced_chi2(model_good(params) - y_good, var, dof),
        success=bool(sol.success),
        message=str(sol.message),
    )
