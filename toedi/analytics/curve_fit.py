#!/usr/bin/env python3
"""
Load curve fitting

The training load weight of a heart rate follows an exponential curve that is
anchored on three points derived from the user's thresholds:

    (aerobic, 0.71), (anaerobic, 2.61), ((anaerobic + max) / 2, 4.16)

The fitted model is ``y = c * (exp(tau * x) + 1)``. It is separable: for a
fixed ``tau`` the best ``c`` is a linear least squares solution, so only
``tau`` is searched, with Levenberg-Marquardt on the projected residuals
(variable projection), starting from ``tau = 0.01``.
"""
from typing import Tuple

import numpy as np
from scipy.optimize import least_squares
import structlog

from ..exceptions import fit_error

logger = structlog.get_logger(__name__)

ANCHOR_LOADS = (0.71, 2.61, 4.16)
INITIAL_TAU = 0.01
# Residual returned when exp() overflows so the solver rejects the step
_OVERFLOW_RESIDUAL = 1e6


def anchor_points(aerobic: float, anaerobic: float, max_heartrate: float) -> Tuple[np.ndarray, np.ndarray]:
    x = np.array([aerobic, anaerobic, (anaerobic + max_heartrate) / 2.0], dtype=float)
    y = np.array(ANCHOR_LOADS, dtype=float)
    return x, y


def _basis(x: np.ndarray, tau: float) -> np.ndarray:
    with np.errstate(over='ignore', invalid='ignore'):
        return np.exp(tau * x) + 1.0


def _linear_coefficient(phi: np.ndarray, y: np.ndarray) -> float:
    return float(phi @ y / (phi @ phi))


def _projected_residuals(params: np.ndarray, x: np.ndarray, y: np.ndarray) -> np.ndarray:
    phi = _basis(x, params[0])
    if not np.all(np.isfinite(phi)):
        return np.full_like(y, _OVERFLOW_RESIDUAL)
    c = _linear_coefficient(phi, y)
    return c * phi - y


def curve_fit(aerobic: float, anaerobic: float, max_heartrate: float) -> Tuple[float, float]:
    """
    Fit (tau, c) for a user's heart rate thresholds.

    Args:
        aerobic: Aerobic threshold in bpm
        anaerobic: Anaerobic threshold in bpm
        max_heartrate: Maximum heart rate in bpm

    Returns:
        Tuple of (tau, c)

    Raises:
        FitError: a threshold is not a positive number or the solver did not converge
    """
    if not all(np.isfinite(v) and v > 0 for v in (aerobic, anaerobic, max_heartrate)):
        raise fit_error(
            "heart rate thresholds must be positive",
            aerobic=aerobic, anaerobic=anaerobic, max_heartrate=max_heartrate,
        )

    x, y = anchor_points(aerobic, anaerobic, max_heartrate)
    try:
        result = least_squares(
            _projected_residuals,
            x0=np.array([INITIAL_TAU]),
            args=(x, y),
            method='lm',
            xtol=1e-14,
            ftol=1e-14,
            gtol=1e-14,
            max_nfev=10_000,
        )
    except (ValueError, FloatingPointError) as e:
        raise fit_error(f"curve fit failed: {e}", aerobic=aerobic, anaerobic=anaerobic,
                        max_heartrate=max_heartrate) from e

    tau = float(result.x[0])
    phi = _basis(x, tau)
    if not result.success or not np.isfinite(tau) or not np.all(np.isfinite(phi)):
        raise fit_error(
            f"curve fit did not converge: {result.message}",
            aerobic=aerobic, anaerobic=anaerobic, max_heartrate=max_heartrate,
        )
    c = _linear_coefficient(phi, y)

    logger.debug("Fitted load curve", tau=tau, c=c, cost=float(result.cost), nfev=int(result.nfev))
    return tau, c
