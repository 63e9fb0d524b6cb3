"""Heston variance step via Andersen's quadratic-exponential (QE) scheme.

  dV = κ(θ − V)dt + ξ√V·dW

The step is sampled from an approximation of the scaled non-central
chi-square transition law. Below the critical ratio ψ_c the chi-square is
approximated directly (normal approximation for > 1 degree of freedom,
exponential draw otherwise); above it the moment-matched mixture of a point
mass at zero and an exponential tail is used. The result is floored so the
variance stays strictly positive.
"""

import numpy as np

PSI_CRITICAL = 1.5
VARIANCE_FLOOR = 1e-8


def qe_coefficients(kappa, theta, xi, dt: float):
    """Return ``(c1, c2, c3)``: scale, non-centrality factor, degrees of freedom."""
    decay = np.exp(-kappa * dt)
    xi_sq = xi * xi
    c1 = xi_sq * (1.0 - decay) / (4.0 * kappa)
    c2 = 4.0 * kappa * decay / (xi_sq * (1.0 - decay))
    c3 = 4.0 * kappa * theta / xi_sq
    return c1, c2, c3


def advance_variance(
    rng: np.random.Generator,
    v_current: np.ndarray,
    params,
    dt: float,
) -> np.ndarray:
    """Advance variance by one step for every path.

    Consumes one standard normal and one uniform per path, in that order,
    regardless of which branch each path takes.

    Args:
        rng: Random generator.
        v_current: Current variance per path (> 0).
        params: Object with ``kappa``, ``theta``, ``xi`` (scalars or per-path
            arrays).
        dt: Step size.

    Returns:
        Next variance per path, always >= VARIANCE_FLOOR.
    """
    v = np.asarray(v_current, dtype=float)
    kappa = np.asarray(params.kappa, dtype=float)
    theta = np.asarray(params.theta, dtype=float)
    xi = np.asarray(params.xi, dtype=float)

    z = rng.standard_normal(v.shape)
    u = 1.0 - rng.random(v.shape)  # (0, 1]

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        c1, c2, c3 = qe_coefficients(kappa, theta, xi, dt)
        lam = c2 * v
        psi = lam / c3

        # Low non-centrality: direct chi-square approximation
        chi_sq = np.where(
            c3 > 1.0,
            np.maximum(lam + np.sqrt(2.0 * lam) * z, 0.0),
            -2.0 * np.log(u),
        )
        v_low = chi_sq / (2.0 / c1)

        # High non-centrality: moment matching
        p = (psi - 1.0) / (psi + 1.0)
        beta = (1.0 - p) / (c1 * (1.0 + p))
        v_high = np.where(u <= p, 0.0, np.log(1.0 - p) / beta)

        v_next = np.where(psi <= PSI_CRITICAL, v_low, v_high)

        # ξ = 0 leaves no noise: variance relaxes deterministically to θ
        v_det = theta + (v - theta) * np.exp(-kappa * dt)
        v_next = np.where(xi > 0.0, v_next, v_det)

    v_next = np.where(np.isfinite(v_next), v_next, VARIANCE_FLOOR)
    return np.maximum(v_next, VARIANCE_FLOOR)
