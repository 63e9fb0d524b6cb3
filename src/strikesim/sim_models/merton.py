"""Log-price step: correlated diffusion plus Merton compound-Poisson jumps.

  d ln S = (μ − ½V − λk)dt + √V·dW₁ + ln J·dN
  N ~ Poisson(λ·dt), ln J ~ Normal(μ_j, σ_j), k = E[J − 1]
"""

import numpy as np


def correlated_shocks(z1: np.ndarray, z2: np.ndarray, rho) -> tuple[np.ndarray, np.ndarray]:
    """Cholesky-correlate two independent standard normals.

    ``w1`` drives the price; ``w2`` is its ρ-correlated variance counterpart.
    """
    w1 = z1
    w2 = rho * z1 + np.sqrt(1.0 - rho * rho) * z2
    return w1, w2


def jump_compensator(jumps) -> float:
    """λ·(exp(μ_j + ½σ_j²) − 1), the drift correction for E[J − 1]."""
    k = np.exp(jumps.mu_j + 0.5 * jumps.sigma_j**2) - 1.0
    return float(jumps.lam * k)


def draw_jump_multiplier(
    rng: np.random.Generator,
    jumps,
    dt: float,
    size: int,
) -> tuple[np.ndarray, np.ndarray]:
    """Draw the multiplicative jump factor for one step on every path.

    The sum of N normal log jump sizes is drawn as a single normal,
    N·μ_j + √N·σ_j·Z, so each path takes exactly one Poisson count and one
    standard normal. With ``lam == 0`` nothing is drawn and the multiplier is
    exactly 1.

    Returns:
        (multiplier, jump_occurred) arrays of length ``size``.
    """
    if jumps.lam <= 0.0:
        return np.ones(size), np.zeros(size, dtype=bool)

    counts = rng.poisson(jumps.lam * dt, size)
    z = rng.standard_normal(size)
    occurred = counts > 0
    log_jump = counts * jumps.mu_j + np.sqrt(counts) * jumps.sigma_j * z

    multiplier = np.where(occurred, np.exp(log_jump), 1.0)
    return multiplier, occurred


def advance_price(
    rng: np.random.Generator,
    s_current: np.ndarray,
    v_current: np.ndarray,
    mu,
    params,
    jumps,
    dt: float,
) -> tuple[np.ndarray, np.ndarray]:
    """Advance price by one step for every path.

    Draw order: two standard normals per path, then Poisson counts, then one
    standard normal for the summed log jump size.

    Args:
        rng: Random generator.
        s_current: Current price per path.
        v_current: Variance for this step per path.
        mu: Drift (scalar or per path).
        params: Object with ``rho`` (scalar or per path).
        jumps: Jump parameters shared by all regimes.
        dt: Step size.

    Returns:
        (s_next, jump_occurred) per path.
    """
    s = np.asarray(s_current, dtype=float)
    v = np.asarray(v_current, dtype=float)

    z1 = rng.standard_normal(s.shape)
    z2 = rng.standard_normal(s.shape)
    w1, _ = correlated_shocks(z1, z2, np.asarray(params.rho, dtype=float))

    multiplier, occurred = draw_jump_multiplier(rng, jumps, dt, s.shape[0])

    drift = mu - 0.5 * v - jump_compensator(jumps)
    log_return = drift * dt + np.sqrt(v * dt) * w1
    s_next = s * np.exp(log_return) * multiplier

    return s_next, occurred
