"""Two-state (Bull/Bear) regime chain advanced one step at a time."""

import numpy as np

from . import Regime

EXACT = "exact"
LINEAR = "linear"
DISCRETIZATIONS = (EXACT, LINEAR)


def transition_probability(rate, dt: float, method: str = EXACT):
    """Probability of leaving the current state within one step.

    ``linear`` is the first-order ``rate·dt`` and is not clamped, so it can
    exceed 1 for large steps (the chain then always switches). ``exact`` is
    ``1 − exp(−rate·dt)``, which stays in [0, 1).
    """
    if method == EXACT:
        return -np.expm1(-np.asarray(rate, dtype=float) * dt)
    if method == LINEAR:
        return np.asarray(rate, dtype=float) * dt
    raise ValueError(f"Unknown regime discretization: {method!r}")


def draw_initial_regime(rng: np.random.Generator, hmm, n_paths: int) -> np.ndarray:
    """Draw each path's starting regime from ``hmm.pi0``."""
    u = rng.random(n_paths)
    return np.where(u < hmm.pi0[0], Regime.BULL, Regime.BEAR).astype(np.int8)


def advance_regime(
    rng: np.random.Generator,
    current: np.ndarray,
    hmm,
    dt: float,
    method: str = EXACT,
) -> np.ndarray:
    """Advance every path's regime by one step.

    One uniform is drawn per path; a path flips to the other regime when the
    uniform falls below its transition probability.

    Args:
        rng: Random generator (consumed: one uniform per path).
        current: Integer array of Regime values.
        hmm: Transition model with off-diagonal rates ``p[0][1]`` (Bull→Bear)
            and ``p[1][0]`` (Bear→Bull).
        dt: Step size.
        method: ``"exact"`` or ``"linear"``, see transition_probability.
    """
    current = np.asarray(current, dtype=np.int8)
    u = rng.random(current.shape)
    rates = np.where(current == Regime.BULL, hmm.p[0][1], hmm.p[1][0])
    flip = u < transition_probability(rates, dt, method)
    return np.where(flip, 1 - current, current).astype(np.int8)
