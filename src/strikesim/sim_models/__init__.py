"""Path integrators for the regime-switching stochastic-volatility jump model.

Every integrator advances a whole block of independent paths at once: state
is held in 1-D numpy arrays indexed by path, and parameters may be scalars or
per-path arrays (paths sit in different regimes).

- regime: two-state Markov chain (Bull/Bear)
- heston: Andersen quadratic-exponential variance step
- merton: correlated diffusion + compound-Poisson log-normal jumps
- paths: composes the three into terminal prices
"""

from enum import IntEnum
from typing import Any, NamedTuple

import numpy as np


class Regime(IntEnum):
    BULL = 0
    BEAR = 1


class RegimeArrays(NamedTuple):
    """Per-path drift and Heston parameters for the active regime."""
    mu: np.ndarray
    kappa: np.ndarray
    theta: np.ndarray
    xi: np.ndarray
    rho: np.ndarray


def select_regime_params(regimes: Any, regime: np.ndarray) -> RegimeArrays:
    """Gather each path's parameters from its current regime.

    Args:
        regimes: Object with ``BULL`` and ``BEAR`` attributes, each carrying
            ``mu`` and ``heston`` (``kappa``, ``theta``, ``xi``, ``rho``).
        regime: Integer array of Regime values, one per path.
    """
    bull, bear = regimes.BULL, regimes.BEAR
    is_bull = regime == Regime.BULL

    def pick(a: float, b: float) -> np.ndarray:
        return np.where(is_bull, a, b)

    return RegimeArrays(
        mu=pick(bull.mu, bear.mu),
        kappa=pick(bull.heston.kappa, bear.heston.kappa),
        theta=pick(bull.heston.theta, bear.heston.theta),
        xi=pick(bull.heston.xi, bear.heston.xi),
        rho=pick(bull.heston.rho, bear.heston.rho),
    )


__all__ = ["Regime", "RegimeArrays", "select_regime_params"]
