"""Terminal-price sampler composing regime, variance and price steps."""

import logging

import numpy as np

from . import select_regime_params
from .heston import advance_variance
from .merton import advance_price
from .regime import EXACT, advance_regime, draw_initial_regime
from .streams import PathStream

logger = logging.getLogger(__name__)


def simulate_terminal_prices(
    inputs,
    n_paths: int,
    rng: np.random.Generator,
    regime_discretization: str = EXACT,
) -> np.ndarray:
    """Simulate ``n_paths`` independent paths and return their terminal prices.

    Each path starts at ``s0`` with variance equal to the Bull regime's
    long-run ``theta`` and a regime drawn from ``pi0``. Every step advances the
    regime, then the variance under the new regime's Heston parameters, then
    the price under the new regime's drift plus the shared jump parameters.

    Args:
        inputs: SimulationInputs.
        n_paths: Number of paths in this block.
        rng: Random generator, consumed in a fixed order per step, or a
            PathStream positioned at the start of this window of its chunk.
        regime_discretization: ``"exact"`` or ``"linear"``.
    """
    dt = inputs.dt
    n_steps = inputs.n_steps

    s = np.full(n_paths, inputs.s0, dtype=float)
    v = np.full(n_paths, inputs.regimes.BULL.heston.theta, dtype=float)
    stepped = isinstance(rng, PathStream)
    if stepped:
        rng.begin()
    regime = draw_initial_regime(rng, inputs.hmm, n_paths)

    for _ in range(n_steps):
        if stepped:
            rng.next_step()
        regime = advance_regime(rng, regime, inputs.hmm, dt, regime_discretization)
        params = select_regime_params(inputs.regimes, regime)
        v = advance_variance(rng, v, params, dt)
        s, _ = advance_price(rng, s, v, params.mu, params, inputs.jumps, dt)

    logger.debug("Simulated %d paths over %d steps", n_paths, n_steps)
    return s
