"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from strikesim.schemas import SimulationInputs


def make_inputs_dict(
    s0=100.0,
    t=1.0,
    dt=0.25,
    mu=0.0,
    kappa=2.0,
    theta=0.04,
    xi=0.3,
    rho=-0.5,
    lam=0.1,
    mu_j=0.0,
    sigma_j=0.02,
    p=((0.0, 0.05), (0.10, 0.0)),
    pi0=(0.7, 0.3),
):
    heston = {"kappa": kappa, "theta": theta, "xi": xi, "rho": rho}
    return {
        "s0": s0,
        "t": t,
        "dt": dt,
        "regimes": {
            "BULL": {"mu": mu, "heston": dict(heston)},
            "BEAR": {"mu": -mu, "heston": dict(heston)},
        },
        "hmm": {"p": [list(row) for row in p], "pi0": list(pi0)},
        "jumps": {"lambda": lam, "mu_j": mu_j, "sigma_j": sigma_j, "kind": "merton"},
    }


@pytest.fixture
def inputs_dict():
    """Hourly-scale inputs with jumps and a regime chain."""
    return make_inputs_dict()


@pytest.fixture
def inputs(inputs_dict):
    return SimulationInputs.parse(inputs_dict)


@pytest.fixture
def symmetric_inputs():
    """Single step, near-zero vol-of-vol, no jumps, zero drift."""
    return SimulationInputs.parse(make_inputs_dict(
        s0=100.0, t=1.0, dt=1.0, mu=0.0, theta=1e-4, xi=1e-6, rho=0.0, lam=0.0,
    ))


@pytest.fixture
def rng():
    return np.random.default_rng(12345)
