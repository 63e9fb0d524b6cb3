"""Scenario multipliers applied to simulation inputs.

Lets a caller stress the calibrated parameters without rebuilding them:
  - volatility_multiplier scales volatility, so both regimes' long-run
    variance θ is scaled by its square
  - jump_intensity_multiplier scales λ
  - jump_size_multiplier scales σ_j
"""

import logging

from pydantic import BaseModel, ConfigDict, Field

from strikesim.schemas import SimulationInputs

logger = logging.getLogger(__name__)


class SensitivityParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    volatility_multiplier: float = Field(1.0, gt=0)
    jump_intensity_multiplier: float = Field(1.0, gt=0)
    jump_size_multiplier: float = Field(1.0, gt=0)

    @property
    def is_identity(self) -> bool:
        return (
            self.volatility_multiplier == 1.0
            and self.jump_intensity_multiplier == 1.0
            and self.jump_size_multiplier == 1.0
        )


def apply_sensitivity(inputs: SimulationInputs, params: SensitivityParams) -> SimulationInputs:
    """Return a new inputs object with the multipliers applied."""
    if params.is_identity:
        return inputs

    var_mult = params.volatility_multiplier**2
    regimes = inputs.regimes.model_copy(update={
        name: regime.model_copy(update={
            "heston": regime.heston.model_copy(
                update={"theta": regime.heston.theta * var_mult}
            ),
        })
        for name, regime in (("BULL", inputs.regimes.BULL), ("BEAR", inputs.regimes.BEAR))
    })
    jumps = inputs.jumps.model_copy(update={
        "lam": inputs.jumps.lam * params.jump_intensity_multiplier,
        "sigma_j": inputs.jumps.sigma_j * params.jump_size_multiplier,
    })

    logger.debug(
        "Applied sensitivity: vol x%.3f, jump intensity x%.3f, jump size x%.3f",
        params.volatility_multiplier,
        params.jump_intensity_multiplier,
        params.jump_size_multiplier,
    )
    return inputs.model_copy(update={"regimes": regimes, "jumps": jumps})
