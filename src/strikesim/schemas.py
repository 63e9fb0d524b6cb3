"""Value objects for simulation inputs, targets and results.

Field names follow the wire format consumed by the pricing UI, so the models
double as the JSON (de)serialization boundary.
"""

import json
import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from strikesim.errors import ParseError, SerializationError
from strikesim.sim_models import Regime

PI0_TOLERANCE = 1e-9


class _ValueObject(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        allow_inf_nan=False,
    )


# --- Inputs ---


class HestonParams(_ValueObject):
    kappa: float = Field(gt=0, description="Mean-reversion speed")
    theta: float = Field(gt=0, description="Long-run variance")
    xi: float = Field(ge=0, description="Volatility of variance")
    rho: float = Field(ge=-1, le=1, description="Price/variance shock correlation")


class RegimeParams(_ValueObject):
    mu: float = Field(description="Drift per unit time")
    heston: HestonParams


class RegimeSet(_ValueObject):
    BULL: RegimeParams
    BEAR: RegimeParams

    def for_regime(self, regime: Regime) -> RegimeParams:
        return self.BULL if regime == Regime.BULL else self.BEAR


class TransitionModel(_ValueObject):
    """Two-state continuous-time Markov chain.

    ``p[i][j]`` is the instantaneous rate of moving from state i to state j
    (0 = Bull, 1 = Bear); only the off-diagonal entries are used.
    """

    p: tuple[tuple[float, float], tuple[float, float]]
    pi0: tuple[float, float]

    @field_validator("p")
    @classmethod
    def _check_rates(cls, v):
        if v[0][1] < 0 or v[1][0] < 0:
            raise ValueError("off-diagonal transition rates must be nonnegative")
        return v

    @field_validator("pi0")
    @classmethod
    def _check_initial(cls, v):
        if v[0] < 0 or v[1] < 0:
            raise ValueError("initial probabilities must be nonnegative")
        if abs(v[0] + v[1] - 1.0) > PI0_TOLERANCE:
            raise ValueError("initial probabilities must sum to 1")
        return v

    def rate_out_of(self, regime: Regime) -> float:
        return self.p[0][1] if regime == Regime.BULL else self.p[1][0]


class JumpParams(_ValueObject):
    lam: float = Field(0.0, ge=0, alias="lambda", description="Jumps per unit time")
    mu_j: float = Field(0.0, description="Mean log jump size")
    sigma_j: float = Field(0.0, ge=0, description="Std-dev of log jump size")
    kind: str = Field("merton", description="Jump family label; sizes are always log-normal")


class SimulationInputs(_ValueObject):
    s0: float = Field(gt=0, description="Starting price")
    t: float = Field(gt=0, description="Horizon in hours")
    dt: float = Field(gt=0, description="Step size in hours")
    regimes: RegimeSet
    hmm: TransitionModel
    jumps: JumpParams = Field(default_factory=JumpParams)

    @model_validator(mode="after")
    def _check_step(self):
        if self.dt > self.t:
            raise ValueError("dt must not exceed t")
        return self

    @property
    def n_steps(self) -> int:
        return math.ceil(self.t / self.dt)

    @classmethod
    def parse(cls, data: Any) -> "SimulationInputs":
        """Build inputs from a dict or JSON text, raising ParseError."""
        if isinstance(data, cls):
            return data
        try:
            if isinstance(data, (str, bytes)):
                return cls.model_validate_json(data)
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ParseError(f"Failed to parse inputs: {e}") from e


# --- Targets ---


class TargetKind(str, Enum):
    ABOVE = "above"
    RANGE = "range"


class Target(BaseModel):
    """Hit condition on terminal price.

    ``kind`` stays a free string here; unknown kinds and missing bounds are
    rejected by the engine per call so they surface as InvalidTargetKind and
    ValidationError rather than as parse failures.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", allow_inf_nan=False)

    kind: str
    K: float | None = Field(None, description="Strike for 'above'")
    L: float | None = Field(None, description="Lower bound for 'range'")
    U: float | None = Field(None, description="Upper bound for 'range'")

    @classmethod
    def parse(cls, data: Any) -> "Target":
        if isinstance(data, cls):
            return data
        try:
            if isinstance(data, (str, bytes)):
                return cls.model_validate_json(data)
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ParseError(f"Failed to parse target: {e}") from e

    @classmethod
    def above(cls, strike: float) -> "Target":
        return cls(kind=TargetKind.ABOVE.value, K=strike)

    @classmethod
    def range(cls, lower: float, upper: float) -> "Target":
        return cls(kind=TargetKind.RANGE.value, L=lower, U=upper)


# --- Results ---


class HistogramBin(BaseModel):
    price: float = Field(description="Bin centre")
    probability: float = Field(description="Probability mass in this bin")


class Distribution(BaseModel):
    min: float
    max: float
    mean: float
    stddev: float
    histogram: list[HistogramBin]


class Diagnostics(BaseModel):
    stderr: float = Field(description="Binomial standard error of p")
    n: int = Field(description="Number of simulated paths")
    convergence: list[float] | None = Field(
        None, description="Running estimate of p after each path block"
    )


class SimulationResult(BaseModel):
    target: Target
    p: float = Field(ge=0, le=1, description="Estimated hit probability")
    ci: tuple[float, float] = Field(description="Wilson score interval [lo, hi]")
    fair: float = Field(description="p on a 0-100 scale")
    diagnostics: Diagnostics
    distribution: Distribution | None = None


class IntermediateResult(BaseModel):
    batch: int = Field(description="1-based batch index")
    total_paths: int = Field(description="Cumulative paths simulated so far")
    p: float
    ci: tuple[float, float]
    fair: float


def encode_result(result: BaseModel) -> str:
    """Encode a result model as strict JSON (no NaN/Infinity)."""
    try:
        payload = result.model_dump(mode="python", by_alias=True, exclude_none=True)
        return json.dumps(payload, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to serialize result: {e}") from e
