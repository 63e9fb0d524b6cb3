"""Pydantic request/response schemas for the pricing API."""

from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

from strikesim.edge import EdgeReport, MarketQuotes
from strikesim.sensitivity import SensitivityParams

T = TypeVar("T")


# --- Base schemas ---


class Meta(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    cached: bool = False


class ApiResponse(BaseModel, Generic[T]):
    data: T
    meta: Meta = Field(default_factory=Meta)


class ErrorResponse(BaseModel):
    error: dict[str, Any] = Field(
        description="Error details with code and message"
    )


# --- Simulation schemas ---


class SimulationRequest(BaseModel):
    inputs: dict[str, Any] = Field(description="SimulationInputs wire payload")
    target: dict[str, Any] = Field(description="Target wire payload {kind, K?, L?, U?}")
    paths: int | None = Field(None, ge=1, description="Number of paths (default from settings)")
    seed: int | None = Field(None, ge=0, description="Seed for a reproducible (cacheable) run")
    sensitivity: SensitivityParams | None = None
    track_convergence: bool = False
    include_distribution: bool = False
    quotes: MarketQuotes | None = Field(None, description="Market quotes for edge calculation")


class BatchRequest(SimulationRequest):
    batch_size: int | None = Field(None, ge=1, description="Paths per batch")


class PricedResult(BaseModel):
    """SimulationResult wire payload plus an optional edge report."""
    result: dict[str, Any]
    edge: EdgeReport | None = None


# --- System schemas ---


class HealthResponse(BaseModel):
    status: str
    version: str
    cache_type: str
    cache_size: int | None = None
    cache_hit_rate: float | None = None
