"""Simulation API endpoints."""

import json
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from strikesim.config import Settings
from strikesim.edge import evaluate
from strikesim.engine import MonteCarloEngine
from strikesim.errors import ValidationError
from strikesim.schemas import SimulationInputs, Target, encode_result
from strikesim.sensitivity import apply_sensitivity
from strikesim.web.cache import CacheService, make_cache_key
from strikesim.web.dependencies import get_cache, get_settings
from strikesim.web.schemas import (
    ApiResponse,
    BatchRequest,
    Meta,
    PricedResult,
    SimulationRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/simulate", tags=["simulation"])


def _resolve_seed(body: SimulationRequest, settings: Settings) -> int | None:
    return body.seed if body.seed is not None else settings.simulation_seed


def _prepare(
    body: SimulationRequest, settings: Settings
) -> tuple[MonteCarloEngine, Target, int]:
    """Parse the request into an engine, a target and a path count."""
    inputs = SimulationInputs.parse(body.inputs)
    if body.sensitivity is not None:
        inputs = apply_sensitivity(inputs, body.sensitivity)
    target = Target.parse(body.target)

    paths = body.paths if body.paths is not None else settings.simulation_num_paths
    if paths > settings.simulation_max_paths:
        raise ValidationError(
            f"paths={paths} exceeds the limit of {settings.simulation_max_paths}"
        )

    engine = MonteCarloEngine(
        inputs, seed=_resolve_seed(body, settings), **settings.engine_kwargs()
    )
    return engine, target, paths


@router.post("", response_model=ApiResponse[PricedResult])
async def simulate(
    body: SimulationRequest,
    settings: Settings = Depends(get_settings),
    cache: CacheService = Depends(get_cache),
):
    """Estimate the hit probability of a target with a Wilson confidence interval.

    Seeded runs are reproducible and served from cache when possible.
    """
    seed = _resolve_seed(body, settings)
    cache_key = None
    if seed is not None:
        cache_key = make_cache_key(
            "simulation", {**body.model_dump(mode="json"), "seed": seed}
        )
        cached = await cache.get(cache_key)
        if cached:
            return ApiResponse[PricedResult](data=cached, meta=Meta(cached=True))

    engine, target, paths = _prepare(body, settings)
    result = await run_in_threadpool(
        engine.run,
        target,
        paths,
        track_convergence=body.track_convergence,
        include_distribution=body.include_distribution,
    )

    edge = None
    if body.quotes is not None:
        edge = evaluate(result.p, body.quotes, settings.min_edge_threshold)

    priced = PricedResult(result=json.loads(encode_result(result)), edge=edge)
    if cache_key is not None:
        await cache.set(cache_key, priced.model_dump(mode="json"))
    return ApiResponse[PricedResult](data=priced)


@router.post("/batches")
async def simulate_batches(
    body: BatchRequest,
    settings: Settings = Depends(get_settings),
):
    """Stream cumulative results as NDJSON, one line per completed batch.

    Each batch finishes before its line is written; a client that disconnects
    stops the run before the next batch starts.
    """
    engine, target, paths = _prepare(body, settings)
    batch_size = (
        body.batch_size if body.batch_size is not None else settings.simulation_batch_size
    )
    batches = engine.run_batched(target, paths, batch_size)

    def stream():
        for intermediate in batches:
            yield encode_result(intermediate) + "\n"

    return StreamingResponse(stream(), media_type="application/x-ndjson")
