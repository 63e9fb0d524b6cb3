"""Monte Carlo engine: hit probability of a target at a fixed horizon.

The engine owns the random generator exclusively and draws one seed per chunk
from it on every call. A call over ``n`` paths splits them into chunks of
``block_size`` paths, each drawing from its own PathStream, so a path's price
depends only on its position. A batched run simulates each chunk in windows
that stop at batch boundaries and still reproduces the full run's prices
exactly; batching only changes how often results are reported.
"""

import logging
import math
from typing import Any, Iterator

import numpy as np

from strikesim.errors import InvalidTargetKind, ValidationError
from strikesim.schemas import (
    Diagnostics,
    Distribution,
    HistogramBin,
    IntermediateResult,
    SimulationInputs,
    SimulationResult,
    Target,
    TargetKind,
)
from strikesim.sim_models.paths import simulate_terminal_prices
from strikesim.sim_models.regime import DISCRETIZATIONS, EXACT
from strikesim.sim_models.streams import PathStream
from strikesim.stats import ProgressReporter, binomial_stderr, wilson_interval

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_BLOCK_SIZE = 4096
DEFAULT_CONFIDENCE = 0.95
HISTOGRAM_BINS = 50
FAIR_SCALE = 100.0
SEED_BOUND = np.iinfo(np.int64).max


# ---------------------------------------------------------------------------
# Target classification
# ---------------------------------------------------------------------------


def validate_target(target: Target) -> TargetKind:
    """Check that ``target`` is a known kind carrying its required bounds."""
    try:
        kind = TargetKind(target.kind)
    except ValueError:
        raise InvalidTargetKind(f"Invalid target kind: {target.kind!r}") from None

    if kind == TargetKind.ABOVE:
        if target.K is None:
            raise ValidationError("Strike price K required for 'above' target")
    elif kind == TargetKind.RANGE:
        if target.L is None or target.U is None:
            raise ValidationError("Range bounds L and U required for 'range' target")
        if target.L > target.U:
            raise ValidationError(f"Range lower bound {target.L} exceeds upper bound {target.U}")
    return kind


def classify_hits(prices: np.ndarray, target: Target) -> np.ndarray:
    """Boolean hit mask: ``price > K`` for above, ``L <= price <= U`` for range."""
    kind = validate_target(target)
    prices = np.asarray(prices, dtype=float)
    if kind == TargetKind.ABOVE:
        return prices > target.K
    return (prices >= target.L) & (prices <= target.U)


def _summarize_distribution(prices: np.ndarray, bins: int = HISTOGRAM_BINS) -> Distribution:
    """Terminal-price summary with a probability histogram."""
    counts, edges = np.histogram(prices, bins=bins)
    centres = 0.5 * (edges[:-1] + edges[1:])
    n = len(prices)
    return Distribution(
        min=float(np.min(prices)),
        max=float(np.max(prices)),
        mean=float(np.mean(prices)),
        stddev=float(np.std(prices, ddof=1)) if n > 1 else 0.0,
        histogram=[
            HistogramBin(price=float(c), probability=float(k) / n)
            for c, k in zip(centres, counts)
        ],
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class MonteCarloEngine:
    """Hit-probability estimator for one immutable set of inputs.

    Args:
        inputs: Parsed simulation inputs (or raw dict / JSON text).
        rng: Generator to own. Takes precedence over ``seed``.
        seed: Seed for a fresh generator; entropy-seeded when omitted.
        block_size: Paths per chunk; each chunk draws from its own stream.
        confidence: Confidence level for the Wilson interval.
        regime_discretization: ``"exact"`` (1 − e^(−rate·dt)) or ``"linear"``
            (rate·dt, unclamped).
    """

    def __init__(
        self,
        inputs: SimulationInputs | dict[str, Any] | str,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
        block_size: int = DEFAULT_BLOCK_SIZE,
        confidence: float = DEFAULT_CONFIDENCE,
        regime_discretization: str = EXACT,
    ):
        if block_size < 1:
            raise ValueError("block_size must be >= 1")
        if regime_discretization not in DISCRETIZATIONS:
            raise ValueError(f"Unknown regime discretization: {regime_discretization!r}")

        self.inputs = SimulationInputs.parse(inputs)
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.block_size = block_size
        self.confidence = confidence
        self.regime_discretization = regime_discretization

    @classmethod
    def from_json(cls, text: str, **kwargs) -> "MonteCarloEngine":
        return cls(SimulationInputs.parse(text), **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs) -> "MonteCarloEngine":
        return cls(SimulationInputs.parse(data), **kwargs)

    # --- Full run ---------------------------------------------------------

    def run(
        self,
        target: Target | dict[str, Any] | str,
        n_paths: int,
        track_convergence: bool = False,
        include_distribution: bool = False,
    ) -> SimulationResult:
        """Simulate ``n_paths`` paths and estimate P(hit) with a Wilson CI.

        Raises:
            ParseError: ``target`` is malformed.
            ValidationError: missing bounds or ``n_paths < 1``.
            InvalidTargetKind: unknown ``target.kind``.
        """
        target = Target.parse(target)
        validate_target(target)
        _check_count("n_paths", n_paths)

        logger.info("Starting simulation with %d paths for target: %s", n_paths, target.kind)

        hits = 0
        done = 0
        convergence: list[float] | None = [] if track_convergence else None
        collected: list[np.ndarray] = []
        progress = ProgressReporter(n_paths)

        for prices in self._iter_segments(n_paths):
            hits += int(np.count_nonzero(classify_hits(prices, target)))
            done += len(prices)
            if convergence is not None:
                convergence.append(hits / done)
            if include_distribution:
                collected.append(prices)

            percent = progress.update(done)
            if percent is not None:
                logger.debug("Progress: %.0f%%", percent)

        p = hits / n_paths
        ci = wilson_interval(hits, n_paths, self.confidence)

        logger.info(
            "Simulation complete: %d/%d hits, p=%.4f, ci=[%.4f, %.4f]",
            hits, n_paths, p, ci[0], ci[1],
        )

        return SimulationResult(
            target=target,
            p=p,
            ci=ci,
            fair=p * FAIR_SCALE,
            diagnostics=Diagnostics(
                stderr=binomial_stderr(p, n_paths),
                n=n_paths,
                convergence=convergence,
            ),
            distribution=(
                _summarize_distribution(np.concatenate(collected))
                if include_distribution else None
            ),
        )

    # --- Batched run ------------------------------------------------------

    def run_batched(
        self,
        target: Target | dict[str, Any] | str,
        n_paths: int,
        batch_size: int,
    ) -> Iterator[IntermediateResult]:
        """Validate eagerly, then lazily yield one cumulative result per batch.

        ``n_paths`` is split into ``ceil(n_paths / batch_size)`` batches, the
        last one holding the remainder. Nothing is simulated until the first
        result is requested, and stopping iteration abandons the remaining
        batches.
        """
        target = Target.parse(target)
        validate_target(target)
        _check_count("n_paths", n_paths)
        _check_count("batch_size", batch_size)
        return self._batches(target, n_paths, batch_size)

    def _batches(
        self, target: Target, n_paths: int, batch_size: int
    ) -> Iterator[IntermediateResult]:
        num_batches = math.ceil(n_paths / batch_size)
        logger.info(
            "Starting batched simulation: %d paths in %d batches for target: %s",
            n_paths, num_batches, target.kind,
        )

        segments = self._iter_segments(n_paths, batch_size)
        total_hits = 0
        total_paths = 0

        for batch in range(num_batches):
            batch_end = min((batch + 1) * batch_size, n_paths)

            # Segments never straddle a batch boundary
            while total_paths < batch_end:
                prices = next(segments)
                total_hits += int(np.count_nonzero(classify_hits(prices, target)))
                total_paths += len(prices)

            p = total_hits / total_paths
            ci = wilson_interval(total_hits, total_paths, self.confidence)
            logger.debug(
                "Batch %d/%d: %d paths, p=%.4f", batch + 1, num_batches, total_paths, p
            )

            yield IntermediateResult(
                batch=batch + 1,
                total_paths=total_paths,
                p=p,
                ci=ci,
                fair=p * FAIR_SCALE,
            )

    # --- Internals --------------------------------------------------------

    def _iter_segments(
        self, n_paths: int, batch_size: int | None = None
    ) -> Iterator[np.ndarray]:
        """Yield terminal prices for consecutive segments covering ``n_paths``.

        Chunk k holds paths ``[k * block_size, (k + 1) * block_size)`` and
        draws from its own PathStream. Segments end at every chunk boundary
        and, when ``batch_size`` is given, at every batch boundary, so nothing
        past the current batch is simulated before it is requested.
        """
        n_chunks = math.ceil(n_paths / self.block_size)
        seeds = self.rng.integers(0, SEED_BOUND, size=n_chunks)

        start = 0
        for k, seed in enumerate(seeds):
            chunk_end = min((k + 1) * self.block_size, n_paths)
            stream = PathStream(seed)
            while start < chunk_end:
                stop = chunk_end
                if batch_size is not None:
                    stop = min(stop, (start // batch_size + 1) * batch_size)
                yield simulate_terminal_prices(
                    self.inputs, stop - start, stream, self.regime_discretization
                )
                start = stop


def _check_count(name: str, value: int) -> None:
    if not isinstance(value, (int, np.integer)) or isinstance(value, bool) or value < 1:
        raise ValidationError(f"{name} must be a positive integer, got {value!r}")
