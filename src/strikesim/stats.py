"""Binomial-proportion statistics for Monte Carlo hit frequencies."""

import math

Z_SCORES = {
    0.95: 1.96,
    0.99: 2.576,
}
DEFAULT_Z = 1.96

PROGRESS_REPORTS = 20  # one report per 5% of total


def z_score(confidence: float) -> float:
    """Two-sided z for the supported confidence levels; 1.96 otherwise."""
    for level, z in Z_SCORES.items():
        if math.isclose(confidence, level):
            return z
    return DEFAULT_Z


def binomial_stderr(p: float, n: int) -> float:
    if n <= 0:
        return 0.0
    return math.sqrt(max(p * (1.0 - p), 0.0) / n)


def wilson_interval(hits: int, n: int, confidence: float = 0.95) -> tuple[float, float]:
    """Wilson score interval for ``hits`` successes out of ``n`` trials.

    Returns ``(0.0, 1.0)`` when ``n == 0``. The interval is clamped to [0, 1]
    and always brackets the point estimate ``hits / n``.
    """
    if n == 0:
        return 0.0, 1.0

    p = hits / n
    z = z_score(confidence)
    z_sq = z * z

    denominator = 1.0 + z_sq / n
    center = (p + z_sq / (2.0 * n)) / denominator
    margin = z * math.sqrt(p * (1.0 - p) / n + z_sq / (4.0 * n * n)) / denominator

    lo = max(0.0, center - margin)
    hi = min(1.0, center + margin)

    # Rounding can leave the bounds a few ulps on the wrong side of p at the
    # extremes (hits == 0 or hits == n).
    return min(lo, p), max(hi, p)


class ProgressReporter:
    """Throttled progress signal for long path loops.

    ``update`` returns the percent complete only when progress has advanced by
    at least 5% of ``total`` since the last report, or when complete.
    """

    def __init__(self, total: int):
        self.total = total
        self.current = 0
        self.last_reported = 0
        self._threshold = total // PROGRESS_REPORTS

    def update(self, current: int) -> float | None:
        self.current = current
        if self.total <= 0:
            return None
        if current - self.last_reported >= self._threshold or current == self.total:
            self.last_reported = current
            return current / self.total * 100.0
        return None
