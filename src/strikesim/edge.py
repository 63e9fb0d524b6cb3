"""Expected value of binary contracts priced against a fair probability.

Contracts pay 100 cents on YES. Buying happens at the ask, selling at the
bid; an action is only evaluated when its quote is present.
"""

from enum import Enum

from pydantic import BaseModel, Field


class TradeAction(str, Enum):
    BUY_YES = "BUY_YES"
    SELL_YES = "SELL_YES"
    BUY_NO = "BUY_NO"
    SELL_NO = "SELL_NO"
    NO_EDGE = "NO_EDGE"


class MarketQuotes(BaseModel):
    yes_bid: float | None = Field(None, ge=0, le=100)
    yes_ask: float | None = Field(None, ge=0, le=100)
    no_bid: float | None = Field(None, ge=0, le=100)
    no_ask: float | None = Field(None, ge=0, le=100)


class EdgeReport(BaseModel):
    edges: dict[TradeAction, float]
    recommendation: TradeAction


def expected_value(probability: float, action: TradeAction, price: float) -> float:
    """Expected profit in cents of taking ``action`` at ``price``."""
    if action == TradeAction.BUY_YES:
        return 100.0 * probability - price
    if action == TradeAction.SELL_YES:
        return price - 100.0 * (1.0 - probability)
    if action == TradeAction.BUY_NO:
        return 100.0 * (1.0 - probability) - price
    if action == TradeAction.SELL_NO:
        return price - 100.0 * probability
    raise ValueError(f"No expected value for action {action!r}")


def compute_edges(probability: float, quotes: MarketQuotes) -> dict[TradeAction, float]:
    quote_for = {
        TradeAction.BUY_YES: quotes.yes_ask,
        TradeAction.SELL_YES: quotes.yes_bid,
        TradeAction.BUY_NO: quotes.no_ask,
        TradeAction.SELL_NO: quotes.no_bid,
    }
    return {
        action: expected_value(probability, action, price)
        for action, price in quote_for.items()
        if price is not None
    }


def recommend(edges: dict[TradeAction, float], threshold: float = 2.0) -> TradeAction:
    """Best action whose edge clears ``threshold`` cents, else NO_EDGE."""
    best = max(edges.items(), key=lambda kv: kv[1], default=None)
    if best is None or best[1] < threshold:
        return TradeAction.NO_EDGE
    return best[0]


def evaluate(probability: float, quotes: MarketQuotes, threshold: float = 2.0) -> EdgeReport:
    edges = compute_edges(probability, quotes)
    return EdgeReport(edges=edges, recommendation=recommend(edges, threshold))
