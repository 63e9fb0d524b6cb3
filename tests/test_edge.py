"""Tests for binary-contract expected value and trade recommendation."""

import pytest

from strikesim.edge import (
    MarketQuotes,
    TradeAction,
    compute_edges,
    evaluate,
    expected_value,
    recommend,
)


class TestExpectedValue:
    @pytest.mark.parametrize("action,price,expected", [
        (TradeAction.BUY_YES, 55.0, 5.0),
        (TradeAction.SELL_YES, 45.0, 5.0),
        (TradeAction.BUY_NO, 35.0, 5.0),
        (TradeAction.SELL_NO, 65.0, 5.0),
    ])
    def test_formulas(self, action, price, expected):
        assert expected_value(0.6, action, price) == pytest.approx(expected)

    def test_fair_price_has_no_edge(self):
        assert expected_value(0.3, TradeAction.BUY_YES, 30.0) == pytest.approx(0.0)

    def test_no_edge_has_no_value(self):
        with pytest.raises(ValueError):
            expected_value(0.5, TradeAction.NO_EDGE, 50.0)


class TestRecommendation:
    def test_only_quoted_actions(self):
        edges = compute_edges(0.6, MarketQuotes(yes_ask=50.0, no_bid=40.0))
        assert set(edges) == {TradeAction.BUY_YES, TradeAction.SELL_NO}
        assert edges[TradeAction.BUY_YES] == pytest.approx(10.0)
        assert edges[TradeAction.SELL_NO] == pytest.approx(-20.0)

    def test_picks_best_above_threshold(self):
        edges = {TradeAction.BUY_YES: 3.0, TradeAction.BUY_NO: 8.0}
        assert recommend(edges, threshold=2.0) == TradeAction.BUY_NO

    def test_below_threshold(self):
        edges = {TradeAction.BUY_YES: 1.5}
        assert recommend(edges, threshold=2.0) == TradeAction.NO_EDGE

    def test_no_quotes(self):
        report = evaluate(0.5, MarketQuotes())
        assert report.edges == {}
        assert report.recommendation == TradeAction.NO_EDGE

    def test_evaluate(self):
        report = evaluate(0.8, MarketQuotes(yes_ask=62.0, no_ask=30.0), threshold=2.0)
        assert report.recommendation == TradeAction.BUY_YES
        assert report.edges[TradeAction.BUY_YES] == pytest.approx(18.0)
