"""Tests for the pricing API (FastAPI TestClient)."""

import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from strikesim.config import VERSION, Settings
from strikesim.web import app as app_module
from strikesim.web.cache import CacheService, make_cache_key


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(app_module, "setup_logging", lambda *a, **kw: None)
    settings = Settings(
        simulation_num_paths=500,
        simulation_batch_size=100,
        simulation_block_size=128,
        simulation_max_paths=5000,
        redis_url="",
    )
    with TestClient(app_module.create_app(settings)) as c:
        yield c


def _body(inputs_dict, **extra):
    body = {"inputs": inputs_dict, "target": {"kind": "above", "K": 100.0}, "paths": 400}
    body.update(extra)
    return body


class TestSimulate:
    def test_result_payload(self, client, inputs_dict):
        resp = client.post("/api/v1/simulate", json=_body(inputs_dict, seed=3))
        assert resp.status_code == 200
        data = resp.json()["data"]
        result = data["result"]
        assert result["target"] == {"kind": "above", "K": 100.0}
        assert 0.0 <= result["ci"][0] <= result["p"] <= result["ci"][1] <= 1.0
        assert result["fair"] == pytest.approx(100.0 * result["p"])
        assert result["diagnostics"]["n"] == 400
        assert data["edge"] is None

    def test_seeded_runs_are_cached(self, client, inputs_dict):
        first = client.post("/api/v1/simulate", json=_body(inputs_dict, seed=11)).json()
        second = client.post("/api/v1/simulate", json=_body(inputs_dict, seed=11)).json()
        assert first["meta"]["cached"] is False
        assert second["meta"]["cached"] is True
        assert second["data"] == first["data"]

    def test_unseeded_runs_are_not_cached(self, client, inputs_dict):
        client.post("/api/v1/simulate", json=_body(inputs_dict))
        second = client.post("/api/v1/simulate", json=_body(inputs_dict)).json()
        assert second["meta"]["cached"] is False

    def test_edge_report(self, client, inputs_dict):
        body = _body(inputs_dict, seed=5, quotes={"yes_ask": 1.0})
        edge = client.post("/api/v1/simulate", json=body).json()["data"]["edge"]
        assert set(edge["edges"]) == {"BUY_YES"}
        assert edge["recommendation"] in ("BUY_YES", "NO_EDGE")

    def test_convergence_and_distribution(self, client, inputs_dict):
        body = _body(inputs_dict, seed=5, track_convergence=True, include_distribution=True)
        result = client.post("/api/v1/simulate", json=body).json()["data"]["result"]
        assert len(result["diagnostics"]["convergence"]) == 4  # 128 * 3 + 16
        assert result["diagnostics"]["convergence"][-1] == pytest.approx(result["p"])
        assert len(result["distribution"]["histogram"]) == 50

    def test_sensitivity(self, client, inputs_dict):
        body = _body(inputs_dict, seed=5, sensitivity={"volatility_multiplier": 2.0})
        assert client.post("/api/v1/simulate", json=body).status_code == 200


class TestErrors:
    def test_unknown_kind(self, client, inputs_dict):
        resp = client.post("/api/v1/simulate", json=_body(inputs_dict, target={"kind": "below"}))
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_target_kind"

    def test_missing_strike(self, client, inputs_dict):
        resp = client.post("/api/v1/simulate", json=_body(inputs_dict, target={"kind": "above"}))
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"

    def test_malformed_inputs(self, client, inputs_dict):
        inputs_dict["s0"] = -1.0
        resp = client.post("/api/v1/simulate", json=_body(inputs_dict))
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "parse_error"

    def test_too_many_paths(self, client, inputs_dict):
        resp = client.post("/api/v1/simulate", json=_body(inputs_dict, paths=10_000))
        assert resp.status_code == 400
        assert "exceeds" in resp.json()["error"]["message"]

    def test_batches_validate_before_streaming(self, client, inputs_dict):
        body = _body(inputs_dict, target={"kind": "range", "L": 1.0}, batch_size=10)
        resp = client.post("/api/v1/simulate/batches", json=body)
        assert resp.status_code == 400


class TestBatches:
    def test_ndjson_stream(self, client, inputs_dict):
        body = _body(inputs_dict, seed=9, batch_size=150)
        resp = client.post("/api/v1/simulate/batches", json=body)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/x-ndjson")

        lines = [json.loads(line) for line in resp.text.splitlines() if line]
        assert [line["batch"] for line in lines] == [1, 2, 3]
        assert [line["total_paths"] for line in lines] == [150, 300, 400]

    def test_final_line_matches_full_run(self, client, inputs_dict):
        full = client.post("/api/v1/simulate", json=_body(inputs_dict, seed=21)).json()
        resp = client.post(
            "/api/v1/simulate/batches", json=_body(inputs_dict, seed=21, batch_size=64)
        )
        final = json.loads(resp.text.splitlines()[-1])
        assert final["p"] == full["data"]["result"]["p"]
        assert final["ci"] == full["data"]["result"]["ci"]

    def test_default_batch_size(self, client, inputs_dict):
        resp = client.post("/api/v1/simulate/batches", json=_body(inputs_dict, seed=1))
        assert len(resp.text.splitlines()) == 4  # 400 paths / 100 per batch


class TestSystem:
    def test_health(self, client):
        resp = client.get("/api/v1/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["version"] == VERSION
        assert data["cache_type"] == "memory"


class TestCache:
    def test_key_is_order_independent(self):
        assert make_cache_key("x", {"a": 1, "b": 2}) == make_cache_key("x", {"b": 2, "a": 1})
        assert make_cache_key("x", {"a": 1}) != make_cache_key("y", {"a": 1})

    def test_memory_roundtrip(self):
        async def scenario():
            cache = await CacheService.create("", ttl=60, maxsize=2)
            missing = await cache.get("k")
            await cache.set("k", {"p": 0.5})
            return cache, missing, await cache.get("k")

        cache, missing, found = asyncio.run(scenario())
        assert not cache.is_redis
        assert missing is None
        assert found == {"p": 0.5}
        assert cache.hit_rate == pytest.approx(0.5)
        assert cache.size == 1
