"""Tests for input parsing, target models and result encoding."""

import json
import math

import pytest

from strikesim.errors import ParseError, SerializationError
from strikesim.schemas import (
    Diagnostics,
    Distribution,
    IntermediateResult,
    SimulationInputs,
    SimulationResult,
    Target,
    encode_result,
)
from strikesim.sim_models import Regime

from conftest import make_inputs_dict


class TestSimulationInputs:
    def test_parse_dict(self, inputs_dict):
        inputs = SimulationInputs.parse(inputs_dict)
        assert inputs.s0 == 100.0
        assert inputs.regimes.BULL.heston.kappa == 2.0
        assert inputs.hmm.pi0 == (0.7, 0.3)

    def test_parse_json_text(self, inputs_dict):
        inputs = SimulationInputs.parse(json.dumps(inputs_dict))
        assert inputs.dt == 0.25

    def test_lambda_alias(self, inputs_dict):
        inputs = SimulationInputs.parse(inputs_dict)
        assert inputs.jumps.lam == pytest.approx(0.1)
        dumped = inputs.model_dump(by_alias=True)
        assert dumped["jumps"]["lambda"] == pytest.approx(0.1)

    def test_parse_passthrough(self, inputs):
        assert SimulationInputs.parse(inputs) is inputs

    def test_jumps_default_to_none(self, inputs_dict):
        del inputs_dict["jumps"]
        inputs = SimulationInputs.parse(inputs_dict)
        assert inputs.jumps.lam == 0.0

    def test_immutable(self, inputs):
        with pytest.raises(Exception):
            inputs.s0 = 1.0

    def test_step_count(self):
        inputs = SimulationInputs.parse(make_inputs_dict(t=24.0, dt=1.0))
        assert inputs.n_steps == 24

    def test_rate_out_of(self, inputs):
        assert inputs.hmm.rate_out_of(Regime.BULL) == 0.05
        assert inputs.hmm.rate_out_of(Regime.BEAR) == 0.10

    def test_for_regime(self, inputs):
        assert inputs.regimes.for_regime(Regime.BEAR) is inputs.regimes.BEAR

    @pytest.mark.parametrize("overrides", [
        {"s0": 0.0},
        {"t": -1.0},
        {"dt": 0.0},
        {"t": 1.0, "dt": 2.0},
        {"kappa": 0.0},
        {"theta": -0.01},
        {"xi": -0.1},
        {"rho": 1.5},
        {"lam": -1.0},
        {"sigma_j": -0.1},
        {"p": ((0.0, -0.1), (0.1, 0.0))},
        {"pi0": (0.6, 0.6)},
        {"pi0": (1.2, -0.2)},
    ])
    def test_rejects_invalid_values(self, overrides):
        with pytest.raises(ParseError):
            SimulationInputs.parse(make_inputs_dict(**overrides))

    def test_rejects_missing_fields(self, inputs_dict):
        del inputs_dict["hmm"]
        with pytest.raises(ParseError):
            SimulationInputs.parse(inputs_dict)

    def test_rejects_malformed_json(self):
        with pytest.raises(ParseError):
            SimulationInputs.parse("{not json")

    @pytest.mark.parametrize("kind", ["merton", "kou", "hawkes", ""])
    def test_accepts_any_jump_kind(self, inputs_dict, kind):
        inputs_dict["jumps"]["kind"] = kind
        assert SimulationInputs.parse(inputs_dict).jumps.kind == kind


class TestTarget:
    def test_constructors(self):
        assert Target.above(100.0).model_dump(exclude_none=True) == {"kind": "above", "K": 100.0}
        assert Target.range(90.0, 110.0).model_dump(exclude_none=True) == {
            "kind": "range", "L": 90.0, "U": 110.0,
        }

    def test_parse_accepts_unknown_kind(self):
        # kind is checked by the engine, not the parser
        assert Target.parse({"kind": "below", "K": 1.0}).kind == "below"

    def test_parse_json(self):
        assert Target.parse('{"kind": "above", "K": 50}').K == 50.0

    @pytest.mark.parametrize("payload", [{"K": 100.0}, {"kind": "above", "K": "abc"}, "[]"])
    def test_parse_errors(self, payload):
        with pytest.raises(ParseError):
            Target.parse(payload)


class TestEncodeResult:
    def _result(self, **overrides):
        fields = dict(
            target=Target.above(100.0),
            p=0.25,
            ci=(0.2, 0.3),
            fair=25.0,
            diagnostics=Diagnostics(stderr=0.01, n=1000),
        )
        fields.update(overrides)
        return SimulationResult(**fields)

    def test_wire_names(self):
        payload = json.loads(encode_result(self._result()))
        assert set(payload) == {"target", "p", "ci", "fair", "diagnostics"}
        assert payload["target"] == {"kind": "above", "K": 100.0}
        assert payload["ci"] == [0.2, 0.3]
        assert payload["diagnostics"] == {"stderr": 0.01, "n": 1000}

    def test_intermediate(self):
        payload = json.loads(encode_result(
            IntermediateResult(batch=2, total_paths=200, p=0.5, ci=(0.4, 0.6), fair=50.0)
        ))
        assert payload == {
            "batch": 2, "total_paths": 200, "p": 0.5, "ci": [0.4, 0.6], "fair": 50.0,
        }

    def test_non_finite_fails(self):
        dist = Distribution(min=1.0, max=math.inf, mean=2.0, stddev=0.0, histogram=[])
        with pytest.raises(SerializationError):
            encode_result(self._result(distribution=dist))
