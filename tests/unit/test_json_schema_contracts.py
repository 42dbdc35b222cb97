"""
Tests for JSON Schema Contract Validators

Покрывает:
- Валидность самих схем
- Валидация правильных данных
- Детекция нарушений required / pattern / constraints
- Соответствие read views (Round.to_payload, UserPosition.to_payload) контрактам
"""

import pytest
from jsonschema import ValidationError

from src.core.contracts import (
    RoundInfoValidator,
    RoundParamsValidator,
    SchemaLoader,
    UserPositionValidator,
    validate_round_info,
    validate_round_params,
    validate_user_position,
)
from src.core.domain import Round, UserPosition
from tests.fakes import ASSET0, ASSET1, REWARD, FakeClock, make_params


# =============================================================================
# FIXTURES - VALID DATA SAMPLES
# =============================================================================


@pytest.fixture
def valid_round_params():
    return {
        "start_ts": 1_700_000_100,
        "end_ts": 1_700_001_000,
        "unlock_ts": 1_700_005_000,
        "asset0": ASSET0,
        "asset1": ASSET1,
        "target0": 100,
        "target1": 200,
        "market": {"fee": 3000, "target_price": 10**18, "tick_lower": -600, "tick_upper": 600},
        "reward_asset": REWARD,
        "reward0": 1000,
        "reward1": 2000,
    }


# =============================================================================
# ТЕСТЫ: Schema loader
# =============================================================================


class TestSchemaLoader:
    @pytest.mark.parametrize("name", ["round_params", "round_info", "user_position"])
    def test_schemas_load(self, name):
        schema = SchemaLoader().load_schema(name)
        assert schema["title"] == name

    def test_missing_schema(self):
        with pytest.raises(FileNotFoundError):
            SchemaLoader().load_schema("does_not_exist")

    def test_cache(self):
        loader = SchemaLoader()
        assert loader.load_schema("round_info") is loader.load_schema("round_info")


# =============================================================================
# ТЕСТЫ: round_params
# =============================================================================


class TestRoundParamsContract:
    def test_valid(self, valid_round_params):
        validate_round_params(valid_round_params)
        assert RoundParamsValidator().is_valid(valid_round_params)

    def test_reward_amounts_optional(self, valid_round_params):
        del valid_round_params["reward0"]
        del valid_round_params["reward1"]
        validate_round_params(valid_round_params)

    @pytest.mark.parametrize("field", ["asset0", "target1", "market", "unlock_ts"])
    def test_missing_required(self, valid_round_params, field):
        del valid_round_params[field]
        with pytest.raises(ValidationError):
            validate_round_params(valid_round_params)

    def test_zero_target(self, valid_round_params):
        valid_round_params["target0"] = 0
        with pytest.raises(ValidationError):
            validate_round_params(valid_round_params)

    def test_bad_address(self, valid_round_params):
        valid_round_params["asset1"] = "not-an-address"
        with pytest.raises(ValidationError):
            validate_round_params(valid_round_params)

    def test_unknown_field(self, valid_round_params):
        valid_round_params["status"] = "Finished"
        errors = list(RoundParamsValidator().iter_errors(valid_round_params))
        assert len(errors) == 1


# =============================================================================
# ТЕСТЫ: read views
# =============================================================================


class TestReadViewContracts:
    def test_round_payload(self):
        round_ = Round.from_params(1, make_params(FakeClock()))
        round_.raised.add(0, 10)
        payload = round_.to_payload()
        validate_round_info(payload)
        assert payload["status"] == "Processing"
        assert payload["raised"] == [10, 0]

    def test_round_payload_bad_status(self):
        payload = Round.from_params(1, make_params(FakeClock())).to_payload()
        payload["status"] = "Open"
        assert not RoundInfoValidator().is_valid(payload)

    def test_position_payload(self):
        position = UserPosition(user="alice", round_id=1)
        position.deposited.add(0, 5)
        position.credit(ASSET1, 7)
        position.add_units(ASSET0, [4, 8])
        payload = position.to_payload()
        validate_user_position(payload)
        assert payload["units"] == {ASSET0: [4, 8]}

    def test_position_payload_zero_balance_rejected(self):
        payload = UserPosition(user="alice", round_id=1).to_payload()
        payload["withdrawable"] = {ASSET0: 0}
        assert not UserPositionValidator().is_valid(payload)
