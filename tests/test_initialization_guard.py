"""Tests for the initialization guard — one-shot farm funding."""

from typing import Optional

import pytest

from lpfarm.config import FarmConfig
from lpfarm.engine.period_clock import ManualClock, PeriodClock
from lpfarm.engine.snapshots import SnapshotStore
from lpfarm.errors import (
    AlreadyInitialized,
    MalformedStartTime,
    StartTimeNotInFuture,
    Unauthorized,
    WrongAmount,
)
from lpfarm.funding.guard import InitializationGuard, decode_start_block, encode_start_block
from lpfarm.models.farm import FarmState

DAO = "0x4F50Ab4e931289344a57f2fe4bBd10546a6fdC17"
REWARD = "0x00000000000000000000000000000000000000bb"
TOTAL = 5_000_000 * 10**18


def _config(**overrides) -> FarmConfig:
    params = {"funding_authority": DAO, "total_funding": TOTAL}
    params.update(overrides)
    return FarmConfig(**params)


def _guard(config: Optional[FarmConfig] = None) -> InitializationGuard:
    config = config or _config()
    snapshots = SnapshotStore(PeriodClock(ManualClock(), config.period_length, config.period_count))
    return InitializationGuard(config, REWARD, snapshots)


class TestStartBlockEncoding:
    def test_decode_big_endian(self) -> None:
        assert decode_start_block(b"\x00\x01\x00") == 256
        assert decode_start_block(b"\xff\xff\xff") == 16_777_215

    def test_encode(self) -> None:
        assert encode_start_block(256) == b"\x00\x01\x00"

    @pytest.mark.parametrize("data", [b"", b"\x01\x00", b"\x00\x00\x01\x00"])
    def test_wrong_width(self, data) -> None:
        with pytest.raises(MalformedStartTime):
            decode_start_block(data)

    def test_custom_width(self) -> None:
        assert decode_start_block(b"\x00\x00\x01\x00", width=4) == 256


class TestAcceptFunding:
    def test_success(self) -> None:
        state = FarmState()
        start = _guard().accept_funding(state, REWARD, DAO, TOTAL, b"\x00\x01\x00", now=10)
        assert start == 256
        assert state.start_time == 256
        assert state.weekly_incentive == TOTAL // 14
        assert state.eligible_liquidity == {0: 0}

    def test_sender_compared_case_insensitively(self) -> None:
        state = FarmState()
        _guard().accept_funding(state, REWARD.upper().replace("0X", "0x"), DAO.lower(), TOTAL, b"\x00\x01\x00", now=10)
        assert state.initialized

    def test_wrong_sender(self) -> None:
        with pytest.raises(Unauthorized, match="funding authority"):
            _guard().accept_funding(FarmState(), REWARD, "0xmallory", TOTAL, b"\x00\x01\x00", now=10)

    def test_wrong_token(self) -> None:
        with pytest.raises(Unauthorized, match="reward asset"):
            _guard().accept_funding(FarmState(), "0xother", DAO, TOTAL, b"\x00\x01\x00", now=10)

    def test_wrong_amount(self) -> None:
        state = FarmState()
        with pytest.raises(WrongAmount):
            _guard().accept_funding(state, REWARD, DAO, TOTAL - 1, b"\x00\x01\x00", now=10)
        assert not state.initialized

    def test_malformed_payload(self) -> None:
        with pytest.raises(MalformedStartTime):
            _guard().accept_funding(FarmState(), REWARD, DAO, TOTAL, b"\x01\x00", now=10)

    def test_start_not_in_future(self) -> None:
        with pytest.raises(StartTimeNotInFuture):
            _guard().accept_funding(FarmState(), REWARD, DAO, TOTAL, b"\x00\x01\x00", now=256)

    def test_fires_once(self) -> None:
        state = FarmState()
        guard = _guard()
        guard.accept_funding(state, REWARD, DAO, TOTAL, b"\x00\x01\x00", now=10)
        with pytest.raises(AlreadyInitialized):
            guard.accept_funding(state, REWARD, DAO, TOTAL, b"\x00\x02\x00", now=11)
        assert state.start_time == 256

    def test_check_order_authority_before_amount(self) -> None:
        with pytest.raises(Unauthorized):
            _guard().accept_funding(FarmState(), REWARD, "0xmallory", 1, b"", now=10)

    def test_check_order_amount_before_payload(self) -> None:
        with pytest.raises(WrongAmount):
            _guard().accept_funding(FarmState(), REWARD, DAO, 1, b"", now=10)

    def test_check_order_payload_before_future(self) -> None:
        with pytest.raises(MalformedStartTime):
            _guard().accept_funding(FarmState(), REWARD, DAO, TOTAL, b"\x00\x00", now=10**9)

    def test_check_order_future_before_already_initialized(self) -> None:
        state = FarmState()
        guard = _guard()
        guard.accept_funding(state, REWARD, DAO, TOTAL, b"\x00\x01\x00", now=10)
        with pytest.raises(StartTimeNotInFuture):
            guard.accept_funding(state, REWARD, DAO, TOTAL, b"\x00\x00\x05", now=11)
        assert state.start_time == 256

    def test_remainder_is_logged(self, caplog) -> None:
        caplog.set_level("INFO", logger="lpfarm.funding.guard")
        _guard().accept_funding(FarmState(), REWARD, DAO, TOTAL, b"\x00\x01\x00", now=10)
        assert "not divisible" in caplog.text

    def test_weekly_incentive_follows_config(self) -> None:
        state = FarmState()
        _guard(_config(total_funding=1_400, period_count=14)).accept_funding(
            state, REWARD, DAO, 1_400, b"\x00\x01\x00", now=10,
        )
        assert state.weekly_incentive == 100
