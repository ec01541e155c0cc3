"""Tests for the period snapshot store — carry-forward opening values."""

import pytest

from lpfarm.engine.period_clock import ManualClock, PeriodClock
from lpfarm.engine.snapshots import SnapshotStore, observe, project, value_at
from lpfarm.models.farm import FarmState

START = 1_000
LENGTH = 100


def _store(clock: ManualClock) -> SnapshotStore:
    return SnapshotStore(PeriodClock(clock, LENGTH, 14))


class TestBookFunctions:
    def test_observe_is_first_writer_wins(self) -> None:
        book: dict[int, int] = {}
        assert observe(book, 2, 10)
        assert not observe(book, 2, 99)
        assert book == {2: 10}

    def test_project_overwrites(self) -> None:
        book = {3: 10}
        project(book, 3, 20)
        assert book == {3: 20}

    def test_value_at_carries_forward(self) -> None:
        book = {0: 5, 3: 8, 7: 2}
        assert value_at(book, 0) == 5
        assert value_at(book, 2) == 5
        assert value_at(book, 3) == 8
        assert value_at(book, 6) == 8
        assert value_at(book, 100) == 2

    def test_value_at_before_any_entry(self) -> None:
        assert value_at({}, 4) == 0
        assert value_at({2: 7}, 1) == 0


class TestSnapshotStore:
    def test_establish_sets_period_zero(self) -> None:
        state = FarmState(start_time=START, total_staked=0)
        _store(ManualClock(0)).establish(state)
        assert state.eligible_liquidity == {0: 0}

    def test_checkpoint_before_start_targets_period_zero(self) -> None:
        state = FarmState(start_time=START)
        store = _store(ManualClock(START - 10))
        account = state.account("alice")
        assert store.checkpoint(state, account) == 0
        assert state.eligible_liquidity == {}
        assert account.eligible_balance == {}

    def test_mutation_takes_effect_next_period(self) -> None:
        clock = ManualClock(START)
        state = FarmState(start_time=START)
        store = _store(clock)
        store.establish(state)
        clock.advance_to(START + 2 * LENGTH + 5)

        account = state.account("alice")
        opening = store.checkpoint(state, account)
        account.balance += 50
        state.total_staked += 50
        store.carry(state, opening, account)

        assert opening == 3
        assert store.eligible_liquidity(state, 2) == 0
        assert store.eligible_liquidity(state, 3) == 50
        assert store.eligible_balance(account, 2) == 0
        assert store.eligible_balance(account, 3) == 50

    def test_begun_period_never_rewritten(self) -> None:
        clock = ManualClock(START + LENGTH)
        state = FarmState(start_time=START, total_staked=40, eligible_liquidity={0: 40})
        store = _store(clock)

        for delta in (10, -20, 5):
            opening = store.checkpoint(state)
            state.total_staked += delta
            store.carry(state, opening)

        assert store.eligible_liquidity(state, 1) == 40
        assert store.eligible_liquidity(state, 2) == 35

    def test_recorded_periods(self) -> None:
        state = FarmState(start_time=START, eligible_liquidity={4: 1, 0: 0, 2: 3})
        assert _store(ManualClock()).recorded_periods(state) == [0, 2, 4]

    def test_negative_period_rejected(self) -> None:
        with pytest.raises(ValueError):
            _store(ManualClock()).eligible_liquidity(FarmState(start_time=START), -1)
