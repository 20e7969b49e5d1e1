"""Tests for RewardCalculator and SourceRegistry."""

from unittest.mock import Mock

import pytest
from solders.pubkey import Pubkey

from lst_rewards.reward_engine.interfaces.reward_source import RewardSource
from lst_rewards.reward_engine.models.reward_record import RewardSourceKind
from lst_rewards.reward_engine.services.reward_calculation_service import RewardCalculator, U64_MAX
from lst_rewards.reward_engine.services.source_registry import SourceRegistry
from lst_rewards.utils.error_handling import (
    AmountOverflow,
    EpochNotFinalized,
    InputValidationError,
)


class StaticSource(RewardSource):
    """Reward source returning a fixed total."""

    def __init__(self, total, kind=RewardSourceKind.DIRECT):
        self.total = total
        self.kind = kind
        self.calls = []

    def source_kind(self):
        return self.kind

    def fetch_total_rewards(self, validator_identity, epoch):
        self.calls.append((validator_identity, epoch))
        if isinstance(self.total, Exception):
            raise self.total
        return self.total


def make_calculator(source, store, events_logger=None):
    registry = SourceRegistry()
    registry.register_source(source)
    return RewardCalculator(registry, store=store, events_logger=events_logger)


class TestSourceRegistry:

    def test_register_and_get(self):
        registry = SourceRegistry()
        source = StaticSource(1)
        registry.register_source(source)

        assert registry.get_source(RewardSourceKind.DIRECT) is source
        assert registry.get_source(RewardSourceKind.ANALYTICS_QUERY) is None

    def test_register_replaces_same_kind(self):
        registry = SourceRegistry()
        registry.register_source(StaticSource(1))
        replacement = StaticSource(2)
        registry.register_source(replacement)

        assert registry.get_source(RewardSourceKind.DIRECT) is replacement

    def test_rejects_non_source(self):
        with pytest.raises(ValueError):
            SourceRegistry().register_source(object())


class TestRewardCalculator:

    def test_calculate_persists_record(self, record_store, identity_keypair):
        identity = identity_keypair.pubkey()
        source = StaticSource(5_000_000)
        calculator = make_calculator(source, record_store)

        record = calculator.calculate(RewardSourceKind.DIRECT, identity, 700)

        assert record.total_reward_lamports == 5_000_000
        assert record.source == RewardSourceKind.DIRECT
        assert source.calls == [(identity, 700)]
        assert record_store.load(identity, 700) == record

    def test_zero_total_is_persisted(self, record_store, identity_keypair):
        calculator = make_calculator(StaticSource(0), record_store)

        record = calculator.calculate(RewardSourceKind.DIRECT, identity_keypair.pubkey(), 700)

        assert record.total_reward_lamports == 0
        assert record_store.exists(identity_keypair.pubkey(), 700)

    def test_recalculation_overwrites(self, record_store, identity_keypair):
        identity = identity_keypair.pubkey()
        make_calculator(StaticSource(10), record_store).calculate(RewardSourceKind.DIRECT, identity, 700)

        analytics = StaticSource(20, kind=RewardSourceKind.ANALYTICS_QUERY)
        make_calculator(analytics, record_store).calculate(RewardSourceKind.ANALYTICS_QUERY, identity, 700)

        loaded = record_store.load(identity, 700)
        assert loaded.total_reward_lamports == 20
        assert loaded.source == RewardSourceKind.ANALYTICS_QUERY

    def test_source_failure_writes_nothing(self, record_store, identity_keypair):
        identity = identity_keypair.pubkey()
        calculator = make_calculator(StaticSource(EpochNotFinalized("not yet")), record_store)

        with pytest.raises(EpochNotFinalized):
            calculator.calculate(RewardSourceKind.DIRECT, identity, 700)

        assert not record_store.exists(identity, 700)

    def test_total_outside_u64_rejected(self, record_store, identity_keypair):
        calculator = make_calculator(StaticSource(U64_MAX + 1), record_store)

        with pytest.raises(AmountOverflow):
            calculator.calculate(RewardSourceKind.DIRECT, identity_keypair.pubkey(), 700)

    def test_unregistered_source(self, record_store):
        calculator = make_calculator(StaticSource(1), record_store)

        with pytest.raises(InputValidationError):
            calculator.calculate(RewardSourceKind.ANALYTICS_QUERY, Pubkey.new_unique(), 700)

    def test_negative_epoch(self, record_store):
        calculator = make_calculator(StaticSource(1), record_store)

        with pytest.raises(InputValidationError):
            calculator.calculate(RewardSourceKind.DIRECT, Pubkey.new_unique(), -1)

    def test_writes_event_line(self, record_store, identity_keypair):
        events_logger = Mock()
        calculator = make_calculator(StaticSource(77), record_store, events_logger=events_logger)

        calculator.calculate(RewardSourceKind.DIRECT, identity_keypair.pubkey(), 700)

        events_logger.event.assert_called_once()
        assert "total_block_rewards=77" in events_logger.event.call_args[0][0]

    def test_load_existing(self, record_store, identity_keypair):
        identity = identity_keypair.pubkey()
        calculator = make_calculator(StaticSource(3), record_store)

        assert calculator.load_existing(identity, 700) is None
        calculator.calculate(RewardSourceKind.DIRECT, identity, 700)
        assert calculator.load_existing(identity, 700).total_reward_lamports == 3
