"""Tests for transaction compilation and submission."""

import base64
from unittest.mock import Mock

import pytest
from solders.compute_budget import ID as COMPUTE_BUDGET_ID
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import VersionedTransaction

from lst_rewards.chain.transaction import (
    TransactionSender,
    TxSendMode,
    buffer_compute_units,
    calc_compute_unit_price,
)
from lst_rewards.reward_engine.utils.query_poller import QueryPoller
from lst_rewards.utils.error_handling import ConfirmationTimeout, TransactionFailed


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def wait(self, seconds):
        self.now += seconds
        return False


@pytest.fixture
def rpc():
    client = Mock()
    client.commitment = "confirmed"
    client.get_latest_blockhash.return_value = Hash.new_unique()
    client.simulate_transaction.return_value = {"err": None, "logs": ["log 1", "log 2"], "unitsConsumed": 1000}
    client.send_transaction.return_value = "5sig"
    client.get_signature_status.return_value = {"confirmationStatus": "confirmed", "err": None}
    return client


@pytest.fixture
def clock():
    return FakeClock()


def make_sender(rpc, clock, mode=TxSendMode.SEND_ACTUAL, fee_limit_cb=1, timeout=10):
    poller = QueryPoller(interval=2, clock=clock, wait=clock.wait)
    return TransactionSender(rpc, send_mode=mode, fee_limit_cb=fee_limit_cb,
                             confirmation_timeout=timeout, poller=poller)


def transfer_ixs(payer):
    return [transfer(TransferParams(from_pubkey=payer.pubkey(), to_pubkey=Pubkey.new_unique(), lamports=5))]


class TestComputeBudget:

    def test_calc_compute_unit_price(self):
        assert calc_compute_unit_price(1_000, 1) == 1_000
        assert calc_compute_unit_price(1_400, 1) == 714
        assert calc_compute_unit_price(0, 1) == 0

    def test_buffer_compute_units(self):
        assert buffer_compute_units(1_000) == 1_400
        assert buffer_compute_units(2_000_000) == 1_400_000

    def test_prepends_budget_instructions(self, rpc, clock, payer_keypair):
        ixs = transfer_ixs(payer_keypair)

        result = make_sender(rpc, clock).with_auto_compute_budget(payer_keypair.pubkey(), ixs)

        assert len(result) == 3
        assert result[0].program_id == COMPUTE_BUDGET_ID
        assert result[1].program_id == COMPUTE_BUDGET_ID
        assert result[2] == ixs[0]
        rpc.simulate_transaction.assert_called_once()

    def test_disabled_with_zero_fee_limit(self, rpc, clock, payer_keypair):
        ixs = transfer_ixs(payer_keypair)

        assert make_sender(rpc, clock, fee_limit_cb=0).with_auto_compute_budget(payer_keypair.pubkey(), ixs) == ixs
        rpc.simulate_transaction.assert_not_called()

    def test_failed_estimate_simulation(self, rpc, clock, payer_keypair):
        rpc.simulate_transaction.return_value = {"err": {"InstructionError": [0, "Custom"]}, "logs": []}

        with pytest.raises(TransactionFailed):
            make_sender(rpc, clock).with_auto_compute_budget(payer_keypair.pubkey(), transfer_ixs(payer_keypair))


class TestSubmit:

    def test_send_actual_waits_for_confirmation(self, rpc, clock, payer_keypair):
        rpc.get_signature_status.side_effect = [None, {"confirmationStatus": "processed", "err": None},
                                                {"confirmationStatus": "confirmed", "err": None}]

        result = make_sender(rpc, clock).submit(transfer_ixs(payer_keypair), [payer_keypair])

        assert result.signature == "5sig"
        assert result.send_mode == TxSendMode.SEND_ACTUAL
        rpc.send_transaction.assert_called_once()
        assert rpc.get_signature_status.call_count == 3

        sent = VersionedTransaction.from_bytes(rpc.send_transaction.call_args[0][0])
        assert sent.message.account_keys[0] == payer_keypair.pubkey()

    def test_confirmation_timeout(self, rpc, clock, payer_keypair):
        rpc.get_signature_status.return_value = None

        with pytest.raises(ConfirmationTimeout):
            make_sender(rpc, clock, timeout=5).submit(transfer_ixs(payer_keypair), [payer_keypair])

        rpc.send_transaction.assert_called_once()
        assert clock.now <= 5

    def test_landed_with_error(self, rpc, clock, payer_keypair):
        rpc.get_signature_status.return_value = {"confirmationStatus": "confirmed",
                                                 "err": {"InstructionError": [1, "Custom"]}}

        with pytest.raises(TransactionFailed):
            make_sender(rpc, clock).submit(transfer_ixs(payer_keypair), [payer_keypair])

    def test_sim_only_does_not_send(self, rpc, clock, payer_keypair):
        result = make_sender(rpc, clock, mode=TxSendMode.SIM_ONLY).submit(
            transfer_ixs(payer_keypair), [payer_keypair]
        )

        assert result.signature is None
        assert result.detail == "log 1\nlog 2"
        rpc.send_transaction.assert_not_called()
        assert rpc.simulate_transaction.call_args.kwargs["sig_verify"] is True

    def test_dump_msg_does_not_send(self, rpc, clock, payer_keypair):
        result = make_sender(rpc, clock, mode=TxSendMode.DUMP_MSG).submit(
            transfer_ixs(payer_keypair), [payer_keypair]
        )

        assert result.signature is None
        tx = VersionedTransaction.from_bytes(base64.b64decode(result.detail))
        assert tx.message.account_keys[0] == payer_keypair.pubkey()
        rpc.send_transaction.assert_not_called()
        rpc.simulate_transaction.assert_not_called()

