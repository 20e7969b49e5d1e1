"""Tests for the Solana JSON-RPC client."""

import base64
from unittest.mock import Mock, patch

import pytest
import requests
from solders.hash import Hash
from solders.pubkey import Pubkey

from lst_rewards.clients.solana_rpc_client import SolanaRpcClient
from lst_rewards.utils.error_handling import ChainSubmissionError, RpcRequestError, TransactionFailed


def rpc_response(result=None, error=None):
    response = Mock()
    response.raise_for_status.return_value = None
    payload = {"jsonrpc": "2.0", "id": 1}
    if error is not None:
        payload["error"] = error
    else:
        payload["result"] = result
    response.json.return_value = payload
    return response


@pytest.fixture
def client():
    return SolanaRpcClient("http://localhost:8899", commitment="confirmed", timeout=5)


class TestReads:

    def test_get_epoch_info(self, client):
        with patch('lst_rewards.clients.solana_rpc_client.requests.post') as mock_post:
            mock_post.return_value = rpc_response({
                "epoch": 701, "slotIndex": 5, "slotsInEpoch": 432000, "absoluteSlot": 302832005,
            })

            info = client.get_epoch_info()

        assert info.epoch == 701
        assert info.slots_in_epoch == 432000
        payload = mock_post.call_args.kwargs["json"]
        assert payload["method"] == "getEpochInfo"
        assert payload["params"] == [{"commitment": "confirmed"}]

    def test_get_block_rewards(self, client):
        rewards = [{"pubkey": "abc", "lamports": 10}]
        with patch('lst_rewards.clients.solana_rpc_client.requests.post') as mock_post:
            mock_post.return_value = rpc_response({"rewards": rewards, "blockHeight": 1})

            assert client.get_block_rewards(123) == rewards

        params = mock_post.call_args.kwargs["json"]["params"]
        assert params[0] == 123
        assert params[1]["rewards"] is True
        assert params[1]["transactionDetails"] == "none"

    @pytest.mark.parametrize("code", [-32007, -32009])
    def test_skipped_slot_returns_none(self, client, code):
        with patch('lst_rewards.clients.solana_rpc_client.requests.post') as mock_post:
            mock_post.return_value = rpc_response(error={"code": code, "message": "Slot was skipped"})

            assert client.get_block_rewards(123) is None

    def test_other_rpc_errors_raise(self, client):
        with patch('lst_rewards.clients.solana_rpc_client.requests.post') as mock_post:
            mock_post.return_value = rpc_response(error={"code": -32004, "message": "Block not available"})

            with pytest.raises(RpcRequestError) as exc_info:
                client.get_block_rewards(123)

        assert exc_info.value.rpc_code == -32004

    def test_processed_commitment_is_upgraded_for_blocks(self):
        client = SolanaRpcClient("http://localhost:8899", commitment="processed")
        with patch('lst_rewards.clients.solana_rpc_client.requests.post') as mock_post:
            mock_post.return_value = rpc_response({"rewards": []})
            client.get_block_rewards(1)

        assert mock_post.call_args.kwargs["json"]["params"][1]["commitment"] == "confirmed"

    def test_get_account_info(self, client):
        owner = Pubkey.new_unique()
        data = b"\x01" + bytes(40)
        with patch('lst_rewards.clients.solana_rpc_client.requests.post') as mock_post:
            mock_post.return_value = rpc_response({
                "context": {"slot": 1},
                "value": {"owner": str(owner), "data": [base64.b64encode(data).decode(), "base64"],
                          "lamports": 1, "executable": False},
            })

            assert client.get_account_info(Pubkey.new_unique()) == (owner, data)

    def test_get_account_info_missing(self, client):
        with patch('lst_rewards.clients.solana_rpc_client.requests.post') as mock_post:
            mock_post.return_value = rpc_response({"context": {"slot": 1}, "value": None})

            assert client.get_account_info(Pubkey.new_unique()) is None

    def test_get_latest_blockhash(self, client):
        blockhash = Hash.new_unique()
        with patch('lst_rewards.clients.solana_rpc_client.requests.post') as mock_post:
            mock_post.return_value = rpc_response({
                "context": {"slot": 1},
                "value": {"blockhash": str(blockhash), "lastValidBlockHeight": 10},
            })

            assert client.get_latest_blockhash() == blockhash

    def test_transport_errors_are_retried(self, client):
        with patch('lst_rewards.clients.solana_rpc_client.requests.post') as mock_post:
            mock_post.side_effect = [
                requests.exceptions.ConnectionError("reset"),
                rpc_response({"context": {"slot": 1}, "value": 42}),
            ]

            assert client.get_balance(Pubkey.new_unique()) == 42

        assert mock_post.call_count == 2

    def test_transport_errors_exhaust_retries(self, client):
        with patch('lst_rewards.clients.solana_rpc_client.requests.post') as mock_post:
            mock_post.side_effect = requests.exceptions.ConnectionError("down")

            with pytest.raises(RpcRequestError):
                client.get_balance(Pubkey.new_unique())

        assert mock_post.call_count == 4


class TestSendTransaction:

    def test_returns_signature(self, client):
        with patch('lst_rewards.clients.solana_rpc_client.requests.post') as mock_post:
            mock_post.return_value = rpc_response("5abc")

            assert client.send_transaction(b"\x01\x02") == "5abc"

        params = mock_post.call_args.kwargs["json"]["params"]
        assert params[0] == base64.b64encode(b"\x01\x02").decode()

    def test_is_not_retried(self, client):
        with patch('lst_rewards.clients.solana_rpc_client.requests.post') as mock_post:
            mock_post.side_effect = requests.exceptions.ConnectionError("reset")

            with pytest.raises(ChainSubmissionError):
                client.send_transaction(b"\x01")

        assert mock_post.call_count == 1

    def test_preflight_failure(self, client):
        with patch('lst_rewards.clients.solana_rpc_client.requests.post') as mock_post:
            mock_post.return_value = rpc_response(
                error={"code": -32002, "message": "Transaction simulation failed: insufficient funds"}
            )

            with pytest.raises(TransactionFailed):
                client.send_transaction(b"\x01")
