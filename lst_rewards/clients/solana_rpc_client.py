"""
Minimal Solana JSON-RPC client.

Read calls are idempotent and retried on transport failures with
exponential backoff. Transaction submission is never retried here: a failed
send is surfaced to the caller so a transfer cannot be paid twice.
"""

import base64
import itertools
import threading
from typing import Any, Dict, List, Optional, Tuple

import bittensor as bt
import requests
from solders.hash import Hash
from solders.pubkey import Pubkey
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from lst_rewards.reward_engine.models.epoch import EpochInfo, EpochSchedule
from lst_rewards.utils.config import COMMITMENT, RPC_TIMEOUT, SOLANA_RPC_URL
from lst_rewards.utils.error_handling import RpcRequestError, TransactionFailed, log_and_raise_api_error

# JSON-RPC error codes returned for slots without a block
SKIPPED_SLOT_ERROR_CODES = (-32007, -32009)
SEND_TRANSACTION_PREFLIGHT_FAILURE = -32002


class SolanaRpcClient:
    """JSON-RPC client over HTTP for the calls the reward pipeline needs."""

    def __init__(self, url: str = SOLANA_RPC_URL, commitment: str = COMMITMENT,
                 timeout: float = RPC_TIMEOUT):
        self.url = url
        self.commitment = commitment
        self.timeout = timeout
        self._ids = itertools.count(1)
        self._id_lock = threading.Lock()
        self.headers = {"Content-Type": "application/json"}

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------

    def _next_id(self) -> int:
        with self._id_lock:
            return next(self._ids)

    def _post(self, method: str, params: Optional[List[Any]] = None) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": method,
            "params": params or [],
        }
        response = requests.post(self.url, json=payload, headers=self.headers, timeout=self.timeout)
        response.raise_for_status()
        data = response.json()

        error = data.get("error")
        if error:
            raise RpcRequestError(
                f"RPC {method} returned an error: {error.get('message', error)}",
                rpc_code=error.get("code"),
            )
        return data.get("result")

    @retry(
        stop=stop_after_attempt(4),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type(requests.exceptions.RequestException),
        reraise=True,
    )
    def _post_with_retry(self, method: str, params: Optional[List[Any]] = None) -> Any:
        return self._post(method, params)

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Idempotent read call with transport-level retries."""
        try:
            return self._post_with_retry(method, params)
        except requests.exceptions.RequestException as e:
            log_and_raise_api_error(e, self.url, {"method": method}, context=f"RPC {method}")

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    def _read_commitment(self) -> str:
        # getBlock does not accept "processed"
        return "confirmed" if self.commitment == "processed" else self.commitment

    def get_epoch_info(self) -> EpochInfo:
        result = self.call("getEpochInfo", [{"commitment": self.commitment}])
        return EpochInfo(
            epoch=result["epoch"],
            slot_index=result["slotIndex"],
            slots_in_epoch=result["slotsInEpoch"],
            absolute_slot=result["absoluteSlot"],
        )

    def get_epoch_schedule(self) -> EpochSchedule:
        result = self.call("getEpochSchedule")
        return EpochSchedule(
            slots_per_epoch=result["slotsPerEpoch"],
            leader_schedule_slot_offset=result["leaderScheduleSlotOffset"],
            warmup=result["warmup"],
            first_normal_epoch=result["firstNormalEpoch"],
            first_normal_slot=result["firstNormalSlot"],
        )

    def get_leader_schedule(self, slot: int, identity: Pubkey) -> Optional[Dict[str, List[int]]]:
        """Leader schedule of the epoch containing ``slot``, filtered to ``identity``."""
        return self.call(
            "getLeaderSchedule",
            [slot, {"identity": str(identity), "commitment": self.commitment}],
        )

    def get_block_rewards(self, slot: int) -> Optional[List[Dict[str, Any]]]:
        """
        Rewards recorded in the block at ``slot``.

        Returns:
            List of reward entries, or None if the slot was skipped
        """
        config = {
            "encoding": "json",
            "transactionDetails": "none",
            "rewards": True,
            "commitment": self._read_commitment(),
            "maxSupportedTransactionVersion": 0,
        }
        try:
            block = self.call("getBlock", [slot, config])
        except RpcRequestError as e:
            if e.rpc_code in SKIPPED_SLOT_ERROR_CODES:
                bt.logging.debug(f"Slot {slot} was skipped")
                return None
            raise
        if block is None:
            return None
        return block.get("rewards") or []

    def get_balance(self, pubkey: Pubkey) -> int:
        result = self.call("getBalance", [str(pubkey), {"commitment": self.commitment}])
        return result["value"]

    def get_account_info(self, pubkey: Pubkey) -> Optional[Tuple[Pubkey, bytes]]:
        """Owner program and raw data of an account, or None if it does not exist."""
        result = self.call(
            "getAccountInfo",
            [str(pubkey), {"encoding": "base64", "commitment": self.commitment}],
        )
        value = result.get("value") if result else None
        if value is None:
            return None
        data_b64 = value["data"][0]
        return Pubkey.from_string(value["owner"]), base64.b64decode(data_b64)

    def get_latest_blockhash(self) -> Hash:
        result = self.call("getLatestBlockhash", [{"commitment": self.commitment}])
        return Hash.from_string(result["value"]["blockhash"])

    def simulate_transaction(self, tx_bytes: bytes, sig_verify: bool = False) -> Dict[str, Any]:
        """Simulate a serialized transaction; returns the ``value`` object."""
        result = self.call(
            "simulateTransaction",
            [
                base64.b64encode(tx_bytes).decode(),
                {
                    "encoding": "base64",
                    "sigVerify": sig_verify,
                    "replaceRecentBlockhash": not sig_verify,
                    "commitment": self.commitment,
                },
            ],
        )
        return result["value"]

    def get_signature_status(self, signature: str) -> Optional[Dict[str, Any]]:
        result = self.call("getSignatureStatuses", [[signature], {"searchTransactionHistory": False}])
        statuses = result.get("value") or [None]
        return statuses[0]

    # ------------------------------------------------------------------
    # submission
    # ------------------------------------------------------------------

    def send_transaction(self, tx_bytes: bytes) -> str:
        """
        Submit a signed transaction once.

        Returns:
            The transaction signature (base58)

        Raises:
            TransactionFailed: If preflight simulation rejects the transaction
            RpcRequestError: On transport or other RPC failures
        """
        params = [
            base64.b64encode(tx_bytes).decode(),
            {"encoding": "base64", "preflightCommitment": self.commitment},
        ]
        try:
            return self._post("sendTransaction", params)
        except RpcRequestError as e:
            if e.rpc_code == SEND_TRANSACTION_PREFLIGHT_FAILURE:
                raise TransactionFailed(f"Transaction rejected in preflight: {e.message}") from e
            raise
        except requests.exceptions.RequestException as e:
            log_and_raise_api_error(e, self.url, {"method": "sendTransaction"}, context="RPC sendTransaction")
