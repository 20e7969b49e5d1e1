"""
Transaction compilation, compute budget and submission.

A transaction is sent at most once per call. Confirmation is awaited with a
bounded poll; a confirmation timeout is reported, not retried, because the
transaction may still land.
"""

import base64
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

import bittensor as bt
from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from lst_rewards.clients.solana_rpc_client import SolanaRpcClient
from lst_rewards.reward_engine.utils.query_poller import QueryPoller
from lst_rewards.utils.config import (
    CONFIRMATION_POLL_INTERVAL,
    CONFIRMATION_TIMEOUT,
    CU_BUFFER_RATIO,
    CUS_REQUIRED_FOR_SET_CU_LIMIT_IXS,
    DEFAULT_FEE_LIMIT_CB,
)
from lst_rewards.utils.error_handling import ConfirmationTimeout, TransactionFailed

MAX_COMPUTE_UNIT_LIMIT = 1_400_000
MICRO_LAMPORTS_PER_LAMPORT = 1_000_000


class TxSendMode(Enum):
    SEND_ACTUAL = "send-actual"
    SIM_ONLY = "sim-only"
    DUMP_MSG = "dump-msg"


@dataclass(frozen=True)
class SubmissionResult:
    send_mode: TxSendMode
    signature: Optional[str] = None
    detail: Optional[str] = None


def calc_compute_unit_price(units: int, fee_limit_lamports: int) -> int:
    """Micro-lamports per CU so that ``units`` cost at most ``fee_limit_lamports``."""
    if units <= 0:
        return 0
    return fee_limit_lamports * MICRO_LAMPORTS_PER_LAMPORT // units


def buffer_compute_units(units: int, ratio: float = CU_BUFFER_RATIO) -> int:
    return min(int(units * ratio) + CUS_REQUIRED_FOR_SET_CU_LIMIT_IXS, MAX_COMPUTE_UNIT_LIMIT)


class TransactionSender:
    """Compiles, signs and submits instructions according to a send mode."""

    def __init__(
        self,
        rpc: SolanaRpcClient,
        send_mode: TxSendMode = TxSendMode.SEND_ACTUAL,
        fee_limit_cb: int = DEFAULT_FEE_LIMIT_CB,
        confirmation_timeout: float = CONFIRMATION_TIMEOUT,
        poller: Optional[QueryPoller] = None,
    ):
        self.rpc = rpc
        self.send_mode = send_mode
        self.fee_limit_cb = fee_limit_cb
        self.confirmation_timeout = confirmation_timeout
        self.poller = poller or QueryPoller(interval=CONFIRMATION_POLL_INTERVAL)

    @staticmethod
    def compile(payer: Pubkey, instructions: Sequence[Instruction], blockhash: Hash) -> MessageV0:
        return MessageV0.try_compile(payer, list(instructions), [], blockhash)

    def with_auto_compute_budget(self, payer: Pubkey, instructions: List[Instruction]) -> List[Instruction]:
        """
        Prepend compute budget instructions sized from a simulation.

        A fee limit of 0 disables this and returns the instructions unchanged.
        """
        if self.fee_limit_cb == 0 or self.send_mode == TxSendMode.DUMP_MSG:
            return list(instructions)

        sim_ixs = [set_compute_unit_limit(MAX_COMPUTE_UNIT_LIMIT)] + list(instructions)
        message = self.compile(payer, sim_ixs, Hash.default())
        sim_tx = VersionedTransaction.populate(message, [Signature.default()] * message.header.num_required_signatures)

        simulation = self.rpc.simulate_transaction(bytes(sim_tx))
        if simulation.get("err"):
            raise TransactionFailed(
                f"Simulation failed while estimating compute units: {simulation['err']}",
                logs=_format_logs(simulation.get("logs")),
            )

        units = buffer_compute_units(int(simulation.get("unitsConsumed") or 0))
        micro_lamports = calc_compute_unit_price(units, self.fee_limit_cb)
        bt.logging.debug(f"Compute budget: {units} CUs at {micro_lamports} micro-lamports/CU")

        return [
            set_compute_unit_price(micro_lamports),
            set_compute_unit_limit(units),
        ] + list(instructions)

    def submit(self, instructions: List[Instruction], signers: Sequence[Keypair]) -> SubmissionResult:
        """
        Handle the transaction according to the send mode.

        The first signer pays the fees.

        Raises:
            TransactionFailed: Simulation or preflight rejected the transaction,
                or it landed with an error
            ConfirmationTimeout: The transaction was sent but not confirmed in time
        """
        payer = signers[0].pubkey()
        blockhash = self.rpc.get_latest_blockhash()
        message = self.compile(payer, instructions, blockhash)

        if self.send_mode == TxSendMode.DUMP_MSG:
            unsigned = VersionedTransaction.populate(
                message, [Signature.default()] * message.header.num_required_signatures
            )
            return SubmissionResult(self.send_mode, detail=base64.b64encode(bytes(unsigned)).decode())

        tx = VersionedTransaction(message, list(signers))

        if self.send_mode == TxSendMode.SIM_ONLY:
            simulation = self.rpc.simulate_transaction(bytes(tx), sig_verify=True)
            logs = _format_logs(simulation.get("logs"))
            if simulation.get("err"):
                raise TransactionFailed(f"Simulation failed: {simulation['err']}", logs=logs)
            return SubmissionResult(self.send_mode, detail=logs)

        signature = self.rpc.send_transaction(bytes(tx))
        bt.logging.info(f"Sent transaction {signature}")
        self.wait_for_confirmation(signature)
        return SubmissionResult(self.send_mode, signature=signature)

    def wait_for_confirmation(self, signature: str) -> None:
        accepted = ("finalized",) if self.rpc.commitment == "finalized" else ("confirmed", "finalized")

        def check():
            status = self.rpc.get_signature_status(signature)
            if status is None:
                return None
            if status.get("err"):
                raise TransactionFailed(f"Transaction failed on chain: {status['err']}", signature=signature)
            if status.get("confirmationStatus") in accepted:
                return status
            return None

        self.poller.poll(
            check,
            timeout=self.confirmation_timeout,
            description=f"confirmation of {signature}",
            timeout_error=ConfirmationTimeout,
        )
        bt.logging.info(f"Transaction {signature} confirmed")


def _format_logs(logs) -> Optional[str]:
    if not logs:
        return None
    return "\n".join(logs)
