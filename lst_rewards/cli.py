"""
Command line entry point.

Usage:
    lst-rewards calculate --identity <PUBKEY|KEYPAIR> [--epoch N] [--use-cached]
    lst-rewards calculate-with-dune --identity <PUBKEY|KEYPAIR> [--epoch N] [--use-cached]
    lst-rewards transfer --payer <KEYPAIR> --stake-pool <PUBKEY> \\
        --total-rewards-pct 50 --lst-rewards-pct 20
    lst-rewards sign --identity <KEYPAIR>
    lst-rewards verify --identity <PUBKEY> --signature <BASE58>
"""

import argparse
import signal
import sys
from contextlib import contextmanager
from typing import Callable, List, Optional

import bittensor as bt

from lst_rewards.chain.transaction import TransactionSender, TxSendMode
from lst_rewards.clients.dune_client import DuneClient
from lst_rewards.clients.lst_list_client import find_lst_for_pool
from lst_rewards.clients.solana_rpc_client import SolanaRpcClient
from lst_rewards.reward_engine.dune_reward_source import DuneRewardSource
from lst_rewards.reward_engine.ledger_reward_source import LedgerRewardSource
from lst_rewards.reward_engine.models import RewardRecord, RewardSourceKind, SplitParameters
from lst_rewards.reward_engine.services import (
    EndorsementSigner,
    RewardCalculator,
    SourceRegistry,
    TransferExecutor,
    parse_percentage,
)
from lst_rewards.reward_engine.utils import RewardRecordStore
from lst_rewards.utils import config
from lst_rewards.utils.epoch_utils import validate_epoch
from lst_rewards.utils.error_handling import RewardsError, ZeroTransferAmount
from lst_rewards.utils.format_utils import format_pct, lamports_to_sol, print_section
from lst_rewards.utils.keys import load_keypair, parse_pubkey, resolve_identity
from lst_rewards.utils.logging import setup_events_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lst-rewards",
        description="Share validator block rewards with liquid staking token holders",
    )
    parser.add_argument("--rpc-url", default=config.SOLANA_RPC_URL,
                        help="Solana JSON-RPC endpoint (default: SOLANA_RPC_URL or mainnet public RPC)")
    parser.add_argument("--commitment", default=config.COMMITMENT,
                        choices=["processed", "confirmed", "finalized"],
                        help="Commitment level for RPC reads and confirmation")
    parser.add_argument("--send-mode", default=TxSendMode.SEND_ACTUAL.value,
                        choices=[mode.value for mode in TxSendMode],
                        help="send-actual submits, sim-only simulates, dump-msg prints the base64 transaction")
    parser.add_argument("--fee-limit-cb", type=int, default=config.DEFAULT_FEE_LIMIT_CB,
                        help="Max priority fee in lamports for the compute budget; 0 disables it")
    parser.add_argument("--rewards-dir", default=str(config.REWARDS_DIR),
                        help="Directory where reward records are stored")

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--debug", action="store_true", help="Enable debug logging")
    verbosity.add_argument("--trace", action="store_true", help="Enable trace logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    calculate = subparsers.add_parser("calculate", help="Calculate block rewards from the ledger")
    calculate.add_argument("--identity", required=True, help="Validator identity pubkey or keypair file")
    calculate.add_argument("--epoch", type=int, default=None, help="Epoch (default: last completed)")
    calculate.add_argument("--use-cached", action="store_true",
                           help="Show an existing record instead of recalculating")
    calculate.add_argument("--yes", action="store_true",
                           help="Skip the prompt shown for large calculations on the public RPC")

    dune = subparsers.add_parser("calculate-with-dune", help="Calculate block rewards with a Dune query")
    dune.add_argument("--identity", required=True, help="Validator identity pubkey or keypair file")
    dune.add_argument("--epoch", type=int, default=None, help="Epoch (default: last completed)")
    dune.add_argument("--dune-api-key", default=config.DUNE_API_KEY, help="Dune API key (default: DUNE_API_KEY)")
    dune.add_argument("--timeout", type=float, default=config.DUNE_DEFAULT_TIMEOUT,
                      help="Seconds to wait for the query to finish")
    dune.add_argument("--use-cached", action="store_true",
                      help="Show an existing record instead of running the query")

    transfer = subparsers.add_parser("transfer", help="Transfer the LST share of a calculated epoch")
    transfer.add_argument("--payer", required=True, help="Keypair file paying the transfer and fees")
    transfer.add_argument("--identity", default=None,
                          help="Validator identity the record was calculated for (default: payer)")
    transfer.add_argument("--epoch", type=int, default=None, help="Epoch (default: last completed)")
    transfer.add_argument("--stake-pool", required=True, help="Stake pool account pubkey")
    transfer.add_argument("--total-rewards-pct", required=True,
                          help="Percentage of block rewards attributed to the stake pool")
    transfer.add_argument("--lst-rewards-pct", required=True,
                          help="Percentage of the stake pool portion passed to LST holders")
    transfer.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    sign = subparsers.add_parser("sign", help="Sign the endorsement message with the identity key")
    sign.add_argument("--identity", required=True, help="Validator identity keypair file")
    sign.add_argument("--message", default=None, help="Message to sign (default: endorsement message)")

    verify = subparsers.add_parser("verify", help="Verify an endorsement signature")
    verify.add_argument("--identity", required=True, help="Validator identity pubkey")
    verify.add_argument("--signature", required=True, help="Base58 signature")
    verify.add_argument("--message", default=None, help="Signed message (default: endorsement message)")

    return parser


def confirm(prompt: str) -> bool:
    answer = input(f"{prompt} [y/N]: ")
    return answer.strip().lower() in ("y", "yes")


def print_record(record: RewardRecord, path=None) -> None:
    rows = [
        ("Validator identity", str(record.validator_identity)),
        ("Epoch", record.epoch),
        ("Total block rewards", f"{record.total_reward_lamports} lamports "
                                f"({lamports_to_sol(record.total_reward_lamports)})"),
        ("Source", record.source.value),
        ("Computed at", record.computed_at.isoformat()),
    ]
    if path is not None:
        rows.append(("Record", str(path)))
    print_section("Block rewards", rows)


def _resolve_epoch(rpc: SolanaRpcClient, requested: Optional[int]) -> int:
    current_epoch = rpc.get_epoch_info().epoch
    return validate_epoch(requested, current_epoch)


def run_calculate(args, rpc: SolanaRpcClient, store: RewardRecordStore, events_logger) -> int:
    identity = resolve_identity(args.identity)
    epoch = _resolve_epoch(rpc, args.epoch)

    source = LedgerRewardSource(rpc)
    registry = SourceRegistry()
    registry.register_source(source)
    calculator = RewardCalculator(registry, store=store, events_logger=events_logger)

    if args.use_cached:
        existing = calculator.load_existing(identity, epoch)
        if existing is not None:
            print_record(existing, store.path_for(identity, epoch))
            return 0
        bt.logging.info(f"No cached record for epoch {epoch}, calculating")

    if args.rpc_url == config.SOLANA_PUBLIC_RPC:
        leader_slots = source.get_leader_slots(identity, epoch)
        if len(leader_slots) > config.PUBLIC_RPC_SLOT_WARNING:
            bt.logging.warning(
                f"{len(leader_slots)} leader slots on the public RPC will be slow and may be rate limited. "
                f"Consider --rpc-url with a private endpoint or calculate-with-dune."
            )
            if not args.yes and not confirm("Continue with the public RPC?"):
                print("Aborted.")
                return 0

    record = calculator.calculate(RewardSourceKind.DIRECT, identity, epoch)
    print_record(record, store.path_for(identity, epoch))
    return 0


@contextmanager
def cancel_on_interrupt(cancel: Callable[[], None]):
    """Route Ctrl-C to ``cancel`` while a cancellable wait is in progress."""
    def handle_interrupt(signum, frame):
        bt.logging.warning("Interrupted, cancelling the running query")
        cancel()

    previous = signal.signal(signal.SIGINT, handle_interrupt)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def run_calculate_with_dune(args, rpc: SolanaRpcClient, store: RewardRecordStore, events_logger) -> int:
    identity = resolve_identity(args.identity)
    epoch = _resolve_epoch(rpc, args.epoch)

    registry = SourceRegistry()
    calculator = RewardCalculator(registry, store=store, events_logger=events_logger)

    if args.use_cached:
        existing = calculator.load_existing(identity, epoch)
        if existing is not None:
            print_record(existing, store.path_for(identity, epoch))
            return 0
        bt.logging.info(f"No cached record for epoch {epoch}, running the Dune query")

    source = DuneRewardSource(DuneClient(args.dune_api_key), timeout=args.timeout)
    registry.register_source(source)

    with cancel_on_interrupt(source.cancel):
        record = calculator.calculate(RewardSourceKind.ANALYTICS_QUERY, identity, epoch)
    print_record(record, store.path_for(identity, epoch))
    return 0


def run_transfer(args, rpc: SolanaRpcClient, store: RewardRecordStore, events_logger) -> int:
    payer = load_keypair(args.payer, name="payer keypair")
    identity = resolve_identity(args.identity) if args.identity else payer.pubkey()
    stake_pool = parse_pubkey(args.stake_pool, name="stake pool")
    split_params = SplitParameters(
        total_rewards_pct=parse_percentage(args.total_rewards_pct, "total-rewards-pct"),
        lst_rewards_pct=parse_percentage(args.lst_rewards_pct, "lst-rewards-pct"),
    )
    epoch = _resolve_epoch(rpc, args.epoch)

    sender = TransactionSender(rpc, send_mode=TxSendMode(args.send_mode), fee_limit_cb=args.fee_limit_cb)
    executor = TransferExecutor(rpc, sender, store=store, events_logger=events_logger)

    try:
        plan = executor.plan(identity, epoch, stake_pool, split_params, payer.pubkey())
    except ZeroTransferAmount as e:
        print(f"Nothing to transfer: {e}")
        return 0

    lst = find_lst_for_pool(stake_pool)
    lst_label = f"{lst[0]} ({lst[1]})" if lst else "unknown LST"
    split = plan.split
    rows = [
        ("Epoch", plan.record.epoch),
        ("Total block rewards", lamports_to_sol(split.total_reward_lamports)),
        (f"Stake pool share ({format_pct(split.total_rewards_pct)})", lamports_to_sol(split.stake_pool_rewards)),
        (f"LST holder share ({format_pct(split.lst_rewards_pct)})", lamports_to_sol(split.transfer_amount)),
        ("Stake pool", f"{stake_pool} - {lst_label}"),
        ("Payer", str(plan.payer)),
    ]
    if plan.payer_balance is not None:
        rows.append(("Payer balance before", lamports_to_sol(plan.payer_balance)))
        rows.append(("Payer balance after", lamports_to_sol(plan.payer_balance - plan.transfer_amount)))
    print_section("Transfer summary", rows, footer=f"Send mode: {args.send_mode}")

    if not args.yes and not confirm(f"Transfer {lamports_to_sol(plan.transfer_amount)} to the reserve?"):
        print("Aborted.")
        return 0

    outcome = executor.submit(plan, payer)
    if outcome.transaction_signature:
        print(f"Transferred {lamports_to_sol(outcome.amount_transferred)}: {outcome.transaction_signature}")
    else:
        print(outcome.detail or f"No transaction submitted ({outcome.send_mode})")
    return 0


def run_sign(args) -> int:
    keypair = load_keypair(args.identity, name="identity keypair")
    endorsement = EndorsementSigner().sign(keypair, args.message)
    print_section("Endorsement", [
        ("Identity", str(endorsement.signer_pubkey)),
        ("Message", endorsement.message_bytes.decode("utf-8", errors="replace")),
        ("Signature", str(endorsement.signature)),
    ])
    return 0


def run_verify(args) -> int:
    identity = parse_pubkey(args.identity, name="identity pubkey")
    if EndorsementSigner().verify(identity, args.signature, args.message):
        print(f"Signature is valid for {identity}")
        return 0
    print(f"Signature is NOT valid for {identity}", file=sys.stderr)
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)

    if args.trace:
        bt.logging.set_trace(True)
    elif args.debug:
        bt.logging.set_debug(True)

    try:
        if args.command == "sign":
            return run_sign(args)
        if args.command == "verify":
            return run_verify(args)

        store = RewardRecordStore(args.rewards_dir)
        events_logger = setup_events_logger(str(store.base_dir), config.EVENTS_RETENTION_SIZE)
        rpc = SolanaRpcClient(args.rpc_url, commitment=args.commitment)

        handlers = {
            "calculate": run_calculate,
            "calculate-with-dune": run_calculate_with_dune,
            "transfer": run_transfer,
        }
        return handlers[args.command](args, rpc, store, events_logger)

    except RewardsError as e:
        print(f"Error [{e.code}]: {e}", file=sys.stderr)
        return e.exit_code
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
