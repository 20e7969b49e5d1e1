"""Reward source backed by a saved Dune Analytics query."""

from typing import Any, Dict, List, Optional

import bittensor as bt
from solders.pubkey import Pubkey

from lst_rewards.clients.dune_client import FAILED_STATES, STATE_COMPLETED, DuneClient
from lst_rewards.utils.config import DUNE_DEFAULT_TIMEOUT, DUNE_POLL_INTERVAL, DUNE_QUERY_ID
from lst_rewards.utils.error_handling import AmbiguousResult, QueryExecutionFailed

from .interfaces.reward_source import RewardSource
from .models.reward_record import RewardSourceKind
from .utils.query_poller import QueryPoller


class DuneRewardSource(RewardSource):
    """
    Runs the block-rewards query for (identity, epoch) and waits for the result.

    The analytics index lags the ledger by hours; choosing an epoch that is
    old enough is left to the caller.
    """

    def __init__(
        self,
        client: DuneClient,
        query_id: int = DUNE_QUERY_ID,
        timeout: float = DUNE_DEFAULT_TIMEOUT,
        poller: Optional[QueryPoller] = None,
    ):
        self.client = client
        self.query_id = query_id
        self.timeout = timeout
        self.poller = poller or QueryPoller(interval=DUNE_POLL_INTERVAL)

    def source_kind(self) -> RewardSourceKind:
        return RewardSourceKind.ANALYTICS_QUERY

    def cancel(self) -> None:
        self.poller.cancel()

    def _check_execution(self, execution_id: str) -> Optional[List[Dict[str, Any]]]:
        status = self.client.get_status(execution_id)
        state = status.get("state")

        if state in FAILED_STATES:
            error = status.get("error") or {}
            reason = error.get("message") if isinstance(error, dict) else error
            raise QueryExecutionFailed(
                f"Dune execution ended in state {state}" + (f": {reason}" if reason else ""),
                execution_id=execution_id,
            )

        if state == STATE_COMPLETED:
            return self.client.get_result_rows(execution_id)

        bt.logging.debug(f"Dune execution {execution_id} is {state}")
        return None

    @staticmethod
    def select_epoch_row(rows: List[Dict[str, Any]], epoch: int) -> int:
        """Pick the single row for ``epoch`` and return its block rewards."""
        matching = [row for row in rows if _as_int(row.get("epoch")) == epoch]
        if len(matching) != 1:
            raise AmbiguousResult(
                f"Expected exactly one result row for epoch {epoch}, got {len(matching)}",
                epoch=epoch,
            )

        block_rewards = _as_int(matching[0].get("block_rewards"))
        if block_rewards is None or block_rewards < 0:
            raise QueryExecutionFailed(
                f"Invalid block_rewards value in result row: {matching[0].get('block_rewards')!r}",
                epoch=epoch,
            )
        return block_rewards

    def fetch_total_rewards(self, validator_identity: Pubkey, epoch: int) -> int:
        execution_id = self.client.execute_query(
            self.query_id,
            {"epoch": epoch, "identity_pubkey": str(validator_identity)},
        )

        bt.logging.info(f"Waiting for result of execution ID: {execution_id}")
        rows = self.poller.poll(
            lambda: self._check_execution(execution_id),
            timeout=self.timeout,
            description=f"Dune execution {execution_id}",
        )
        return self.select_epoch_row(rows, epoch)


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None
