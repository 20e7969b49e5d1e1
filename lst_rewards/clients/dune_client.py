"""
Dune Analytics API client.

Implements the three calls needed to run a saved, parameterised query:
execute, status and results. Status and results are read-only and retried
on transport errors; execute is submitted once.
"""

from typing import Any, Dict, List, Optional

import bittensor as bt
import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from lst_rewards.utils.config import DUNE_API_URL
from lst_rewards.utils.error_handling import (
    QueryExecutionFailed,
    log_and_raise_api_error,
    log_and_raise_config_error,
)

STATE_COMPLETED = "QUERY_STATE_COMPLETED"
FAILED_STATES = {
    "QUERY_STATE_FAILED",
    "QUERY_STATE_CANCELLED",
    "QUERY_STATE_EXPIRED",
}


class DuneClient:
    """Thin wrapper around the Dune v1 REST API."""

    def __init__(self, api_key: str, base_url: str = DUNE_API_URL, timeout: float = 30):
        self.api_key = (api_key or "").strip()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        if not self.api_key:
            log_and_raise_config_error(
                "A Dune API key is required (set DUNE_API_KEY or pass --dune-api-key)",
                config_key="DUNE_API_KEY",
            )

        self.headers = {
            "X-Dune-API-Key": self.api_key,
            "Content-Type": "application/json",
        }

    def execute_query(self, query_id: int, parameters: Optional[Dict[str, Any]] = None) -> str:
        """
        Start an execution of a saved query.

        Returns:
            The execution id
        """
        url = f"{self.base_url}/query/{query_id}/execute"
        body = {"query_parameters": parameters or {}}
        try:
            response = requests.post(url, headers=self.headers, json=body, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            log_and_raise_api_error(e, url, body["query_parameters"],
                                    context="Dune query execution", error_cls=QueryExecutionFailed)

        execution_id = data.get("execution_id")
        if not execution_id:
            raise QueryExecutionFailed(f"Dune did not return an execution id: {data}", query_id=query_id)

        bt.logging.info(f"Started Dune execution {execution_id} for query {query_id}")
        return execution_id

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        retry=retry_if_exception_type(requests.exceptions.RequestException),
        reraise=True,
    )
    def _get(self, path: str) -> Dict[str, Any]:
        response = requests.get(f"{self.base_url}{path}", headers=self.headers, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def get_status(self, execution_id: str) -> Dict[str, Any]:
        """Return the raw status payload (``state``, ``error``, ...)."""
        path = f"/execution/{execution_id}/status"
        try:
            return self._get(path)
        except requests.exceptions.RequestException as e:
            log_and_raise_api_error(e, f"{self.base_url}{path}",
                                    context="Dune status check", error_cls=QueryExecutionFailed)

    def get_result_rows(self, execution_id: str) -> List[Dict[str, Any]]:
        path = f"/execution/{execution_id}/results"
        try:
            data = self._get(path)
        except requests.exceptions.RequestException as e:
            log_and_raise_api_error(e, f"{self.base_url}{path}",
                                    context="Dune results fetch", error_cls=QueryExecutionFailed)

        result = data.get("result") or {}
        rows = result.get("rows")
        if not isinstance(rows, list):
            raise QueryExecutionFailed("Dune results payload has no rows", execution_id=execution_id)
        return rows
