"""
Global pytest configuration and fixtures for fast test execution.

Blocks real HTTP traffic and sleeps so no test touches a live RPC node or
the Dune API.
"""

import pytest
from unittest.mock import patch, Mock
from solders.keypair import Keypair

from lst_rewards.reward_engine.utils.reward_store import RewardRecordStore


@pytest.fixture(autouse=True)
def mock_external_apis():
    """
    Auto-use fixture that mocks all outgoing HTTP calls.
    Tests that need specific payloads patch the client module directly.
    """
    with patch('requests.get') as mock_requests_get, \
         patch('requests.post') as mock_requests_post:

        mock_response = Mock()
        mock_response.status_code = 200
        mock_response.json.return_value = {"jsonrpc": "2.0", "id": 1, "result": None}
        mock_response.raise_for_status.return_value = None
        mock_requests_get.return_value = mock_response
        mock_requests_post.return_value = mock_response

        yield {
            'get': mock_requests_get,
            'post': mock_requests_post,
        }


@pytest.fixture(autouse=True)
def disable_delays():
    """
    Auto-use fixture that disables sleep calls, which also removes the
    backoff delays between tenacity retries.
    """
    with patch('time.sleep') as mock_sleep:
        mock_sleep.return_value = None
        yield mock_sleep


@pytest.fixture(autouse=True)
def fast_logging():
    """
    Reduce logging verbosity during tests for better performance.
    """
    import logging
    import bittensor as bt

    logging.getLogger().setLevel(logging.WARNING)
    bt.logging.set_debug(False)

    yield

    logging.getLogger().setLevel(logging.INFO)


@pytest.fixture
def identity_keypair():
    return Keypair()


@pytest.fixture
def payer_keypair():
    return Keypair()


@pytest.fixture
def record_store(tmp_path):
    """Reward record store rooted in a per-test temporary directory."""
    return RewardRecordStore(tmp_path / "rewards")
