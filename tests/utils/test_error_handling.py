"""Tests for the error taxonomy and error logging helpers."""

import pytest
import requests

from lst_rewards.utils.error_handling import (
    AmountOverflow,
    ChainSubmissionError,
    ComputationError,
    ConfirmationTimeout,
    DataUnavailableError,
    EpochNotFinalized,
    InputValidationError,
    InvalidPercentage,
    InvalidStakePool,
    LeaderScheduleUnavailable,
    QueryCancelled,
    QueryExecutionFailed,
    QueryTimeout,
    RecordNotFound,
    RewardsError,
    RewardsTimeoutError,
    RpcRequestError,
    TransactionFailed,
    ZeroTransferAmount,
    log_and_raise_api_error,
    log_and_raise_config_error,
    log_and_raise_validation_error,
)


@pytest.mark.parametrize("error_cls,category,exit_code", [
    (InvalidPercentage, InputValidationError, 2),
    (InvalidStakePool, InputValidationError, 2),
    (EpochNotFinalized, DataUnavailableError, 3),
    (RecordNotFound, DataUnavailableError, 3),
    (QueryExecutionFailed, DataUnavailableError, 3),
    (LeaderScheduleUnavailable, DataUnavailableError, 3),
    (QueryTimeout, RewardsTimeoutError, 4),
    (QueryCancelled, RewardsTimeoutError, 4),
    (ConfirmationTimeout, RewardsTimeoutError, 4),
    (RpcRequestError, ChainSubmissionError, 5),
    (TransactionFailed, ChainSubmissionError, 5),
    (ZeroTransferAmount, ComputationError, 6),
    (AmountOverflow, ComputationError, 6),
])
def test_error_categories(error_cls, category, exit_code):
    error = error_cls("boom")

    assert isinstance(error, category)
    assert isinstance(error, RewardsError)
    assert error.exit_code == exit_code
    assert error.code


def test_input_validation_is_value_error():
    assert isinstance(InvalidPercentage("bad"), ValueError)


def test_context_is_rendered():
    error = RecordNotFound("No record", epoch=700, identity=None)

    assert error.context == {"epoch": 700}
    assert str(error) == "No record (epoch=700)"


def test_rpc_error_code():
    assert RpcRequestError("failed", rpc_code=-32007).rpc_code == -32007


def test_log_and_raise_api_error():
    cause = requests.exceptions.ConnectionError("Connection timeout")

    with pytest.raises(RpcRequestError) as exc_info:
        log_and_raise_api_error(cause, endpoint="https://rpc.example.com", context="RPC getBlock")

    assert "rpc.example.com" in str(exc_info.value)
    assert "Connection timeout" in str(exc_info.value)
    assert exc_info.value.__cause__ is cause


def test_log_and_raise_api_error_custom_class():
    with pytest.raises(QueryExecutionFailed):
        log_and_raise_api_error(
            Exception("Auth failed"),
            endpoint="https://api.dune.com",
            params={'api_key': 'secret123', 'epoch': 700},
            context="Dune query execution",
            error_cls=QueryExecutionFailed,
        )


def test_log_and_raise_validation_error_truncates_large_data():
    with pytest.raises(InputValidationError) as exc_info:
        log_and_raise_validation_error("Data too large", data={'data': 'x' * 1000})

    assert "Data too large" in str(exc_info.value)


def test_log_and_raise_validation_error_custom_class():
    with pytest.raises(InvalidStakePool):
        log_and_raise_validation_error("Not a pool", error_cls=InvalidStakePool)


def test_log_and_raise_config_error():
    with pytest.raises(InputValidationError) as exc_info:
        log_and_raise_config_error("Missing key", config_key="DUNE_API_KEY", config_value="abc")

    assert "DUNE_API_KEY" in str(exc_info.value)
    assert "abc" not in str(exc_info.value)
