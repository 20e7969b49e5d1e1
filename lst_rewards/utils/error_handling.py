"""
Error taxonomy and logging helpers shared across the reward pipeline.

Every failure surfaced to the command boundary is a subclass of
``RewardsError``. Each category maps to a distinct exit status and each
concrete error carries a stable ``code`` so operators can script around
the output.
"""

import bittensor as bt
from typing import Any, Dict, Optional, Type


class RewardsError(Exception):
    """Base class for all pipeline failures."""

    code = "rewards_error"
    exit_code = 1

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({details})"


# Input validation

class InputValidationError(RewardsError, ValueError):
    code = "input_validation"
    exit_code = 2


class InvalidPercentage(InputValidationError):
    code = "invalid_percentage"


class InvalidPubkey(InputValidationError):
    code = "invalid_pubkey"


class InvalidEpoch(InputValidationError):
    code = "invalid_epoch"


class InvalidKeypairFile(InputValidationError):
    code = "invalid_keypair_file"


class InvalidStakePool(InputValidationError):
    code = "invalid_stake_pool"


# Data availability

class DataUnavailableError(RewardsError):
    code = "data_unavailable"
    exit_code = 3


class EpochNotFinalized(DataUnavailableError):
    code = "epoch_not_finalized"


class RecordNotFound(DataUnavailableError):
    code = "record_not_found"


class RecordCorrupted(DataUnavailableError):
    code = "record_corrupted"


class AmbiguousResult(DataUnavailableError):
    code = "ambiguous_result"


class QueryExecutionFailed(DataUnavailableError):
    code = "query_execution_failed"


class LeaderScheduleUnavailable(DataUnavailableError):
    code = "leader_schedule_unavailable"


# Timeouts

class RewardsTimeoutError(RewardsError):
    code = "timeout"
    exit_code = 4


class QueryTimeout(RewardsTimeoutError):
    code = "query_timeout"


class QueryCancelled(QueryTimeout):
    code = "query_cancelled"


class ConfirmationTimeout(RewardsTimeoutError):
    code = "confirmation_timeout"


# Chain interaction

class ChainSubmissionError(RewardsError):
    code = "chain_submission"
    exit_code = 5


class RpcRequestError(ChainSubmissionError):
    code = "rpc_request_failed"

    def __init__(self, message: str, rpc_code: Optional[int] = None, **context: Any):
        super().__init__(message, rpc_code=rpc_code, **context)
        self.rpc_code = rpc_code


class TransactionFailed(ChainSubmissionError):
    code = "transaction_failed"


# Computation

class ComputationError(RewardsError):
    code = "computation"
    exit_code = 6


class ZeroTransferAmount(ComputationError):
    """The split rounds down to zero lamports; nothing should be submitted."""

    code = "zero_transfer_amount"

    def __init__(self, message: str, split: Any = None, **context: Any):
        super().__init__(message, **context)
        self.split = split


class AmountOverflow(ComputationError):
    code = "amount_overflow"


SENSITIVE_KEYS = ('api_key', 'token', 'password', 'secret', 'x-dune-api-key')


def log_and_raise_api_error(
    error: Exception,
    endpoint: str,
    params: Optional[Dict[str, Any]] = None,
    context: str = "API call",
    error_cls: Type[RewardsError] = RpcRequestError,
) -> None:
    """
    Log API error with context and raise a typed pipeline error.

    Args:
        error: The original exception
        endpoint: API endpoint that failed
        params: Request parameters (will be sanitized)
        context: Additional context for the error
        error_cls: RewardsError subclass to raise

    Raises:
        RewardsError: Always raises ``error_cls`` chained from ``error``
    """
    # Sanitize params to avoid logging sensitive data
    safe_params = {}
    if params:
        safe_params = {k: v for k, v in params.items()
                       if k.lower() not in SENSITIVE_KEYS}

    bt.logging.error(
        f"{context} failed: {error}",
        extra={
            'endpoint': endpoint,
            'params': safe_params,
            'error_type': type(error).__name__
        }
    )

    raise error_cls(f"{context} failed for {endpoint}: {error}") from error


def log_and_raise_validation_error(
    message: str,
    data: Optional[Dict[str, Any]] = None,
    error_cls: Type[InputValidationError] = InputValidationError,
) -> None:
    """
    Log validation error with context and raise an InputValidationError.

    Args:
        message: Error message describing what validation failed
        data: Data that failed validation (will be truncated if large)
        error_cls: InputValidationError subclass to raise

    Raises:
        InputValidationError: Always raises ``error_cls``
    """
    # Truncate large data for logging
    safe_data = data
    if data and len(str(data)) > 200:
        safe_data = str(data)[:200] + "... (truncated)"

    bt.logging.error(
        f"Validation failed: {message}",
        extra={'validation_data': safe_data}
    )

    raise error_cls(message)


def log_and_raise_config_error(
    message: str,
    config_key: Optional[str] = None,
    config_value: Optional[str] = None
) -> None:
    """
    Log configuration error and raise InputValidationError.

    Args:
        message: Error message describing the configuration issue
        config_key: The configuration key that's problematic
        config_value: The problematic value (will be sanitized)

    Raises:
        InputValidationError: Always raises with formatted message
    """
    safe_value = config_value
    if config_value and any(sensitive in str(config_key).lower()
                            for sensitive in ['key', 'token', 'password', 'secret']):
        safe_value = '***REDACTED***'

    bt.logging.error(
        f"Configuration error: {message}",
        extra={'config_key': config_key, 'config_value': safe_value}
    )

    raise InputValidationError(f"{message} (config_key: {config_key})")
