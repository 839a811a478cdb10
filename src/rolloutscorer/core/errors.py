"""
Error taxonomy and exit codes for rollout scoring runs.

Exit Codes:
- 0: Success
- 2: Blocked (another run holds the run lock)
- 10: Configuration error (missing service/instance config, bad scoring config)
- 11: Provider error (record store, credential store, publication failure)
- 12: Invalid rollout input (recoverable per group)
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for scheduled and console runs."""

    SUCCESS = 0
    BLOCKED = 2
    CONFIG_ERROR = 10
    PROVIDER_ERROR = 11
    INVALID_ROLLOUT = 12
    UNKNOWN_ERROR = 127


class RolloutScorerError(Exception):
    """Base exception for rollout scorer errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(RolloutScorerError):
    """Raised when scoring or runtime configuration cannot be resolved."""

    exit_code = ExitCode.CONFIG_ERROR


class ProviderError(RolloutScorerError):
    """Raised when an external collaborator (store, vault, GitHub) fails."""

    exit_code = ExitCode.PROVIDER_ERROR


class InvalidRolloutError(RolloutScorerError):
    """Raised by a scoring function when a rollout's input is malformed."""

    exit_code = ExitCode.INVALID_ROLLOUT


class BlockedError(RolloutScorerError):
    """Raised when another scoring run already holds the run lock."""

    exit_code = ExitCode.BLOCKED


F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for entry points that converts exceptions to exit codes.

    Exit codes:
        - RolloutScorerError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except RolloutScorerError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=e.exit_code,
                        **e.details,
                    )
                print(f"error: {format_error_message(e)}", file=sys.stderr)
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=ExitCode.UNKNOWN_ERROR,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: RolloutScorerError) -> str:
    """Format an error message for display to operators."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
