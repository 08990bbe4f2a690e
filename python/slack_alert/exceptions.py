"""
Exception hierarchy for the slack alert bridge.

- SlackAlertError: Base exception for all bridge errors
- ConfigurationError: Configuration file cannot be read, parsed or used
- BrokerError: AMQP connection, channel, declaration or consumer failures
- NotifyError: Webhook transport failures
- FatalError: A stage failure surfaced as the single process-level error

Each exception includes:
- error_code: Machine-readable error identifier
- context: Additional structured data for debugging
- is_retryable: Whether the operation can be retried
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable error codes for categorization and monitoring."""

    # Configuration errors (1xxx)
    CONFIG_UNREADABLE = "ALERT_1001"
    CONFIG_MALFORMED = "ALERT_1002"
    CONFIG_MISSING_FIELD = "ALERT_1003"

    # Broker errors (2xxx)
    BROKER_CONNECTION_FAILED = "ALERT_2001"
    BROKER_CHANNEL_FAILED = "ALERT_2002"
    BROKER_DECLARE_FAILED = "ALERT_2003"
    BROKER_CONSUME_FAILED = "ALERT_2004"

    # Notification errors (3xxx)
    NOTIFY_TRANSPORT_FAILURE = "ALERT_3001"

    # Run errors (9xxx)
    RUN_FAILED = "ALERT_9001"
    UNKNOWN = "ALERT_9999"


@dataclass
class SlackAlertError(Exception):
    """
    Base exception for all slack alert errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error identifier
        context: Additional structured data for debugging
        is_retryable: Whether the operation can be safely retried
        cause: Original exception that caused this error
    """

    message: str
    error_code: ErrorCode = ErrorCode.UNKNOWN
    context: dict[str, Any] = field(default_factory=dict)
    is_retryable: bool = False
    cause: Exception | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.error_code.value}] {self.message}"]
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f" ({context_str})")
        return "".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"context={self.context!r}, "
            f"is_retryable={self.is_retryable})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code.value,
            "message": self.message,
            "context": self.context,
            "is_retryable": self.is_retryable,
            "cause": str(self.cause) if self.cause else None,
        }


@dataclass
class ConfigurationError(SlackAlertError):
    """Raised when the configuration file cannot be loaded."""

    error_code: ErrorCode = ErrorCode.CONFIG_MALFORMED

    @classmethod
    def unreadable(
        cls, path: str, reason: str, cause: Exception | None = None
    ) -> ConfigurationError:
        """Create error for a missing or unreadable configuration file."""
        return cls(
            message=f"Unable to read configuration: {reason}",
            error_code=ErrorCode.CONFIG_UNREADABLE,
            context={"path": path},
            cause=cause,
        )

    @classmethod
    def malformed(
        cls, path: str, reason: str, cause: Exception | None = None
    ) -> ConfigurationError:
        """Create error for a configuration file that is not valid YAML."""
        return cls(
            message=f"Unable to parse configuration: {reason}",
            error_code=ErrorCode.CONFIG_MALFORMED,
            context={"path": path},
            cause=cause,
        )

    @classmethod
    def missing_field(cls, path: str, field: str) -> ConfigurationError:
        """Create error for a required field that is absent or not a string."""
        return cls(
            message=f"Configuration missing required field '{field}'",
            error_code=ErrorCode.CONFIG_MISSING_FIELD,
            context={"path": path, "field": field},
        )


@dataclass
class BrokerError(SlackAlertError):
    """Raised when the broker session cannot be established."""

    error_code: ErrorCode = ErrorCode.BROKER_CONNECTION_FAILED
    is_retryable: bool = True

    @classmethod
    def connection_failed(
        cls, address: str, reason: str, cause: Exception | None = None
    ) -> BrokerError:
        """Create error for connection failure."""
        return cls(
            message=f"Failed to connect to {address}: {reason}",
            error_code=ErrorCode.BROKER_CONNECTION_FAILED,
            context={"address": address, "reason": reason},
            cause=cause,
        )

    @classmethod
    def channel_failed(cls, reason: str, cause: Exception | None = None) -> BrokerError:
        """Create error for channel creation failure."""
        return cls(
            message=f"Failed to open channel: {reason}",
            error_code=ErrorCode.BROKER_CHANNEL_FAILED,
            context={"reason": reason},
            cause=cause,
        )

    @classmethod
    def declare_failed(
        cls, kind: str, name: str, reason: str, cause: Exception | None = None
    ) -> BrokerError:
        """Create error for exchange or queue declaration failure."""
        return cls(
            message=f"Failed to declare {kind} '{name}': {reason}",
            error_code=ErrorCode.BROKER_DECLARE_FAILED,
            context={"kind": kind, "name": name, "reason": reason},
            is_retryable=False,
            cause=cause,
        )

    @classmethod
    def consume_failed(
        cls, queue: str, consumer_tag: str, reason: str, cause: Exception | None = None
    ) -> BrokerError:
        """Create error for consumer registration failure."""
        return cls(
            message=f"Failed to consume from '{queue}': {reason}",
            error_code=ErrorCode.BROKER_CONSUME_FAILED,
            context={"queue": queue, "consumer_tag": consumer_tag, "reason": reason},
            cause=cause,
        )


@dataclass
class NotifyError(SlackAlertError):
    """Raised when the webhook cannot be reached."""

    error_code: ErrorCode = ErrorCode.NOTIFY_TRANSPORT_FAILURE
    is_retryable: bool = True

    @classmethod
    def transport_failure(
        cls, url: str, reason: str, cause: Exception | None = None
    ) -> NotifyError:
        """Create error for network or transport failure."""
        return cls(
            message=f"Webhook request failed: {reason}",
            error_code=ErrorCode.NOTIFY_TRANSPORT_FAILURE,
            context={"url": url, "reason": reason},
            cause=cause,
        )


@dataclass
class FatalError(SlackAlertError):
    """Raised by the runner when any stage aborts the run."""

    error_code: ErrorCode = ErrorCode.RUN_FAILED
    stage: str = "unknown"

    @classmethod
    def from_stage(cls, stage: str, summary: str, error: SlackAlertError) -> FatalError:
        """Wrap a stage failure into the single process-level error."""
        return cls(
            message=f"{summary}: {error.message}",
            context={"stage": stage, "cause_code": error.error_code.value},
            is_retryable=error.is_retryable,
            cause=error,
            stage=stage,
        )
