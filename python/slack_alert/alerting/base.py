"""
Common types for webhook delivery.

A delivery either reaches the webhook and gets a status back, which is
recorded as a DeliveryResult, or fails in transport, which raises
NotifyError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class DeliveryStatus(str, Enum):
    """Outcome of a webhook call that received an HTTP response."""

    ACKNOWLEDGED = "acknowledged"
    REJECTED = "rejected"


@dataclass
class DeliveryResult:
    """
    Result of an alert delivery attempt.

    Attributes:
        status: Whether the webhook accepted the alert.
        status_code: HTTP status returned by the webhook.
        body: Response body, truncated.
        delivered_at: When the response was received.
    """

    status: DeliveryStatus
    status_code: int
    body: str = ""
    delivered_at: datetime = field(
        default_factory=lambda: datetime.now(tz=timezone.utc)
    )

    @classmethod
    def acknowledged(cls, status_code: int = 200, body: str = "") -> DeliveryResult:
        return cls(status=DeliveryStatus.ACKNOWLEDGED, status_code=status_code, body=body)

    @classmethod
    def rejected(cls, status_code: int, body: str = "") -> DeliveryResult:
        return cls(status=DeliveryStatus.REJECTED, status_code=status_code, body=body)

    @property
    def is_success(self) -> bool:
        """Check if the webhook acknowledged the alert."""
        return self.status == DeliveryStatus.ACKNOWLEDGED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "status": self.status.value,
            "status_code": self.status_code,
            "body": self.body,
            "delivered_at": self.delivered_at.isoformat(),
        }
