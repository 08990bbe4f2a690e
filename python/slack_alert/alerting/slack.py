"""
Slack webhook notifier for alert delivery.

Posts the alert as JSON to a Slack incoming webhook and reports whether
Slack acknowledged it. A non-200 response is logged and returned, not raised.
"""

from __future__ import annotations

import httpx
import structlog

from slack_alert import __version__
from slack_alert.alerting.base import DeliveryResult
from slack_alert.alerting.payload import AlertPayload, build_alert_payload
from slack_alert.exceptions import NotifyError

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
MAX_BODY_LENGTH = 500


class SlackNotifier:
    """
    Slack incoming webhook notifier.

    A client may be injected for connection reuse; otherwise each send uses
    its own short-lived client.
    """

    def __init__(
        self,
        webhook_url: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize Slack notifier.

        Args:
            webhook_url: Slack incoming webhook URL.
            timeout_seconds: Request timeout.
            client: Optional shared HTTP client.
        """
        if not webhook_url:
            raise ValueError("Slack webhook URL is required")

        self.webhook_url = webhook_url
        self.timeout_seconds = timeout_seconds
        self._client = client
        self._logger = logger.bind(notifier="slack")

    async def send(self, payload: AlertPayload | None = None) -> DeliveryResult:
        """
        Post an alert to the webhook.

        Args:
            payload: Alert to send. A fresh default alert when omitted.

        Returns:
            Acknowledged on HTTP 200, rejected with the status otherwise.

        Raises:
            NotifyError: If the request could not be completed.
        """
        payload = payload or build_alert_payload()

        self._logger.debug("sending_alert", title=payload.title)
        try:
            response = await self._post(payload)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self._logger.error(
                "slack_connection_error",
                error_type=type(e).__name__,
                reason=str(e),
            )
            raise NotifyError.transport_failure(self.webhook_url, str(e), cause=e) from e

        body = response.text[:MAX_BODY_LENGTH]
        if response.status_code == httpx.codes.OK:
            self._logger.debug("slack_acknowledged")
            return DeliveryResult.acknowledged(response.status_code, body)

        self._logger.error(
            "slack_rejected",
            status_code=response.status_code,
            body=body,
        )
        return DeliveryResult.rejected(response.status_code, body)

    async def _post(self, payload: AlertPayload) -> httpx.Response:
        headers = {"User-Agent": f"2steps-slack-alert/{__version__}"}
        if self._client is not None:
            return await self._client.post(
                self.webhook_url, json=payload.to_dict(), headers=headers
            )

        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            return await client.post(
                self.webhook_url, json=payload.to_dict(), headers=headers
            )
