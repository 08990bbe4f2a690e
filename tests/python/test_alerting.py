"""
Unit tests for the alerting module.

Tests the Slack payload, delivery result types and the webhook notifier.
HTTP calls are intercepted with respx.
"""

from __future__ import annotations

import json

import httpx
import pytest
import respx
from httpx import Response

from slack_alert.alerting import (
    AlertPayload,
    DeliveryResult,
    DeliveryStatus,
    SlackNotifier,
    build_alert_payload,
)
from slack_alert.exceptions import ErrorCode, NotifyError

WEBHOOK_URL = "https://hooks.slack.com/services/T000/B000/XXXX"

EXPECTED_BODY = {
    "blocks": [
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": "*Foo Failed*"},
        },
        {"type": "divider"},
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": ">Reason: the fleem is flocked"},
            "accessory": {
                "type": "button",
                "text": {"type": "plain_text", "emoji": True, "text": "Handle"},
                "value": "handled something",
            },
        },
    ]
}


# =============================================================================
# AlertPayload Tests
# =============================================================================


class TestAlertPayload:
    """Tests for the Slack blocks payload."""

    def test_default_payload(self) -> None:
        """The default alert renders the fixed message."""
        assert AlertPayload().to_dict() == EXPECTED_BODY

    def test_build_alert_payload(self) -> None:
        """Each build returns a new default alert."""
        first = build_alert_payload()
        second = build_alert_payload()

        assert first == second
        assert first is not second
        assert first.to_dict() == EXPECTED_BODY

    def test_custom_content(self) -> None:
        """Fields flow into the rendered blocks."""
        payload = AlertPayload(
            title="Bar Degraded",
            reason="queue depth 10k",
            action_text="Ack",
            action_value="acked",
        )

        blocks = payload.to_dict()["blocks"]

        assert blocks[0]["text"]["text"] == "*Bar Degraded*"
        assert blocks[1] == {"type": "divider"}
        assert blocks[2]["text"]["text"] == ">Reason: queue depth 10k"
        assert blocks[2]["accessory"]["text"]["text"] == "Ack"
        assert blocks[2]["accessory"]["value"] == "acked"

    def test_payload_is_frozen(self) -> None:
        payload = AlertPayload()
        with pytest.raises(AttributeError):
            payload.title = "changed"  # type: ignore[misc]


# =============================================================================
# DeliveryResult Tests
# =============================================================================


class TestDeliveryResult:
    """Tests for DeliveryResult."""

    def test_acknowledged(self) -> None:
        result = DeliveryResult.acknowledged(body="ok")
        assert result.status == DeliveryStatus.ACKNOWLEDGED
        assert result.status_code == 200
        assert result.is_success

    def test_rejected(self) -> None:
        result = DeliveryResult.rejected(503)
        assert result.status == DeliveryStatus.REJECTED
        assert result.status_code == 503
        assert not result.is_success

    def test_to_dict(self) -> None:
        d = DeliveryResult.rejected(404, "no_service").to_dict()
        assert d["status"] == "rejected"
        assert d["status_code"] == 404
        assert d["body"] == "no_service"
        assert "delivered_at" in d


# =============================================================================
# SlackNotifier Tests
# =============================================================================


class TestSlackNotifier:
    """Tests for SlackNotifier."""

    def test_missing_url(self) -> None:
        with pytest.raises(ValueError, match="webhook URL is required"):
            SlackNotifier("")

    @pytest.mark.asyncio
    @respx.mock
    async def test_send_acknowledged(self) -> None:
        """HTTP 200 is acknowledged and the fixed body is posted."""
        route = respx.post(WEBHOOK_URL).mock(return_value=Response(200, text="ok"))

        result = await SlackNotifier(WEBHOOK_URL).send()

        assert route.call_count == 1
        request = route.calls.last.request
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == EXPECTED_BODY
        assert result.status == DeliveryStatus.ACKNOWLEDGED
        assert result.body == "ok"

    @pytest.mark.asyncio
    @respx.mock
    async def test_send_rejected(self) -> None:
        """A non-200 status is returned as a rejection, not raised."""
        respx.post(WEBHOOK_URL).mock(return_value=Response(503, text="unavailable"))

        result = await SlackNotifier(WEBHOOK_URL).send()

        assert result.status == DeliveryStatus.REJECTED
        assert result.status_code == 503
        assert result.body == "unavailable"

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_ok_success_status_rejected(self) -> None:
        """Only 200 counts as acknowledged."""
        respx.post(WEBHOOK_URL).mock(return_value=Response(204))

        result = await SlackNotifier(WEBHOOK_URL).send()

        assert result.status == DeliveryStatus.REJECTED
        assert result.status_code == 204

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_failure(self) -> None:
        """Connection errors raise NotifyError with the cause attached."""
        respx.post(WEBHOOK_URL).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(NotifyError) as exc_info:
            await SlackNotifier(WEBHOOK_URL).send()

        assert exc_info.value.error_code == ErrorCode.NOTIFY_TRANSPORT_FAILURE
        assert isinstance(exc_info.value.cause, httpx.ConnectError)
        assert exc_info.value.context["url"] == WEBHOOK_URL

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout_is_transport_failure(self) -> None:
        respx.post(WEBHOOK_URL).mock(side_effect=httpx.ReadTimeout("slow"))

        with pytest.raises(NotifyError):
            await SlackNotifier(WEBHOOK_URL, timeout_seconds=0.1).send()

    @pytest.mark.asyncio
    @respx.mock
    async def test_invalid_url_is_transport_failure(self) -> None:
        """A URL httpx cannot parse fails before any request is sent."""
        url = "http://[::1/hook"

        with pytest.raises(NotifyError) as exc_info:
            await SlackNotifier(url).send()

        assert exc_info.value.error_code == ErrorCode.NOTIFY_TRANSPORT_FAILURE
        assert isinstance(exc_info.value.cause, httpx.InvalidURL)
        assert respx.calls.call_count == 0

    @pytest.mark.asyncio
    @respx.mock
    async def test_custom_payload(self) -> None:
        route = respx.post(WEBHOOK_URL).mock(return_value=Response(200))

        await SlackNotifier(WEBHOOK_URL).send(AlertPayload(title="Custom"))

        body = json.loads(route.calls.last.request.content)
        assert body["blocks"][0]["text"]["text"] == "*Custom*"

    @pytest.mark.asyncio
    @respx.mock
    async def test_injected_client(self) -> None:
        """A shared client is used and left open."""
        route = respx.post(WEBHOOK_URL).mock(return_value=Response(200))

        async with httpx.AsyncClient() as client:
            notifier = SlackNotifier(WEBHOOK_URL, client=client)
            await notifier.send()
            await notifier.send()
            assert not client.is_closed

        assert route.call_count == 2
