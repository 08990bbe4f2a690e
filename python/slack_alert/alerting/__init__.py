"""
Alert delivery for the slack alert bridge.

- AlertPayload: the Slack Block Kit message
- SlackNotifier: posts the message to an incoming webhook
- DeliveryResult: acknowledged or rejected outcome of a post
"""

from slack_alert.alerting.base import DeliveryResult, DeliveryStatus
from slack_alert.alerting.payload import AlertPayload, build_alert_payload
from slack_alert.alerting.slack import SlackNotifier

__all__ = [
    "AlertPayload",
    "DeliveryResult",
    "DeliveryStatus",
    "SlackNotifier",
    "build_alert_payload",
]
