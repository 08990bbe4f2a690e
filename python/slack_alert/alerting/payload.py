"""
Slack alert message in Block Kit format.

The alert is a header section, a divider, and a reason section with a
button. Content is fixed; the fields exist so tests can vary it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class AlertPayload:
    """
    One Slack alert.

    Attributes:
        title: Bold headline text.
        reason: Quoted reason line.
        action_text: Button label.
        action_value: Value Slack sends back when the button is pressed.
    """

    title: str = "Foo Failed"
    reason: str = "the fleem is flocked"
    action_text: str = "Handle"
    action_value: str = "handled something"

    def to_dict(self) -> dict[str, Any]:
        """Render the Slack ``blocks`` message body."""
        return {
            "blocks": [
                {
                    "type": "section",
                    "text": {
                        "type": "mrkdwn",
                        "text": f"*{self.title}*",
                    },
                },
                {
                    "type": "divider",
                },
                {
                    "type": "section",
                    "text": {
                        "type": "mrkdwn",
                        "text": f">Reason: {self.reason}",
                    },
                    "accessory": {
                        "type": "button",
                        "text": {
                            "type": "plain_text",
                            "emoji": True,
                            "text": self.action_text,
                        },
                        "value": self.action_value,
                    },
                },
            ]
        }


def build_alert_payload() -> AlertPayload:
    """Build the default alert."""
    return AlertPayload()
