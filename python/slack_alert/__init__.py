"""
2steps slack alert bridge.

Connects to the AMQP broker, declares the alert exchange, queue and
consumer, and publishes an alert to a Slack incoming webhook.
"""

__version__ = "1.0.0"
__all__ = [
    "alerting",
    "broker",
    "config",
    "exceptions",
    "logging",
    "runner",
]
