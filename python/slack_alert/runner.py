"""
Entry point for the slack alert bridge.

Loads the configuration, opens the broker session, sends one alert, and
shuts the session down. Any stage failure is reported as a FatalError.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import TYPE_CHECKING

from slack_alert import __version__
from slack_alert.alerting import SlackNotifier
from slack_alert.broker import BrokerSession
from slack_alert.config import default_config_path, load_config
from slack_alert.exceptions import (
    BrokerError,
    ConfigurationError,
    FatalError,
    NotifyError,
)
from slack_alert.logging import get_logger, setup_logging

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    import httpx

    from slack_alert.alerting import AlertPayload, DeliveryResult

logger = get_logger(__name__)

PROGRAM_NAME = "2steps-slack-alert"
EXCHANGE_NAME = "2steps"
QUEUE_NAME = "slack_alerts"


async def run(
    config_path: str | Path,
    broker_url: str | None = None,
    payload: AlertPayload | None = None,
    client: httpx.AsyncClient | None = None,
) -> DeliveryResult:
    """
    Run the bridge once.

    Args:
        config_path: Path to the YAML configuration file.
        broker_url: Broker URI. Resolved from AMQP_ADDR when None.
        payload: Alert to send. The default alert when None.
        client: Optional HTTP client for the webhook call.

    Returns:
        Outcome of the webhook call. A rejection is not an error.

    Raises:
        FatalError: If configuration, broker setup or the webhook transport fails.
    """
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        raise FatalError.from_stage("config", "Unable to load configuration", e) from e

    try:
        async with BrokerSession(EXCHANGE_NAME, QUEUE_NAME, url=broker_url):
            notifier = SlackNotifier(config.webhook_url, client=client)
            return await notifier.send(payload)
    except BrokerError as e:
        raise FatalError.from_stage("broker", "Failed to initialize rabbit", e) from e
    except NotifyError as e:
        raise FatalError.from_stage("notify", "Failed sending to slack", e) from e


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=PROGRAM_NAME,
        description="Publish 2 Steps alerts to slack",
    )
    parser.add_argument(
        "-c", "--config",
        default=default_config_path(),
        metavar="PATH",
        help="set path to configuration file (default: %(default)s)",
    )
    return parser.parse_args(argv)


def main(
    argv: Sequence[str] | None = None,
    init_logging: Callable[[], None] = setup_logging,
) -> int:
    """
    Command line entry point.

    Returns:
        0 once the alert was sent, whether or not Slack accepted it;
        1 on a fatal error.
    """
    init_logging()
    args = parse_args(argv)

    logger.info("starting", version=__version__, config=args.config)
    try:
        result = asyncio.run(run(args.config))
    except FatalError as e:
        logger.error("run_failed", stage=e.stage, error=e.to_dict())
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    logger.info("run_completed", delivery=result.to_dict())
    return 0


if __name__ == "__main__":
    sys.exit(main())
