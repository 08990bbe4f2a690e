"""
AMQP broker session.

A BrokerSession owns one connection and one channel, declares the alert
exchange and queue, and registers a consumer on that queue. Teardown closes
the channel before the connection and runs at most once.

Usage:
    async with BrokerSession("2steps", "slack_alerts") as session:
        assert session.is_ready
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING
from urllib.parse import urlsplit, urlunsplit

import aio_pika
from aio_pika import ExchangeType
from aio_pika.exceptions import AMQPError

from slack_alert.config import BrokerSettings
from slack_alert.exceptions import BrokerError
from slack_alert.logging import get_logger

if TYPE_CHECKING:
    from types import TracebackType

    from aio_pika.abc import (
        AbstractChannel,
        AbstractConnection,
        AbstractExchange,
        AbstractIncomingMessage,
        AbstractQueue,
    )

logger = get_logger(__name__)

DEFAULT_CONSUMER_TAG = "my tag"
CLOSE_CODE = 200
CLOSE_REASON = "client shut down"

BROKER_ERRORS = (AMQPError, OSError)
# A malformed URI fails in the URL parser before any socket is opened.
CONNECT_ERRORS = (*BROKER_ERRORS, ValueError)
UNPARSEABLE_ADDRESS = "<unparseable address>"


class SessionState(str, Enum):
    """Lifecycle states of a broker session, in order."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CHANNEL_OPEN = "channel_open"
    DECLARED = "declared"
    CONSUMER_REGISTERED = "consumer_registered"
    CLOSING = "closing"
    CLOSED = "closed"


def resolve_broker_address() -> str:
    """Broker URI from AMQP_ADDR, or the local default when unset."""
    return BrokerSettings().amqp_addr


def mask_address(address: str) -> str:
    """Hide the password of an AMQP URI for logs and error context."""
    try:
        parts = urlsplit(address)
    except ValueError:
        return UNPARSEABLE_ADDRESS
    if parts.password is None:
        return address
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit(parts._replace(netloc=netloc))


class BrokerSession:
    """
    Connection, channel, exchange, queue and consumer for one process run.

    The session is ready only once the consumer is registered. A failure at
    any step closes what was already opened and raises BrokerError.
    """

    def __init__(
        self,
        exchange_name: str,
        queue_name: str,
        url: str | None = None,
        consumer_tag: str = DEFAULT_CONSUMER_TAG,
    ) -> None:
        self.exchange_name = exchange_name
        self.queue_name = queue_name
        self.url = url or resolve_broker_address()
        self.consumer_tag = consumer_tag

        self._state = SessionState.DISCONNECTED
        self._connection: AbstractConnection | None = None
        self._channel: AbstractChannel | None = None
        self._exchange: AbstractExchange | None = None
        self._queue: AbstractQueue | None = None
        self._logger = logger.bind(
            exchange=exchange_name,
            queue=queue_name,
        )

    @classmethod
    async def connect(
        cls,
        exchange_name: str,
        queue_name: str,
        url: str | None = None,
        consumer_tag: str = DEFAULT_CONSUMER_TAG,
    ) -> BrokerSession:
        """Create a session and open it."""
        session = cls(exchange_name, queue_name, url=url, consumer_tag=consumer_tag)
        await session.open()
        return session

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == SessionState.CONSUMER_REGISTERED

    @property
    def exchange(self) -> AbstractExchange | None:
        return self._exchange

    @property
    def queue(self) -> AbstractQueue | None:
        return self._queue

    async def open(self) -> None:
        """
        Connect, open a channel, declare the exchange and queue, and consume.

        Raises:
            BrokerError: If any step fails.
            RuntimeError: If the session was already opened.
        """
        if self._state != SessionState.DISCONNECTED:
            raise RuntimeError(f"Broker session cannot be opened from state {self._state.value}")

        try:
            await self._open()
        except Exception:
            await self._release()
            self._state = SessionState.CLOSED
            raise

        self._logger.info(
            "broker_initialized",
            consumer_tag=self.consumer_tag,
        )

    async def _open(self) -> None:
        address = mask_address(self.url)

        self._state = SessionState.CONNECTING
        self._logger.debug("broker_connecting", address=address)
        try:
            self._connection = await aio_pika.connect(self.url)
        except CONNECT_ERRORS as e:
            raise BrokerError.connection_failed(address, str(e), cause=e) from e

        try:
            self._channel = await self._connection.channel()
        except BROKER_ERRORS as e:
            raise BrokerError.channel_failed(str(e), cause=e) from e
        self._state = SessionState.CHANNEL_OPEN

        try:
            self._exchange = await self._channel.declare_exchange(
                self.exchange_name,
                type=ExchangeType.HEADERS,
            )
        except BROKER_ERRORS as e:
            raise BrokerError.declare_failed(
                "exchange", self.exchange_name, str(e), cause=e
            ) from e

        try:
            self._queue = await self._channel.declare_queue(self.queue_name)
        except BROKER_ERRORS as e:
            raise BrokerError.declare_failed(
                "queue", self.queue_name, str(e), cause=e
            ) from e
        self._state = SessionState.DECLARED

        try:
            await self._queue.consume(self._on_message, consumer_tag=self.consumer_tag)
        except BROKER_ERRORS as e:
            raise BrokerError.consume_failed(
                self.queue_name, self.consumer_tag, str(e), cause=e
            ) from e
        self._state = SessionState.CONSUMER_REGISTERED

    async def _on_message(self, message: AbstractIncomingMessage) -> None:
        # Deliveries are left unacknowledged; the broker requeues them on close.
        self._logger.debug(
            "message_not_handled",
            delivery_tag=message.delivery_tag,
        )

    async def close(self) -> None:
        """Close the channel, then the connection. Safe to call more than once."""
        if self._state in (SessionState.CLOSING, SessionState.CLOSED):
            return

        self._state = SessionState.CLOSING
        await self._release()
        self._state = SessionState.CLOSED
        self._logger.info("broker_shut_down", code=CLOSE_CODE, reason=CLOSE_REASON)

    async def _release(self) -> None:
        channel, self._channel = self._channel, None
        connection, self._connection = self._connection, None

        if channel is not None:
            try:
                await channel.close()
            except Exception as e:
                self._logger.warning("channel_close_failed", error=str(e))

        if connection is not None:
            try:
                await connection.close()
            except Exception as e:
                self._logger.warning("connection_close_failed", error=str(e))

    async def __aenter__(self) -> BrokerSession:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

