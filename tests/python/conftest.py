"""Pytest configuration for Python tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import aio_pika
import pytest
from aio_pika.exceptions import AMQPError


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: marks tests that open real sockets")


class FakeQueue:
    """Queue double recording consume calls."""

    def __init__(self, name: str, broker: FakeBroker) -> None:
        self.name = name
        self._broker = broker
        self.callback: Any = None

    async def consume(self, callback: Any, consumer_tag: str | None = None, **kwargs: Any) -> str:
        self._broker.record("queue.consume", self.name, consumer_tag)
        self.callback = callback
        return consumer_tag or "amq.ctag-generated"


class FakeChannel:
    """Channel double recording declarations and close."""

    def __init__(self, broker: FakeBroker) -> None:
        self._broker = broker

    async def declare_exchange(self, name: str, type: Any = None, **kwargs: Any) -> Any:
        self._broker.record("channel.declare_exchange", name, type)
        return {"name": name, "type": type}

    async def declare_queue(self, name: str, **kwargs: Any) -> FakeQueue:
        self._broker.record("channel.declare_queue", name)
        self._broker.queue = FakeQueue(name, self._broker)
        return self._broker.queue

    async def close(self) -> None:
        self._broker.record("channel.close")


class FakeConnection:
    """Connection double recording channel creation and close."""

    def __init__(self, broker: FakeBroker) -> None:
        self._broker = broker

    async def channel(self) -> FakeChannel:
        self._broker.record("connection.channel")
        return FakeChannel(self._broker)

    async def close(self) -> None:
        self._broker.record("connection.close")


class FakeBroker:
    """
    In-memory stand-in for aio_pika.connect.

    Every call is appended to ``calls`` in order. Names listed in
    ``fail_on`` raise when reached.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.fail_on: dict[str, BaseException] = {}
        self.queue: FakeQueue | None = None

    def record(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise self.fail_on[name]

    def fail(self, name: str, error: BaseException | None = None) -> None:
        self.fail_on[name] = error or AMQPError(f"{name} failed")

    @property
    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    async def connect(self, url: str, **kwargs: Any) -> FakeConnection:
        self.record("connect", url)
        return FakeConnection(self)


@pytest.fixture
def fake_broker(monkeypatch: pytest.MonkeyPatch) -> FakeBroker:
    """Replace aio_pika.connect with an in-memory broker."""
    broker = FakeBroker()
    monkeypatch.setattr(aio_pika, "connect", broker.connect)
    return broker


@pytest.fixture
def write_config(tmp_path: Path):
    """Write a configuration file and return its path."""

    def _write(content: str, name: str = "2steps-slack-alert.conf") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def webhook_url() -> str:
    return "http://localhost:9999/hook"


@pytest.fixture
def config_file(write_config, webhook_url: str) -> Path:
    """A valid configuration pointing at the test webhook."""
    return write_config(f'slack:\n  url: "{webhook_url}"\n')
