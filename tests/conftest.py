import pytest
from typing import Generator

from tests.fake.fake_relay import FakeRelay
from tests.fake.fake_transport import FakeTransport

from pineipc.core.client import PineClient
from pineipc.core.models.config import ClientConfig


@pytest.fixture
def relay() -> FakeRelay:
    return FakeRelay()


@pytest.fixture
def transport(relay) -> FakeTransport:
    return FakeTransport(relay)


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(max_batch_commands=16)


@pytest.fixture
def client(config, transport) -> Generator[PineClient, None, None]:
    client = PineClient(config, transport=transport)
    try:
        yield client
    finally:
        client.close()
