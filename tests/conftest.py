"""Shared pytest fixtures for payment-channel tests."""

from __future__ import annotations

from typing import Callable

import pytest
from eth_utils import keccak

from hermespay.application.consumer.agent import ConsumerAgent
from hermespay.application.hermes.use_cases.exchange import HermesService
from hermespay.application.provider.agent import ProviderAgent
from hermespay.application.provider.invoices import InvoiceLedger
from hermespay.crypto.keys import Identity
from hermespay.infrastructure.hermes.channel_repository_impl import (
    InMemoryChannelStateRepository,
)
from tests.fixtures import InMemoryLedger


def _key(n: int) -> str:
    return "0x" + n.to_bytes(32, "big").hex()


@pytest.fixture
def deterministic_random() -> Callable[[int], bytes]:
    """Random source yielding keccak(counter) so preimages are reproducible."""
    counter = {"n": 0}

    def random_source(size: int) -> bytes:
        counter["n"] += 1
        return keccak(counter["n"].to_bytes(32, "big"))[:size]

    return random_source


@pytest.fixture
def consumer_identity() -> Identity:
    return Identity.from_hex(_key(1))


@pytest.fixture
def provider_identity() -> Identity:
    return Identity.from_hex(_key(2))


@pytest.fixture
def hermes_identity() -> Identity:
    return Identity.from_hex(_key(3))


@pytest.fixture
def stranger_identity() -> Identity:
    return Identity.from_hex(_key(4))


@pytest.fixture
def consumer_channel_id() -> str:
    return "0x1111111111111111111111111111111111111111"


@pytest.fixture
def ledger(hermes_identity: Identity) -> InMemoryLedger:
    return InMemoryLedger(hermes_identity.address)


@pytest.fixture
def consumer(
    consumer_identity: Identity, consumer_channel_id: str, ledger: InMemoryLedger
) -> ConsumerAgent:
    ledger.register_channel(consumer_identity.address, consumer_channel_id)
    return ConsumerAgent(consumer_identity, consumer_channel_id)


@pytest.fixture
def provider(
    provider_identity: Identity,
    ledger: InMemoryLedger,
    deterministic_random: Callable[[int], bytes],
) -> ProviderAgent:
    return ProviderAgent(
        provider_identity, ledger, InvoiceLedger(random_source=deterministic_random)
    )


@pytest.fixture
def channel_repository() -> InMemoryChannelStateRepository:
    return InMemoryChannelStateRepository()


@pytest.fixture
def hermes(
    hermes_identity: Identity,
    ledger: InMemoryLedger,
    channel_repository: InMemoryChannelStateRepository,
) -> HermesService:
    return HermesService(
        hermes_identity, ledger.hermes_address, ledger, ledger, channel_repository
    )
