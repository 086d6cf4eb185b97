"""Unit tests for the provider agent."""

import pytest

from hermespay.application.consumer.agent import ConsumerAgent
from hermespay.application.provider.agent import ProviderAgent
from hermespay.crypto.encoding import hash_message
from hermespay.crypto.keys import Identity
from hermespay.crypto.promises import create_promise
from hermespay.domain.entities import Promise
from hermespay.domain.errors import (
    AgreementMismatchError,
    HashlockReplayError,
    ReceiverMismatchError,
    SignatureMismatchError,
    UnknownInvoiceError,
)
from tests.fixtures import InMemoryLedger

CHANNEL_ID = "0x" + "aa" * 32


def _promise(signer: Identity, amount: int, seed: int = 1) -> Promise:
    return create_promise(
        1, CHANNEL_ID, amount, 0, hash_message(seed.to_bytes(32, "big")), signer
    )


class TestValidateExchangeMessage:
    """Test ProviderAgent.validate_exchange_message."""

    def test_round_trip_succeeds(
        self, consumer: ConsumerAgent, provider: ProviderAgent
    ) -> None:
        invoice = provider.generate_invoice(1000)
        msg = consumer.create_exchange_msg(invoice, provider.address)
        provider.validate_exchange_message(msg, consumer.identity.address)

    def test_wrong_payer_key_fails(
        self,
        consumer: ConsumerAgent,
        provider: ProviderAgent,
        stranger_identity: Identity,
    ) -> None:
        invoice = provider.generate_invoice(1000)
        msg = consumer.create_exchange_msg(invoice, provider.address)
        with pytest.raises(SignatureMismatchError):
            provider.validate_exchange_message(msg, stranger_identity.address)

    def test_message_for_other_receiver_fails(
        self,
        consumer: ConsumerAgent,
        provider: ProviderAgent,
        stranger_identity: Identity,
    ) -> None:
        invoice = provider.generate_invoice(1000)
        msg = consumer.create_exchange_msg(invoice, stranger_identity.address)
        with pytest.raises(ReceiverMismatchError):
            provider.validate_exchange_message(msg, consumer.identity.address)

    def test_tampered_agreement_total_fails_signature(
        self, consumer: ConsumerAgent, provider: ProviderAgent
    ) -> None:
        invoice = provider.generate_invoice(1000)
        msg = consumer.create_exchange_msg(invoice, provider.address)
        tampered = msg.model_copy(update={"agreement_total": 10})
        with pytest.raises(SignatureMismatchError):
            provider.validate_exchange_message(tampered, consumer.identity.address)

    def test_underpaying_invoice_fails(
        self, consumer: ConsumerAgent, provider: ProviderAgent
    ) -> None:
        invoice = provider.generate_invoice(1000)
        short = invoice.to_payment_request().model_copy(update={"agreement_total": 900})
        msg = consumer.create_exchange_msg(short, provider.address)
        with pytest.raises(AgreementMismatchError):
            provider.validate_exchange_message(msg, consumer.identity.address)

    def test_unknown_hashlock_fails(
        self, consumer: ConsumerAgent, provider: ProviderAgent
    ) -> None:
        invoice = provider.generate_invoice(1000)
        forged = invoice.to_payment_request().model_copy(
            update={"hashlock": hash_message(b"other")}
        )
        msg = consumer.create_exchange_msg(forged, provider.address)
        with pytest.raises(UnknownInvoiceError):
            provider.validate_exchange_message(msg, consumer.identity.address)

    def test_replayed_message_fails(
        self, consumer: ConsumerAgent, provider: ProviderAgent
    ) -> None:
        invoice = provider.generate_invoice(1000)
        msg = consumer.create_exchange_msg(invoice, provider.address)
        provider.validate_exchange_message(msg, consumer.identity.address)
        with pytest.raises(HashlockReplayError):
            provider.validate_exchange_message(msg, consumer.identity.address)


class TestPromises:
    """Test promise bookkeeping on the provider."""

    def test_biggest_promise(
        self, provider: ProviderAgent, hermes_identity: Identity
    ) -> None:
        for seed, amount in enumerate([100, 250, 180], start=1):
            provider.save_promise(_promise(hermes_identity, amount, seed))
        biggest = provider.get_biggest_promise()
        assert biggest is not None
        assert biggest.amount == 250

    def test_biggest_promise_when_empty(self, provider: ProviderAgent) -> None:
        assert provider.get_biggest_promise() is None

    def test_accept_promise_checks_signer(
        self,
        provider: ProviderAgent,
        hermes_identity: Identity,
        stranger_identity: Identity,
    ) -> None:
        with pytest.raises(SignatureMismatchError):
            provider.accept_promise(
                _promise(stranger_identity, 10), hermes_identity.address
            )
        assert provider.promises == []
        provider.accept_promise(_promise(hermes_identity, 10), hermes_identity.address)
        assert len(provider.promises) == 1


class TestSettlePromise:
    """Test ProviderAgent.settle_promise."""

    @pytest.mark.asyncio
    async def test_settles_biggest_promise_with_invoice_preimage(
        self,
        provider: ProviderAgent,
        hermes_identity: Identity,
        ledger: InMemoryLedger,
    ) -> None:
        invoice = provider.generate_invoice(100)
        small = create_promise(
            1, CHANNEL_ID, 50, 0, invoice.hashlock, hermes_identity, provider.address
        )
        big = create_promise(
            1, CHANNEL_ID, 100, 0, invoice.hashlock, hermes_identity, provider.address
        )
        provider.save_promise(big)
        provider.save_promise(small)

        await provider.settle_promise()

        assert ledger.settlements == [
            (provider.address, 100, 0, invoice.preimage, big.signature)
        ]

    @pytest.mark.asyncio
    async def test_unknown_invoice_raises(
        self,
        provider: ProviderAgent,
        hermes_identity: Identity,
        ledger: InMemoryLedger,
    ) -> None:
        provider.save_promise(_promise(hermes_identity, 10))
        with pytest.raises(UnknownInvoiceError):
            await provider.settle_promise()
        assert ledger.settlements == []

    @pytest.mark.asyncio
    async def test_nothing_to_settle_raises(self, provider: ProviderAgent) -> None:
        with pytest.raises(ValueError, match="No promises"):
            await provider.settle_promise()

    @pytest.mark.asyncio
    async def test_requires_ledger(self, provider_identity: Identity) -> None:
        with pytest.raises(ValueError, match="no channel ledger"):
            await ProviderAgent(provider_identity).settle_promise()
