from dataclasses import dataclass

import pytest

from chain.client import FeeQuote
from chain.contracts import ERC20_APPROVE
from chain.sender import TransactionSender
from chain.transaction_builder import TransactionBuilder
from core.base_types import Address, TransactionReceipt

WALLET = Address.from_string("0x000000000000000000000000000000000000dEaD")
ROUTER = Address.from_string("0x151522484121f4e28eA24c8b5d827132775a93FE")
TOKEN = Address.from_string("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2")


@dataclass
class _Signed:
    raw_transaction: bytes


class _FakeWallet:
    def __init__(self, address: Address):
        self.address = address
        self.signed = []

    def sign(self, request):
        self.signed.append(request)
        return _Signed(b"\x01\x02")


class _FakeClient:
    def __init__(self):
        self.estimated = []
        self.sent = []

    def estimate_gas(self, tx):
        self.estimated.append(tx)
        return 50_000

    def get_fee_quote(self):
        return FeeQuote(base_fee=4, priority_fee=2)

    def get_nonce(self, address):
        return 7

    def send_transaction(self, signed_tx):
        self.sent.append(signed_tx)
        return "0xabc"

    def wait_for_receipt(self, tx_hash, timeout=120):
        return TransactionReceipt(
            tx_hash=tx_hash,
            block_number=1,
            status=True,
            gas_used=50_000,
            effective_gas_price=1,
            logs=[],
        )


def test_fee_quote_priorities():
    fees = FeeQuote(base_fee=10, priority_fee=2)
    assert fees.tip("low") == fees.tip("medium") == 2
    assert fees.tip("high") == 3
    assert fees.max_fee("medium") == 22
    with pytest.raises(ValueError, match="priority must be"):
        fees.tip("urgent")


def test_prepare_fills_nonce_gas_and_fees():
    client = _FakeClient()
    builder = TransactionBuilder(client, _FakeWallet(WALLET), chain_id=8453, gas_buffer=1.5)
    calldata = ERC20_APPROVE.encode((ROUTER, 10**18))

    request = builder.prepare(TOKEN, calldata)

    assert request.sender == WALLET
    assert request.chain_id == 8453
    assert request.nonce == 7
    assert request.gas_limit == 75_000
    assert request.max_priority_fee == 2
    assert request.max_fee_per_gas == 10
    assert client.estimated[0].sender == WALLET
    assert client.estimated[0].gas_limit is None


def test_broadcast_signs_and_sends():
    client = _FakeClient()
    wallet = _FakeWallet(WALLET)
    builder = TransactionBuilder(client, wallet, chain_id=1, gas_priority="high")

    tx_hash = builder.broadcast(ROUTER, b"\x12", value=9)

    assert tx_hash == "0xabc"
    assert client.sent == [b"\x01\x02"]
    assert wallet.signed[0].value.raw == 9
    assert wallet.signed[0].max_priority_fee == 3


def test_builder_rejects_bad_settings():
    client, wallet = _FakeClient(), _FakeWallet(WALLET)
    with pytest.raises(ValueError, match="chain_id"):
        TransactionBuilder(client, wallet, chain_id=0)
    with pytest.raises(ValueError, match="priority must be"):
        TransactionBuilder(client, wallet, chain_id=1, gas_priority="urgent")
    with pytest.raises(ValueError, match="gas_buffer"):
        TransactionBuilder(client, wallet, chain_id=1, gas_buffer=0.5)


def test_prepare_rejects_negative_value():
    builder = TransactionBuilder(_FakeClient(), _FakeWallet(WALLET), chain_id=1)
    with pytest.raises(ValueError, match="non-negative"):
        builder.prepare(ROUTER, b"", value=-1)


class TestTransactionSender:
    def test_rejects_bad_chain_id(self):
        with pytest.raises(ValueError, match="chain_id"):
            TransactionSender(_FakeClient(), _FakeWallet(WALLET), chain_id=0)

    @pytest.mark.asyncio
    async def test_send_then_wait(self):
        client = _FakeClient()
        wallet = _FakeWallet(WALLET)
        sender = TransactionSender(client, wallet, chain_id=1, gas_priority="low")

        tx_hash = await sender.send(ROUTER, b"\x12\x34", value=5)
        receipt = await sender.wait(tx_hash)

        assert tx_hash == "0xabc"
        assert receipt.status is True
        assert wallet.signed[0].value.raw == 5
        assert wallet.signed[0].max_priority_fee == 2
        assert sender.account == WALLET
