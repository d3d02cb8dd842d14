from decimal import Decimal

import pytest

from core.base_types import (
    MAX_UINT256,
    Address,
    AssetKind,
    Token,
    TokenAmount,
    TransactionReceipt,
    TransactionRequest,
)

PUNKS = Address("0x00000000000000000000000000000000000000c1")


def test_address_invalid_raises():
    with pytest.raises(ValueError, match="Invalid Ethereum address"):
        Address("invalid")


def test_address_case_insensitive_equality_and_hash():
    lower = Address("0x000000000000000000000000000000000000dead")
    upper = Address("0x000000000000000000000000000000000000DEAD")
    assert lower == upper
    assert len({lower, upper}) == 1


def test_zero_address():
    assert Address.zero().is_zero
    assert not PUNKS.is_zero


def test_native_token_sits_at_zero_address():
    native = Token.native("MATIC")
    assert native.is_native
    assert native.address.is_zero
    assert native.decimals == 18
    with pytest.raises(ValueError, match="zero address"):
        Token(PUNKS, "ETH", 18, AssetKind.NATIVE)


def test_collection_token_has_no_decimals():
    collection = Token.collection(PUNKS, "PUNK")
    assert collection.is_discrete
    assert collection.amount(3).raw == 3
    with pytest.raises(ValueError, match="0 decimals"):
        Token(PUNKS, "PUNK", 18, AssetKind.DISCRETE)


def test_token_parse_scales_to_decimals():
    usdc = Token(Address("0x00000000000000000000000000000000000000c2"), "USDC", 6)
    assert usdc.parse("12.5").raw == 12_500_000
    with pytest.raises(ValueError, match="precision"):
        usdc.parse("0.0000001")


def test_token_amount_rejects_float_input():
    with pytest.raises(TypeError, match="not float"):
        TokenAmount.from_human(1.5, 18)


def test_format_truncates_without_rounding_up():
    amount = TokenAmount(raw=1_999_999_999_999_999_999, decimals=18, symbol="ETH")
    assert amount.format(4) == "1.9999 ETH"
    assert amount.human == Decimal("1.999999999999999999")
    assert TokenAmount(raw=3, decimals=0, symbol="PUNK").format() == "3 PUNK"


def test_to_dict_includes_sender_and_fees():
    request = TransactionRequest(
        to=PUNKS,
        value=TokenAmount(raw=MAX_UINT256, decimals=18),
        data=b"\x01",
        nonce=3,
        gas_limit=100,
        max_fee_per_gas=5,
        max_priority_fee=1,
        chain_id=137,
        sender=Address("0x000000000000000000000000000000000000dead"),
    )
    payload = request.to_dict()
    assert payload["from"] == "0x000000000000000000000000000000000000dEaD"
    assert payload["value"] == MAX_UINT256
    assert payload["chainId"] == 137
    assert payload["maxFeePerGas"] == 5


def test_receipt_parses_hex_fields():
    receipt = TransactionReceipt.from_web3(
        {
            "transactionHash": "0xabc",
            "blockNumber": "0x10",
            "status": "0x1",
            "gasUsed": "0x5208",
            "effectiveGasPrice": "0x2",
        }
    )
    assert receipt.status is True
    assert receipt.block_number == 16
    assert receipt.tx_fee.raw == 21000 * 2
