import pytest
from eth_abi import encode

from chain.contracts import (
    ERC20_APPROVE,
    ERC20_SYMBOL,
    PAIR_GET_RESERVES,
    ROUTER_GET_AMOUNTS_IN_COLLECTION,
    SWAP_ETH_FOR_EXACT_TOKENS_COLLECTION,
    ContractReader,
)
from chain.errors import RPCError
from core.base_types import Address

ROUTER = Address("0x151522484121f4e28eA24c8b5d827132775a93FE")
WETH = Address("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2")
PUNKS = Address("0x00000000000000000000000000000000000000c1")


class _FakeClient:
    def __init__(self, result: bytes):
        self.result = result
        self.requests = []

    def call(self, tx, block="latest"):
        self.requests.append(tx)
        return self.result

    def get_balance(self, address):
        return 42


def test_erc20_approve_selector():
    assert ERC20_APPROVE.signature == "approve(address,uint256)"
    assert ERC20_APPROVE.selector.hex() == "095ea7b3"


def test_collection_signatures():
    assert (
        ROUTER_GET_AMOUNTS_IN_COLLECTION.signature
        == "getAmountsInCollection(uint256[],address[],bool)"
    )
    assert (
        SWAP_ETH_FOR_EXACT_TOKENS_COLLECTION.signature
        == "swapETHForExactTokensCollection(uint256[],address[],bool,address,uint256)"
    )


def test_encode_accepts_address_values_in_lists():
    calldata = ROUTER_GET_AMOUNTS_IN_COLLECTION.encode(([1, 2], [WETH, PUNKS], True))
    expected = encode(
        ["uint256[]", "address[]", "bool"], [[1, 2], [WETH.checksum, PUNKS.checksum], True]
    )
    assert calldata == ROUTER_GET_AMOUNTS_IN_COLLECTION.selector + expected


def test_encode_checks_arity():
    with pytest.raises(ValueError, match="expects 2 args"):
        ERC20_APPROVE.encode((ROUTER,))


@pytest.mark.asyncio
async def test_reader_decodes_multiple_outputs():
    client = _FakeClient(encode(["uint112", "uint112", "uint32"], [10, 20, 30]))
    reader = ContractReader(client, chain_id=1)

    reserves = await reader.read(PUNKS, PAIR_GET_RESERVES)

    assert reserves == (10, 20, 30)
    assert client.requests[0].to == PUNKS
    assert client.requests[0].data == PAIR_GET_RESERVES.selector


@pytest.mark.asyncio
async def test_read_string_handles_bytes32_symbols():
    client = _FakeClient(b"MKR".ljust(32, b"\x00"))
    reader = ContractReader(client, chain_id=1)
    assert await reader.read_string(PUNKS, ERC20_SYMBOL) == "MKR"


@pytest.mark.asyncio
async def test_read_string_decodes_abi_string():
    client = _FakeClient(encode(["string"], ["PUNK"]))
    reader = ContractReader(client, chain_id=1)
    assert await reader.read_string(PUNKS, ERC20_SYMBOL) == "PUNK"


@pytest.mark.asyncio
async def test_native_balance():
    reader = ContractReader(_FakeClient(b""), chain_id=1)
    assert await reader.native_balance(PUNKS) == 42


@pytest.mark.asyncio
async def test_empty_return_data_is_rpc_error():
    reader = ContractReader(_FakeClient(b""), chain_id=1)
    with pytest.raises(RPCError, match="getReserves"):
        await reader.read(PUNKS, PAIR_GET_RESERVES)


@pytest.mark.asyncio
async def test_short_string_return_is_rpc_error():
    reader = ContractReader(_FakeClient(b"\x00" * 8), chain_id=1)
    with pytest.raises(RPCError, match="symbol"):
        await reader.read_string(PUNKS, ERC20_SYMBOL)
