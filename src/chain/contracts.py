"""ABI fragments and async contract reads for the router, factory and tokens."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Sequence

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils.crypto import keccak

from core.base_types import Address, TokenAmount, TransactionRequest

from .client import ChainClient
from .errors import RPCError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContractFunction:
    """One ABI function: name plus input and output types."""

    name: str
    inputs: tuple[str, ...]
    outputs: tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return keccak(text=self.signature)[:4]

    def encode(self, args: Sequence[Any]) -> bytes:
        if len(args) != len(self.inputs):
            raise ValueError(
                f"{self.name} expects {len(self.inputs)} args, got {len(args)}"
            )
        return self.selector + encode(list(self.inputs), [_abi_value(a) for a in args])

    def decode(self, raw: bytes) -> tuple:
        if not self.outputs:
            return ()
        return tuple(decode(list(self.outputs), raw))


def _abi_value(value: Any) -> Any:
    if isinstance(value, Address):
        return value.checksum
    if isinstance(value, (list, tuple)):
        return [_abi_value(item) for item in value]
    return value


# ERC20
ERC20_SYMBOL = ContractFunction("symbol", (), ("string",))
ERC20_DECIMALS = ContractFunction("decimals", (), ("uint8",))
ERC20_TOTAL_SUPPLY = ContractFunction("totalSupply", (), ("uint256",))
ERC20_BALANCE_OF = ContractFunction("balanceOf", ("address",), ("uint256",))
ERC20_ALLOWANCE = ContractFunction("allowance", ("address", "address"), ("uint256",))
ERC20_APPROVE = ContractFunction("approve", ("address", "uint256"), ("bool",))

# ERC721
ERC721_BALANCE_OF = ContractFunction("balanceOf", ("address",), ("uint256",))
ERC721_OWNER_OF = ContractFunction("ownerOf", ("uint256",), ("address",))
ERC721_IS_APPROVED_FOR_ALL = ContractFunction(
    "isApprovedForAll", ("address", "address"), ("bool",)
)
ERC721_SET_APPROVAL_FOR_ALL = ContractFunction(
    "setApprovalForAll", ("address", "bool")
)

# Factory / pair
FACTORY_GET_PAIR = ContractFunction("getPair", ("address", "address"), ("address",))
PAIR_TOKEN0 = ContractFunction("token0", (), ("address",))
PAIR_TOKEN1 = ContractFunction("token1", (), ("address",))
PAIR_GET_RESERVES = ContractFunction(
    "getReserves", (), ("uint112", "uint112", "uint32")
)

# Router reads
ROUTER_GET_AMOUNTS_OUT = ContractFunction(
    "getAmountsOut", ("uint256", "address[]"), ("uint256[]",)
)
ROUTER_GET_AMOUNTS_IN = ContractFunction(
    "getAmountsIn", ("uint256", "address[]"), ("uint256[]",)
)
ROUTER_GET_AMOUNTS_OUT_COLLECTION = ContractFunction(
    "getAmountsOutCollection", ("uint256[]", "address[]", "bool"), ("uint256[]",)
)
ROUTER_GET_AMOUNTS_IN_COLLECTION = ContractFunction(
    "getAmountsInCollection", ("uint256[]", "address[]", "bool"), ("uint256[]",)
)

# Router writes
SWAP_TOKENS_FOR_EXACT_TOKENS_COLLECTION = ContractFunction(
    "swapTokensForExactTokensCollection",
    ("uint256[]", "uint256", "address[]", "bool", "address", "uint256"),
    ("uint256[]",),
)
SWAP_EXACT_TOKENS_FOR_TOKENS_COLLECTION = ContractFunction(
    "swapExactTokensForTokensCollection",
    ("uint256[]", "uint256", "address[]", "bool", "address", "uint256"),
    ("uint256[]",),
)
SWAP_ETH_FOR_EXACT_TOKENS_COLLECTION = ContractFunction(
    "swapETHForExactTokensCollection",
    ("uint256[]", "address[]", "bool", "address", "uint256"),
    ("uint256[]",),
)
SWAP_EXACT_TOKENS_FOR_ETH_COLLECTION = ContractFunction(
    "swapExactTokensForETHCollection",
    ("uint256[]", "uint256", "address[]", "bool", "address", "uint256"),
    ("uint256[]",),
)
ADD_LIQUIDITY_COLLECTION = ContractFunction(
    "addLiquidityCollection",
    ("address", "address", "uint256", "uint256[]", "uint256", "address", "uint256"),
    ("uint256", "uint256", "uint256"),
)
ADD_LIQUIDITY_ETH_COLLECTION = ContractFunction(
    "addLiquidityETHCollection",
    ("address", "uint256[]", "uint256", "address", "uint256"),
    ("uint256", "uint256", "uint256"),
)
REMOVE_LIQUIDITY_COLLECTION = ContractFunction(
    "removeLiquidityCollection",
    ("address", "address", "uint256", "uint256[]", "uint256", "address", "uint256"),
    ("uint256", "uint256"),
)
REMOVE_LIQUIDITY_ETH_COLLECTION = ContractFunction(
    "removeLiquidityETHCollection",
    ("address", "uint256", "uint256[]", "uint256", "address", "uint256"),
    ("uint256", "uint256"),
)


class ContractReader:
    """
    Async facade over ChainClient.eth_call.

    The JSON-RPC client is blocking; every read is pushed to a worker thread
    so the flow's event loop stays responsive.
    """

    def __init__(self, client: ChainClient, chain_id: int):
        self._client = client
        self.chain_id = chain_id

    async def read(
        self, to: Address, function: ContractFunction, *args: Any
    ) -> tuple:
        tx = TransactionRequest(
            to=to,
            value=TokenAmount(raw=0, decimals=18),
            data=function.encode(args),
            chain_id=self.chain_id,
        )
        raw = await asyncio.to_thread(self._client.call, tx)
        logger.debug("read %s on %s -> %d bytes", function.signature, to, len(raw))
        try:
            return function.decode(raw)
        except DecodingError as exc:
            raise _undecodable(function, to, raw) from exc

    async def read_one(self, to: Address, function: ContractFunction, *args: Any) -> Any:
        (value,) = await self.read(to, function, *args)
        return value

    async def native_balance(self, owner: Address) -> int:
        return await asyncio.to_thread(self._client.get_balance, owner)

    async def read_string(self, to: Address, function: ContractFunction) -> str:
        """Read string() getters, tolerating legacy bytes32 returns."""
        tx = TransactionRequest(
            to=to,
            value=TokenAmount(raw=0, decimals=18),
            data=function.encode(()),
            chain_id=self.chain_id,
        )
        raw = await asyncio.to_thread(self._client.call, tx)
        if len(raw) == 32:
            return raw.rstrip(b"\x00").decode("utf-8", errors="ignore")
        try:
            (decoded,) = decode(["string"], raw)
        except DecodingError as exc:
            raise _undecodable(function, to, raw) from exc
        return str(decoded)


def _undecodable(function: ContractFunction, to: Address, raw: bytes) -> RPCError:
    # empty return data usually means no contract at the address
    return RPCError(
        f"{function.signature} on {to} returned {len(raw)} undecodable bytes"
    )
