"""Token metadata reads, cached per (chain, address)."""

from __future__ import annotations

import logging

from chain.contracts import ERC20_DECIMALS, ERC20_SYMBOL, ContractReader
from chain.errors import ChainError
from core.base_types import Address, AssetKind, Token
from core.errors import ContractCallError

logger = logging.getLogger(__name__)


class TokenRepository:
    """
    Token metadata is immutable on chain, so every successful read is kept
    for the lifetime of the repository.
    """

    def __init__(self, reader: ContractReader, native_symbol: str = "ETH"):
        self._reader = reader
        self._native_symbol = native_symbol
        self._cache: dict[tuple[int, str], Token] = {}

    async def get_token(self, address: Address) -> Token:
        if address.is_zero:
            return Token.native(self._native_symbol)
        key = (self._reader.chain_id, address.lower)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        symbol = await self._read_symbol(address)
        decimals = await self.get_decimals(address)
        token = Token(address, symbol, decimals, AssetKind.FUNGIBLE)
        self._cache[key] = token
        logger.debug("cached token %s (%s, %d decimals)", symbol, address, decimals)
        return token

    async def get_collection(self, address: Address) -> Token:
        key = (self._reader.chain_id, address.lower)
        cached = self._cache.get(key)
        if cached is not None and cached.is_discrete:
            return cached
        symbol = await self._read_symbol(address)
        token = Token.collection(address, symbol)
        self._cache[key] = token
        logger.debug("cached collection %s (%s)", symbol, address)
        return token

    async def get_decimals(self, address: Address) -> int:
        if address.is_zero:
            return 18
        try:
            return int(await self._reader.read_one(address, ERC20_DECIMALS))
        except ChainError as exc:
            raise ContractCallError(f"decimals() on {address}", exc) from exc

    async def _read_symbol(self, address: Address) -> str:
        try:
            return await self._reader.read_string(address, ERC20_SYMBOL)
        except ChainError as exc:
            raise ContractCallError(f"symbol() on {address}", exc) from exc
