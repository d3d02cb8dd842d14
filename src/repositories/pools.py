"""Factory and pair reads: pool existence, reserves and LP positions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from chain.contracts import (
    ERC20_BALANCE_OF,
    ERC20_TOTAL_SUPPLY,
    FACTORY_GET_PAIR,
    PAIR_GET_RESERVES,
    PAIR_TOKEN0,
    PAIR_TOKEN1,
    ContractReader,
)
from chain.errors import ChainError
from core.base_types import Address
from core.errors import ContractCallError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolSnapshot:
    """Read-only view of a pair at one point in time."""

    address: Address
    token0: Address
    token1: Address
    reserve0: int
    reserve1: int
    token0_discrete: bool
    token1_discrete: bool
    block_timestamp: int

    def reserve_of(self, token: Address) -> int:
        if token == self.token0:
            return self.reserve0
        if token == self.token1:
            return self.reserve1
        raise ValueError("token not in pair")


@dataclass(frozen=True)
class LpPosition:
    pair: Address
    balance: int
    total_supply: int

    @property
    def share(self) -> Decimal:
        """Pool share as a percentage."""
        if self.total_supply == 0:
            return Decimal(0)
        return Decimal(self.balance) * Decimal(100) / Decimal(self.total_supply)


class PoolRepository:
    """
    Existence checks are cached only when positive: pools can be created
    but never destroyed. Reserves are always read fresh.
    """

    def __init__(self, reader: ContractReader, factory: Address):
        self._reader = reader
        self._factory = factory
        self._pairs: dict[tuple[int, str, str], Address] = {}

    async def get_pair_address(
        self, token_a: Address, token_b: Address
    ) -> Optional[Address]:
        key = self._key(token_a, token_b)
        cached = self._pairs.get(key)
        if cached is not None:
            return cached
        try:
            raw = await self._reader.read_one(
                self._factory, FACTORY_GET_PAIR, token_a, token_b
            )
        except ChainError as exc:
            raise ContractCallError("getPair", exc) from exc
        pair = Address.from_string(raw)
        if pair.is_zero:
            logger.debug("no pair for %s / %s", token_a, token_b)
            return None
        self._pairs[key] = pair
        return pair

    async def check_pool_exists(self, token_a: Address, token_b: Address) -> bool:
        return await self.get_pair_address(token_a, token_b) is not None

    async def get_pool(
        self,
        token_a: Address,
        token_b: Address,
        discrete: frozenset[Address] = frozenset(),
    ) -> Optional[PoolSnapshot]:
        pair = await self.get_pair_address(token_a, token_b)
        if pair is None:
            return None
        try:
            token0 = Address.from_string(
                await self._reader.read_one(pair, PAIR_TOKEN0)
            )
            token1 = Address.from_string(
                await self._reader.read_one(pair, PAIR_TOKEN1)
            )
            reserve0, reserve1, timestamp = await self._reader.read(
                pair, PAIR_GET_RESERVES
            )
        except ChainError as exc:
            raise ContractCallError(f"getReserves on {pair}", exc) from exc
        return PoolSnapshot(
            address=pair,
            token0=token0,
            token1=token1,
            reserve0=int(reserve0),
            reserve1=int(reserve1),
            token0_discrete=token0 in discrete,
            token1_discrete=token1 in discrete,
            block_timestamp=int(timestamp),
        )

    async def get_lp_position(
        self, token_a: Address, token_b: Address, owner: Address
    ) -> Optional[LpPosition]:
        pair = await self.get_pair_address(token_a, token_b)
        if pair is None:
            return None
        try:
            balance = await self._reader.read_one(pair, ERC20_BALANCE_OF, owner)
            total_supply = await self._reader.read_one(pair, ERC20_TOTAL_SUPPLY)
        except ChainError as exc:
            raise ContractCallError(f"LP balance on {pair}", exc) from exc
        return LpPosition(pair=pair, balance=int(balance), total_supply=int(total_supply))

    def _key(self, token_a: Address, token_b: Address) -> tuple[int, str, str]:
        first, second = sorted((token_a.lower, token_b.lower))
        return self._reader.chain_id, first, second
