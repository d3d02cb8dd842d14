"""Router quote reads for fungible and collection paths."""

from __future__ import annotations

import logging
from typing import Sequence

from chain.contracts import (
    ROUTER_GET_AMOUNTS_IN,
    ROUTER_GET_AMOUNTS_IN_COLLECTION,
    ROUTER_GET_AMOUNTS_OUT,
    ROUTER_GET_AMOUNTS_OUT_COLLECTION,
    ContractFunction,
    ContractReader,
)
from chain.errors import ChainError, ExecutionReverted
from core.base_types import Address
from core.errors import (
    ContractCallError,
    InsufficientLiquidityError,
    InvalidParametersError,
    RevertCategory,
    classify_revert,
)

logger = logging.getLogger(__name__)


class RouterRepository:
    """
    Thin wrapper over the router's getAmounts* views.

    Chain errors never leak past this class: liquidity reverts become
    InsufficientLiquidityError, everything else ContractCallError.
    """

    def __init__(self, reader: ContractReader, router: Address):
        self._reader = reader
        self.router = router

    async def get_amounts_out(
        self, amount_in: int, path: Sequence[Address]
    ) -> list[int]:
        if amount_in <= 0:
            raise InvalidParametersError("amount_in must be positive")
        return await self._amounts(ROUTER_GET_AMOUNTS_OUT, path, amount_in, list(path))

    async def get_amounts_in(
        self, amount_out: int, path: Sequence[Address]
    ) -> list[int]:
        if amount_out <= 0:
            raise InvalidParametersError("amount_out must be positive")
        return await self._amounts(ROUTER_GET_AMOUNTS_IN, path, amount_out, list(path))

    async def get_amounts_out_collection(
        self,
        token_ids: Sequence[int],
        path: Sequence[Address],
        cap_royalty_fee: bool = True,
    ) -> list[int]:
        return await self._amounts(
            ROUTER_GET_AMOUNTS_OUT_COLLECTION,
            path,
            list(token_ids),
            list(path),
            cap_royalty_fee,
        )

    async def get_amounts_in_collection(
        self,
        token_ids: Sequence[int],
        path: Sequence[Address],
        cap_royalty_fee: bool = True,
    ) -> list[int]:
        return await self._amounts(
            ROUTER_GET_AMOUNTS_IN_COLLECTION,
            path,
            list(token_ids),
            list(path),
            cap_royalty_fee,
        )

    async def _amounts(
        self, function: ContractFunction, path: Sequence[Address], *args
    ) -> list[int]:
        if len(path) < 2:
            raise InvalidParametersError("path needs at least two tokens")
        try:
            (amounts,) = await self._reader.read(self.router, function, *args)
        except ExecutionReverted as exc:
            if classify_revert(exc.reason) is RevertCategory.LIQUIDITY:
                raise InsufficientLiquidityError(path, exc) from exc
            raise ContractCallError(function.name, exc) from exc
        except ChainError as exc:
            raise ContractCallError(function.name, exc) from exc
        result = [int(amount) for amount in amounts]
        logger.debug("%s %s -> %s", function.name, [str(a) for a in path], result)
        return result
