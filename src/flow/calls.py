"""Router write calls selected by asset kinds and direction."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from chain.contracts import (
    ADD_LIQUIDITY_COLLECTION,
    ADD_LIQUIDITY_ETH_COLLECTION,
    REMOVE_LIQUIDITY_COLLECTION,
    REMOVE_LIQUIDITY_ETH_COLLECTION,
    SWAP_ETH_FOR_EXACT_TOKENS_COLLECTION,
    SWAP_EXACT_TOKENS_FOR_ETH_COLLECTION,
    SWAP_EXACT_TOKENS_FOR_TOKENS_COLLECTION,
    SWAP_TOKENS_FOR_EXACT_TOKENS_COLLECTION,
    ContractFunction,
)
from core.base_types import Address, Token
from core.errors import InvalidParametersError
from routing import slippage
from routing.types import SwapParameters, SwapQuote, SwapType

# Minimum returned on liquidity removal, independent of slippage settings.
REMOVE_LIQUIDITY_MIN_AMOUNT = 0
# amountETHMin when seeding a pool that does not exist yet.
NEW_POOL_MIN_NATIVE = 1


@dataclass(frozen=True)
class ContractCall:
    to: Address
    function: ContractFunction
    args: tuple[Any, ...]
    value: int = 0

    @property
    def calldata(self) -> bytes:
        return self.function.encode(self.args)

    @property
    def name(self) -> str:
        return self.function.name


def deadline_from_now(minutes: int, now: Optional[float] = None) -> int:
    if minutes <= 0:
        raise ValueError("deadline minutes must be positive")
    current = time.time() if now is None else now
    return int(current) + minutes * 60


def build_swap_call(
    router: Address,
    params: SwapParameters,
    quote: SwapQuote,
    recipient: Address,
    deadline: int,
) -> ContractCall:
    swap_type = params.validate()
    ids = list(params.token_ids or ())
    path = list(quote.route.path)

    if swap_type is SwapType.EXACT_OUTPUT_COLLECTION:
        amount_in_max = _raw(quote.maximum_sent, "maximum_sent")
        if params.from_token.is_native:
            return ContractCall(
                router,
                SWAP_ETH_FOR_EXACT_TOKENS_COLLECTION,
                (ids, path, params.cap_royalty_fee, recipient, deadline),
                value=amount_in_max,
            )
        return ContractCall(
            router,
            SWAP_TOKENS_FOR_EXACT_TOKENS_COLLECTION,
            (ids, amount_in_max, path, params.cap_royalty_fee, recipient, deadline),
        )

    amount_out_min = _raw(quote.minimum_received, "minimum_received")
    function = (
        SWAP_EXACT_TOKENS_FOR_ETH_COLLECTION
        if params.to_token.is_native
        else SWAP_EXACT_TOKENS_FOR_TOKENS_COLLECTION
    )
    return ContractCall(
        router,
        function,
        (ids, amount_out_min, path, params.cap_royalty_fee, recipient, deadline),
    )


def build_add_liquidity_call(
    router: Address,
    token: Token,
    collection: Token,
    amount: int,
    token_ids: Sequence[int],
    recipient: Address,
    deadline: int,
    slippage_bps: int,
    pool_exists: bool = True,
) -> ContractCall:
    _check_liquidity_inputs(token, collection, token_ids)
    if amount <= 0:
        raise InvalidParametersError("liquidity amount must be positive")
    ids = list(token_ids)
    if token.is_native:
        amount_min = (
            slippage.minimum_received(amount, slippage_bps)
            if pool_exists
            else NEW_POOL_MIN_NATIVE
        )
        return ContractCall(
            router,
            ADD_LIQUIDITY_ETH_COLLECTION,
            (collection.address, ids, amount_min, recipient, deadline),
            value=amount,
        )
    amount_min = slippage.minimum_received(amount, slippage_bps)
    return ContractCall(
        router,
        ADD_LIQUIDITY_COLLECTION,
        (token.address, collection.address, amount, ids, amount_min, recipient, deadline),
    )


def build_remove_liquidity_call(
    router: Address,
    token: Token,
    collection: Token,
    liquidity: int,
    token_ids: Sequence[int],
    recipient: Address,
    deadline: int,
) -> ContractCall:
    _check_liquidity_inputs(token, collection, token_ids)
    if liquidity <= 0:
        raise InvalidParametersError("liquidity must be positive")
    ids = list(token_ids)
    if token.is_native:
        return ContractCall(
            router,
            REMOVE_LIQUIDITY_ETH_COLLECTION,
            (
                collection.address,
                liquidity,
                ids,
                REMOVE_LIQUIDITY_MIN_AMOUNT,
                recipient,
                deadline,
            ),
        )
    return ContractCall(
        router,
        REMOVE_LIQUIDITY_COLLECTION,
        (
            token.address,
            collection.address,
            liquidity,
            ids,
            REMOVE_LIQUIDITY_MIN_AMOUNT,
            recipient,
            deadline,
        ),
    )


def _check_liquidity_inputs(
    token: Token, collection: Token, token_ids: Sequence[int]
) -> None:
    if token.is_discrete or not collection.is_discrete:
        raise InvalidParametersError("liquidity pairs a fungible token with a collection")
    if not token_ids:
        raise InvalidParametersError("token_ids must not be empty")


def _raw(amount, name: str) -> int:
    if amount is None:
        raise InvalidParametersError(f"quote has no {name}")
    return amount.raw
