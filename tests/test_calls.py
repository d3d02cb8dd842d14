from decimal import Decimal

import pytest

from chain.contracts import (
    ADD_LIQUIDITY_COLLECTION,
    ADD_LIQUIDITY_ETH_COLLECTION,
    REMOVE_LIQUIDITY_COLLECTION,
    REMOVE_LIQUIDITY_ETH_COLLECTION,
    SWAP_ETH_FOR_EXACT_TOKENS_COLLECTION,
    SWAP_EXACT_TOKENS_FOR_ETH_COLLECTION,
    SWAP_EXACT_TOKENS_FOR_TOKENS_COLLECTION,
    SWAP_TOKENS_FOR_EXACT_TOKENS_COLLECTION,
)
from core.errors import InvalidParametersError
from fakes import ACCOUNT, COLLECTION, NATIVE, PUNKS, ROUTER, USDC, USDC_TOKEN, WETH
from flow.calls import (
    NEW_POOL_MIN_NATIVE,
    REMOVE_LIQUIDITY_MIN_AMOUNT,
    build_add_liquidity_call,
    build_remove_liquidity_call,
    build_swap_call,
    deadline_from_now,
)
from routing.types import Route, RouteType, SwapParameters, SwapQuote

DEADLINE = 1_700_001_200


def _buy_quote(from_token, path, theoretical, bound):
    return SwapQuote(
        input_amount=from_token.amount(theoretical),
        output_amount=COLLECTION.amount(2),
        price_impact=Decimal("0.1"),
        route=Route(tuple(path), RouteType.DIRECT, 150_000, Decimal("0.1")),
        maximum_sent=from_token.amount(bound),
    )


def _sell_quote(to_token, path, theoretical, bound):
    return SwapQuote(
        input_amount=COLLECTION.amount(2),
        output_amount=to_token.amount(theoretical),
        price_impact=Decimal("0.1"),
        route=Route(tuple(path), RouteType.DIRECT, 150_000, Decimal("0.1")),
        minimum_received=to_token.amount(bound),
    )


class TestSwapCalls:
    def test_buy_with_native_sends_value(self):
        params = SwapParameters(NATIVE, COLLECTION, token_ids=(1, 2))
        quote = _buy_quote(NATIVE, (WETH, PUNKS), 1_000, 1_010)

        call = build_swap_call(ROUTER, params, quote, ACCOUNT, DEADLINE)

        assert call.function is SWAP_ETH_FOR_EXACT_TOKENS_COLLECTION
        assert call.value == 1_010
        assert call.args == ([1, 2], [WETH, PUNKS], True, ACCOUNT, DEADLINE)
        assert call.calldata[:4] == SWAP_ETH_FOR_EXACT_TOKENS_COLLECTION.selector

    def test_buy_with_erc20_passes_maximum(self):
        params = SwapParameters(USDC_TOKEN, COLLECTION, token_ids=(1, 2), cap_royalty_fee=False)
        quote = _buy_quote(USDC_TOKEN, (USDC, PUNKS), 1_000, 1_010)

        call = build_swap_call(ROUTER, params, quote, ACCOUNT, DEADLINE)

        assert call.function is SWAP_TOKENS_FOR_EXACT_TOKENS_COLLECTION
        assert call.value == 0
        assert call.args == ([1, 2], 1_010, [USDC, PUNKS], False, ACCOUNT, DEADLINE)

    def test_sell_for_native(self):
        params = SwapParameters(COLLECTION, NATIVE, token_ids=(1, 2), is_exact_input=True)
        quote = _sell_quote(NATIVE, (PUNKS, WETH), 1_000, 990)

        call = build_swap_call(ROUTER, params, quote, ACCOUNT, DEADLINE)

        assert call.function is SWAP_EXACT_TOKENS_FOR_ETH_COLLECTION
        assert call.value == 0
        assert call.args[1] == 990

    def test_sell_for_erc20(self):
        params = SwapParameters(COLLECTION, USDC_TOKEN, token_ids=(1, 2), is_exact_input=True)
        quote = _sell_quote(USDC_TOKEN, (PUNKS, USDC), 1_000, 990)

        call = build_swap_call(ROUTER, params, quote, ACCOUNT, DEADLINE)

        assert call.function is SWAP_EXACT_TOKENS_FOR_TOKENS_COLLECTION
        assert call.args == ([1, 2], 990, [PUNKS, USDC], True, ACCOUNT, DEADLINE)


class TestLiquidityCalls:
    def test_remove_ignores_slippage_for_erc20_pool(self):
        call = build_remove_liquidity_call(
            ROUTER, USDC_TOKEN, COLLECTION, 5_000, (1, 2), ACCOUNT, DEADLINE
        )
        assert call.function is REMOVE_LIQUIDITY_COLLECTION
        assert call.args[4] == REMOVE_LIQUIDITY_MIN_AMOUNT == 0

    def test_remove_ignores_slippage_for_native_pool(self):
        call = build_remove_liquidity_call(
            ROUTER, NATIVE, COLLECTION, 5_000, (1,), ACCOUNT, DEADLINE
        )
        assert call.function is REMOVE_LIQUIDITY_ETH_COLLECTION
        assert call.args == (PUNKS, 5_000, [1], 0, ACCOUNT, DEADLINE)
        assert call.value == 0

    def test_add_native_to_existing_pool(self):
        call = build_add_liquidity_call(
            ROUTER, NATIVE, COLLECTION, 10_000, (1, 2), ACCOUNT, DEADLINE, 500
        )
        assert call.function is ADD_LIQUIDITY_ETH_COLLECTION
        assert call.value == 10_000
        assert call.args == (PUNKS, [1, 2], 9_500, ACCOUNT, DEADLINE)

    def test_add_native_seeding_new_pool(self):
        call = build_add_liquidity_call(
            ROUTER,
            NATIVE,
            COLLECTION,
            10_000,
            (1,),
            ACCOUNT,
            DEADLINE,
            500,
            pool_exists=False,
        )
        assert call.args[2] == NEW_POOL_MIN_NATIVE == 1

    def test_add_erc20(self):
        call = build_add_liquidity_call(
            ROUTER, USDC_TOKEN, COLLECTION, 10_000, (3,), ACCOUNT, DEADLINE, 100
        )
        assert call.function is ADD_LIQUIDITY_COLLECTION
        assert call.value == 0
        assert call.args == (USDC, PUNKS, 10_000, [3], 9_900, ACCOUNT, DEADLINE)

    def test_rejects_empty_ids(self):
        with pytest.raises(InvalidParametersError):
            build_remove_liquidity_call(ROUTER, NATIVE, COLLECTION, 1, (), ACCOUNT, DEADLINE)

    def test_rejects_collection_as_token(self):
        with pytest.raises(InvalidParametersError):
            build_add_liquidity_call(
                ROUTER, COLLECTION, COLLECTION, 1, (1,), ACCOUNT, DEADLINE, 0
            )


def test_deadline_from_now():
    assert deadline_from_now(20, now=1_700_000_000.7) == DEADLINE
    with pytest.raises(ValueError):
        deadline_from_now(0)
