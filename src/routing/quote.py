"""Swap quotes from the router's collection-aware views."""

from __future__ import annotations

import logging

from core.errors import InsufficientLiquidityError
from repositories.router import RouterRepository

from . import slippage
from .resolver import RouteResolver
from .types import Route, SwapParameters, SwapQuote, SwapType

logger = logging.getLogger(__name__)


class QuoteCalculator:
    """
    Multi-hop quotes chain two reads: the collection leg is priced first
    and its result feeds the standard leg.
    """

    def __init__(self, router: RouterRepository, resolver: RouteResolver):
        self._router = router
        self._resolver = resolver

    async def quote(self, params: SwapParameters) -> SwapQuote:
        params.validate()
        route = await self._resolver.resolve(params.from_token, params.to_token)
        return await self.quote_for_route(params, route)

    async def quote_for_route(self, params: SwapParameters, route: Route) -> SwapQuote:
        if params.validate() is SwapType.EXACT_OUTPUT_COLLECTION:
            return await self._exact_output(params, route)
        return await self._exact_input(params, route)

    async def _exact_output(self, params: SwapParameters, route: Route) -> SwapQuote:
        ids = params.token_ids or ()
        if route.is_multi_hop:
            origin, intermediary, collection = route.path
            first = await self._router.get_amounts_in_collection(
                ids, [intermediary, collection], params.cap_royalty_fee
            )
            needed = first[0]
            if needed <= 0:
                raise InsufficientLiquidityError(route.path)
            second = await self._router.get_amounts_in(needed, [origin, intermediary])
            theoretical = second[0]
        else:
            amounts = await self._router.get_amounts_in_collection(
                ids, list(route.path), params.cap_royalty_fee
            )
            theoretical = amounts[0]
        if theoretical <= 0:
            raise InsufficientLiquidityError(route.path)

        bound = slippage.maximum_sent(theoretical, params.slippage_bps)
        quote = SwapQuote(
            input_amount=params.from_token.amount(theoretical),
            output_amount=params.to_token.amount(len(ids)),
            price_impact=route.price_impact,
            route=route,
            maximum_sent=params.from_token.amount(bound),
        )
        logger.info(
            "quote buy %d %s: %s (max %s)",
            len(ids),
            params.to_token.symbol,
            quote.input_amount,
            quote.maximum_sent,
        )
        return quote

    async def _exact_input(self, params: SwapParameters, route: Route) -> SwapQuote:
        ids = params.token_ids or ()
        if route.is_multi_hop:
            collection, intermediary, destination = route.path
            first = await self._router.get_amounts_out_collection(
                ids, [collection, intermediary], params.cap_royalty_fee
            )
            obtained = first[-1]
            if obtained <= 0:
                raise InsufficientLiquidityError(route.path)
            second = await self._router.get_amounts_out(
                obtained, [intermediary, destination]
            )
            theoretical = second[-1]
        else:
            amounts = await self._router.get_amounts_out_collection(
                ids, list(route.path), params.cap_royalty_fee
            )
            theoretical = amounts[-1]
        if theoretical <= 0:
            raise InsufficientLiquidityError(route.path)

        bound = slippage.minimum_received(theoretical, params.slippage_bps)
        quote = SwapQuote(
            input_amount=params.from_token.amount(len(ids)),
            output_amount=params.to_token.amount(theoretical),
            price_impact=route.price_impact,
            route=route,
            minimum_received=params.to_token.amount(bound),
        )
        logger.info(
            "quote sell %d %s: %s (min %s)",
            len(ids),
            params.from_token.symbol,
            quote.output_amount,
            quote.minimum_received,
        )
        return quote

