"""Direct vs two-hop path resolution between a fungible asset and a collection."""

from __future__ import annotations

import logging
from decimal import Decimal

from core.base_types import Token
from core.errors import PoolNotFoundError, UnsupportedSwapTypeError
from repositories.pools import PoolRepository

from .config import RouterConfig
from .types import Route, RouteType

logger = logging.getLogger(__name__)

DIRECT_GAS_ESTIMATE = 150_000
MULTI_HOP_GAS_ESTIMATE = 250_000
# Nominal price impact (percent) shown before reserves are considered.
DIRECT_PRICE_IMPACT = Decimal("0.1")
MULTI_HOP_PRICE_IMPACT = Decimal("0.3")


class RouteResolver:
    """
    Direct pools always win. The intermediary is only consulted after the
    direct pair is confirmed missing.
    """

    def __init__(self, pools: PoolRepository, config: RouterConfig):
        self._pools = pools
        self._config = config

    async def resolve(self, from_token: Token, to_token: Token) -> Route:
        if from_token.is_discrete == to_token.is_discrete:
            kind = "discrete" if from_token.is_discrete else "continuous"
            raise UnsupportedSwapTypeError(f"{kind}-to-{kind}")

        origin = self._config.wrap(from_token.address)
        destination = self._config.wrap(to_token.address)

        if await self._pools.check_pool_exists(origin, destination):
            logger.info("direct route %s -> %s", from_token.symbol, to_token.symbol)
            return Route(
                path=(origin, destination),
                route_type=RouteType.DIRECT,
                gas_estimate=DIRECT_GAS_ESTIMATE,
                price_impact=DIRECT_PRICE_IMPACT,
            )

        intermediary = self._config.intermediary
        if intermediary in (origin, destination):
            raise PoolNotFoundError(from_token.address, to_token.address)

        first_leg = await self._pools.check_pool_exists(origin, intermediary)
        if first_leg and await self._pools.check_pool_exists(intermediary, destination):
            logger.info(
                "multi-hop route %s -> %s -> %s",
                from_token.symbol,
                intermediary,
                to_token.symbol,
            )
            return Route(
                path=(origin, intermediary, destination),
                route_type=RouteType.MULTI_HOP,
                gas_estimate=MULTI_HOP_GAS_ESTIMATE,
                price_impact=MULTI_HOP_PRICE_IMPACT,
            )

        logger.info("no route %s -> %s", from_token.symbol, to_token.symbol)
        raise PoolNotFoundError(from_token.address, to_token.address)
