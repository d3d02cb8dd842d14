from .config import CHAIN_DEPLOYMENTS, ChainDeployment, RouterConfig
from .quote import QuoteCalculator
from .resolver import RouteResolver
from .types import Route, RouteType, SwapParameters, SwapQuote, SwapType

__all__ = [
    "CHAIN_DEPLOYMENTS",
    "ChainDeployment",
    "RouterConfig",
    "RouteResolver",
    "QuoteCalculator",
    "Route",
    "RouteType",
    "SwapParameters",
    "SwapQuote",
    "SwapType",
]
