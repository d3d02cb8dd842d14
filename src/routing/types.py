"""Value types for swap requests, resolved routes and quotes."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from core.base_types import Address, Token, TokenAmount
from core.errors import InvalidParametersError, UnsupportedSwapTypeError

from .config import MAX_SLIPPAGE_BPS


class SwapType(Enum):
    EXACT_OUTPUT_COLLECTION = "exact_output_collection"  # acquire token ids
    EXACT_INPUT_COLLECTION = "exact_input_collection"  # dispose of token ids
    CONTINUOUS = "continuous"


class RouteType(Enum):
    DIRECT = "direct"
    MULTI_HOP = "multi_hop"


@dataclass(frozen=True)
class SwapParameters:
    """
    One swap request. Exactly one side must be a collection; the ids
    traded on that side are always explicit. amount is the raw amount the
    user entered on the fungible side; the quote is authoritative.
    """

    from_token: Token
    to_token: Token
    amount: Optional[int] = None
    token_ids: Optional[tuple[int, ...]] = None
    is_exact_input: bool = False
    cap_royalty_fee: bool = True
    slippage_bps: int = 100

    def __post_init__(self) -> None:
        if self.amount is not None and self.amount < 0:
            raise InvalidParametersError("amount must be non-negative")
        if self.token_ids is not None:
            ids = tuple(self.token_ids)
            if not ids:
                raise InvalidParametersError("token_ids must not be empty")
            if len(set(ids)) != len(ids):
                raise InvalidParametersError("token_ids must be unique")
            if any(not isinstance(i, int) or i < 0 for i in ids):
                raise InvalidParametersError("token_ids must be non-negative integers")
            object.__setattr__(self, "token_ids", ids)
        if isinstance(self.slippage_bps, bool) or not isinstance(self.slippage_bps, int):
            raise InvalidParametersError("slippage_bps must be an integer")
        if not 0 <= self.slippage_bps <= MAX_SLIPPAGE_BPS:
            raise InvalidParametersError(
                f"slippage_bps must be in [0, {MAX_SLIPPAGE_BPS}]"
            )
        if self.from_token.address == self.to_token.address:
            raise InvalidParametersError("from_token and to_token must differ")

    @property
    def swap_type(self) -> SwapType:
        if self.token_ids is None:
            return SwapType.CONTINUOUS
        if self.is_exact_input:
            return SwapType.EXACT_INPUT_COLLECTION
        return SwapType.EXACT_OUTPUT_COLLECTION

    @property
    def collection(self) -> Token:
        return self.to_token if self.to_token.is_discrete else self.from_token

    @property
    def quantity(self) -> int:
        return len(self.token_ids or ())

    def validate(self) -> SwapType:
        """Check the token kinds against the requested direction."""
        from_discrete = self.from_token.is_discrete
        to_discrete = self.to_token.is_discrete
        if from_discrete and to_discrete:
            raise UnsupportedSwapTypeError("discrete-to-discrete")
        if not from_discrete and not to_discrete:
            raise UnsupportedSwapTypeError("continuous-to-continuous")
        swap_type = self.swap_type
        if swap_type is SwapType.CONTINUOUS:
            raise InvalidParametersError("token_ids are required for collection swaps")
        if swap_type is SwapType.EXACT_OUTPUT_COLLECTION and not to_discrete:
            raise InvalidParametersError("exact-output swaps must buy from a collection")
        if swap_type is SwapType.EXACT_INPUT_COLLECTION and not from_discrete:
            raise InvalidParametersError("exact-input swaps must sell into a collection pool")
        return swap_type


@dataclass(frozen=True)
class Route:
    path: tuple[Address, ...]
    route_type: RouteType
    gas_estimate: int
    price_impact: Decimal

    def __post_init__(self) -> None:
        expected = 2 if self.route_type is RouteType.DIRECT else 3
        if len(self.path) != expected:
            raise ValueError(f"{self.route_type.value} route needs {expected} hops")

    @property
    def is_multi_hop(self) -> bool:
        return self.route_type is RouteType.MULTI_HOP

    @property
    def intermediary(self) -> Optional[Address]:
        return self.path[1] if self.is_multi_hop else None


@dataclass(frozen=True)
class SwapQuote:
    """
    Quote for one parameter set. Exactly one of minimum_received and
    maximum_sent is set, depending on direction.
    """

    input_amount: TokenAmount
    output_amount: TokenAmount
    price_impact: Decimal
    route: Route
    minimum_received: Optional[TokenAmount] = None
    maximum_sent: Optional[TokenAmount] = None

    def __post_init__(self) -> None:
        if (self.minimum_received is None) == (self.maximum_sent is None):
            raise ValueError("exactly one of minimum_received/maximum_sent is set")

    @property
    def is_multi_hop(self) -> bool:
        return self.route.is_multi_hop

    @property
    def gas_estimate(self) -> int:
        return self.route.gas_estimate

    @property
    def bound(self) -> TokenAmount:
        """The slippage-adjusted amount sent on chain."""
        return self.maximum_sent or self.minimum_received  # type: ignore[return-value]
