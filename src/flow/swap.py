"""Swap between a fungible asset and specific collection token ids."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from chain.contracts import ContractReader
from core.base_types import Address
from core.errors import InvalidParametersError
from gating.approval import ApprovalRequirement, collection_requirement
from gating.balance import BalanceValidator, ValidationResult
from routing.config import RouterConfig
from routing.quote import QuoteCalculator
from routing.resolver import RouteResolver
from routing.types import SwapParameters, SwapQuote, SwapType

from .calls import ContractCall, build_swap_call
from .graph import DependencyGraph, Snapshot
from .orchestrator import FlowDefinition
from .state import Action

logger = logging.getLogger(__name__)

_PARAM_FIELDS = (
    "from_token",
    "to_token",
    "amount",
    "token_ids",
    "is_exact_input",
    "cap_royalty_fee",
    "slippage_bps",
)


class SwapFlow(FlowDefinition):
    """
    Graph: params -> route -> quote -> balance.

    Buying ids gates on an ERC20 allowance for maximum_sent (none for the
    native asset); selling ids gates on operator approval of the collection.
    """

    action = Action.SWAP
    ready_label = "SWAP"
    executing_label = "Swapping..."
    done_label = "Swap Complete"
    loading_label = "Fetching Quote..."
    data_nodes = ("params", "route", "quote")

    def __init__(
        self,
        reader: ContractReader,
        resolver: RouteResolver,
        quotes: QuoteCalculator,
        config: RouterConfig,
    ):
        self._reader = reader
        self._resolver = resolver
        self._quotes = quotes
        self._config = config

    def initial_inputs(self) -> dict[str, Any]:
        return {
            "from_token": None,
            "to_token": None,
            "amount": None,
            "token_ids": (),
            "is_exact_input": False,
            "cap_royalty_fee": True,
            "slippage_bps": self._config.default_slippage_bps,
        }

    def register(self, graph: DependencyGraph) -> None:
        graph.add("params", self._params, inputs=_PARAM_FIELDS)
        graph.add("route", self._route, deps=("params",))
        graph.add("quote", self._quote, deps=("params", "route"))
        graph.add("balance", self._balance, inputs=("account",), deps=("params", "quote"))

    def missing_selection(self, inputs: Mapping[str, Any]) -> Optional[str]:
        if inputs.get("from_token") is None or inputs.get("to_token") is None:
            return "Select Tokens"
        if not inputs.get("token_ids"):
            return "Select NFTs"
        return None

    def approvals(
        self, graph: DependencyGraph
    ) -> list[tuple[ApprovalRequirement, Action]]:
        params: Optional[SwapParameters] = graph.value("params")
        quote: Optional[SwapQuote] = graph.value("quote")
        if params is None or quote is None:
            return []
        router = self._config.router
        if params.swap_type is SwapType.EXACT_INPUT_COLLECTION:
            collection = params.from_token
            return [
                (
                    collection_requirement(collection.address, router, collection.symbol),
                    Action.APPROVE,
                )
            ]
        if params.from_token.is_native or quote.maximum_sent is None:
            return []
        requirement = ApprovalRequirement(
            token=params.from_token.address,
            spender=router,
            amount=quote.maximum_sent.raw,
            symbol=params.from_token.symbol,
        )
        return [(requirement, Action.APPROVE)]

    def build_call(
        self, graph: DependencyGraph, recipient: Address, deadline: int
    ) -> ContractCall:
        params: Optional[SwapParameters] = graph.value("params")
        quote: Optional[SwapQuote] = graph.value("quote")
        if params is None or quote is None:
            raise InvalidParametersError("no quote for the current inputs")
        return build_swap_call(self._config.router, params, quote, recipient, deadline)

    def path(self, graph: DependencyGraph) -> Sequence[Address]:
        quote: Optional[SwapQuote] = graph.value("quote")
        return quote.route.path if quote is not None else ()

    async def _params(self, snapshot: Snapshot) -> Optional[SwapParameters]:
        if snapshot["from_token"] is None or snapshot["to_token"] is None:
            return None
        if not snapshot["token_ids"]:
            return None
        params = SwapParameters(
            from_token=snapshot["from_token"],
            to_token=snapshot["to_token"],
            amount=snapshot["amount"],
            token_ids=tuple(snapshot["token_ids"]),
            is_exact_input=bool(snapshot["is_exact_input"]),
            cap_royalty_fee=bool(snapshot["cap_royalty_fee"]),
            slippage_bps=snapshot["slippage_bps"],
        )
        params.validate()
        return params

    async def _route(self, snapshot: Snapshot):
        params: Optional[SwapParameters] = snapshot["params"]
        if params is None:
            return None
        return await self._resolver.resolve(params.from_token, params.to_token)

    async def _quote(self, snapshot: Snapshot) -> Optional[SwapQuote]:
        params: Optional[SwapParameters] = snapshot["params"]
        route = snapshot["route"]
        if params is None or route is None:
            return None
        return await self._quotes.quote_for_route(params, route)

    async def _balance(self, snapshot: Snapshot) -> ValidationResult:
        params: Optional[SwapParameters] = snapshot["params"]
        quote: Optional[SwapQuote] = snapshot["quote"]
        account: Optional[Address] = snapshot["account"]
        if params is None or quote is None or account is None:
            return ValidationResult.loading()
        validator = BalanceValidator(self._reader, account)
        if params.swap_type is SwapType.EXACT_INPUT_COLLECTION:
            return await validator.validate_collection(
                params.from_token, params.token_ids or ()
            )
        required = quote.maximum_sent.raw if quote.maximum_sent else 0
        return await validator.validate_fungible(params.from_token, required)
