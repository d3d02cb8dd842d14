"""Add and remove collection liquidity."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from chain.contracts import ContractReader
from core.base_types import Address, Token
from core.errors import InvalidParametersError
from gating.approval import ApprovalRequirement, collection_requirement
from gating.balance import LP_LABEL, BalanceValidator, ValidationResult
from repositories.pools import LpPosition, PoolRepository
from routing.config import RouterConfig

from .calls import ContractCall, build_add_liquidity_call, build_remove_liquidity_call
from .graph import DependencyGraph, Snapshot
from .orchestrator import FlowDefinition
from .state import Action

logger = logging.getLogger(__name__)


class LiquidityMode(Enum):
    ADD = "add"
    REMOVE = "remove"


class LiquidityFlow(FlowDefinition):
    """
    Graph: pool -> position, pool -> balance.

    Adding gates on the fungible token allowance plus collection operator
    approval and may seed a pool that does not exist yet. Removing needs an
    existing pool and gates on the LP token allowance.
    """

    loading_label = "Loading Pool Data..."
    data_nodes = ("pool",)

    def __init__(
        self,
        reader: ContractReader,
        pools: PoolRepository,
        config: RouterConfig,
        mode: LiquidityMode,
    ):
        self._reader = reader
        self._pools = pools
        self._config = config
        self.mode = mode
        if mode is LiquidityMode.ADD:
            self.action = Action.ADD_LIQUIDITY
            self.ready_label = "ADD LIQUIDITY"
            self.executing_label = "Adding Liquidity..."
            self.done_label = "Liquidity Added"
        else:
            self.action = Action.REMOVE_LIQUIDITY
            self.ready_label = "REMOVE LIQUIDITY"
            self.executing_label = "Removing Liquidity..."
            self.done_label = "Liquidity Removed"

    def initial_inputs(self) -> dict[str, Any]:
        return {
            "token": None,
            "collection": None,
            "amount": 0,
            "token_ids": (),
            "liquidity": 0,
            "slippage_bps": self._config.default_slippage_bps,
        }

    def register(self, graph: DependencyGraph) -> None:
        graph.add("pool", self._pool, inputs=("token", "collection"))
        graph.add(
            "position",
            self._position,
            inputs=("token", "collection", "account"),
            deps=("pool",),
        )
        graph.add(
            "balance",
            self._balance,
            inputs=("token", "collection", "amount", "token_ids", "liquidity", "account"),
            deps=("pool",),
        )

    def missing_selection(self, inputs: Mapping[str, Any]) -> Optional[str]:
        if inputs.get("token") is None or inputs.get("collection") is None:
            return "Select Collection"
        if self.mode is LiquidityMode.ADD and not inputs.get("amount"):
            return "Enter Token Amount"
        if self.mode is LiquidityMode.REMOVE and not inputs.get("liquidity"):
            return "Enter LP Amount"
        if not inputs.get("token_ids"):
            return "Select NFTs"
        try:
            self._config.validate_slippage(inputs.get("slippage_bps"))
        except InvalidParametersError as exc:
            return exc.user_message
        return None

    def error_label(self, node: str, error: Optional[BaseException]) -> str:
        if node == "pool":
            return "Pool Data Error"
        return super().error_label(node, error)

    def terminal_problem(self, graph: DependencyGraph) -> Optional[str]:
        if self.mode is LiquidityMode.REMOVE and graph.value("pool") is None:
            return "Pool Does Not Exist"
        return None

    def approvals(
        self, graph: DependencyGraph
    ) -> list[tuple[ApprovalRequirement, Action]]:
        inputs = graph.inputs
        token: Optional[Token] = inputs.get("token")
        collection: Optional[Token] = inputs.get("collection")
        if token is None or collection is None:
            return []
        router = self._config.router

        if self.mode is LiquidityMode.REMOVE:
            pair: Optional[Address] = graph.value("pool")
            liquidity = inputs.get("liquidity") or 0
            if pair is None or liquidity <= 0:
                return []
            requirement = ApprovalRequirement(
                token=pair, spender=router, amount=liquidity, symbol=LP_LABEL
            )
            return [(requirement, Action.APPROVE_LP_TOKEN)]

        required: list[tuple[ApprovalRequirement, Action]] = []
        amount = inputs.get("amount") or 0
        if not token.is_native and amount > 0:
            required.append(
                (
                    ApprovalRequirement(
                        token=token.address,
                        spender=router,
                        amount=amount,
                        symbol=token.symbol,
                    ),
                    Action.APPROVE,
                )
            )
        required.append(
            (
                collection_requirement(collection.address, router, collection.symbol),
                Action.APPROVE,
            )
        )
        return required

    def approval_label(
        self, requirement: ApprovalRequirement, action: Action, pending: bool
    ) -> str:
        if action is Action.APPROVE_LP_TOKEN:
            return "Enabling LP Tokens..." if pending else "Enable LP Tokens"
        return super().approval_label(requirement, action, pending)

    def build_call(
        self, graph: DependencyGraph, recipient: Address, deadline: int
    ) -> ContractCall:
        inputs = graph.inputs
        token: Optional[Token] = inputs.get("token")
        collection: Optional[Token] = inputs.get("collection")
        if token is None or collection is None:
            raise InvalidParametersError("token and collection are required")
        token_ids = tuple(inputs.get("token_ids") or ())
        pair = graph.value("pool")
        if self.mode is LiquidityMode.ADD:
            self._config.validate_slippage(inputs["slippage_bps"])
            return build_add_liquidity_call(
                self._config.router,
                token,
                collection,
                inputs.get("amount") or 0,
                token_ids,
                recipient,
                deadline,
                inputs["slippage_bps"],
                pool_exists=pair is not None,
            )
        return build_remove_liquidity_call(
            self._config.router,
            token,
            collection,
            inputs.get("liquidity") or 0,
            token_ids,
            recipient,
            deadline,
        )

    def path(self, graph: DependencyGraph) -> Sequence[Address]:
        token: Optional[Token] = graph.inputs.get("token")
        collection: Optional[Token] = graph.inputs.get("collection")
        if token is None or collection is None:
            return ()
        return self._config.wrap(token.address), collection.address

    async def _pool(self, snapshot: Snapshot) -> Optional[Address]:
        token: Optional[Token] = snapshot["token"]
        collection: Optional[Token] = snapshot["collection"]
        if token is None or collection is None:
            return None
        return await self._pools.get_pair_address(
            self._config.wrap(token.address), collection.address
        )

    async def _position(self, snapshot: Snapshot) -> Optional[LpPosition]:
        token: Optional[Token] = snapshot["token"]
        collection: Optional[Token] = snapshot["collection"]
        account: Optional[Address] = snapshot["account"]
        if snapshot["pool"] is None or account is None or token is None or collection is None:
            return None
        return await self._pools.get_lp_position(
            self._config.wrap(token.address), collection.address, account
        )

    async def _balance(self, snapshot: Snapshot) -> ValidationResult:
        account: Optional[Address] = snapshot["account"]
        token: Optional[Token] = snapshot["token"]
        collection: Optional[Token] = snapshot["collection"]
        if account is None or token is None or collection is None:
            return ValidationResult.loading()
        validator = BalanceValidator(self._reader, account)
        token_ids = tuple(snapshot["token_ids"] or ())

        if self.mode is LiquidityMode.REMOVE:
            pair: Optional[Address] = snapshot["pool"]
            liquidity = snapshot["liquidity"] or 0
            if pair is None:
                return ValidationResult.failed(liquidity, "Pool Does Not Exist", LP_LABEL)
            return await validator.validate_lp(pair, liquidity)

        funds = await validator.validate_fungible(token, snapshot["amount"] or 0)
        if not funds.has_enough_balance:
            return funds
        ownership = await validator.validate_collection(collection, token_ids)
        if not ownership.has_enough_balance:
            return ownership
        return funds
