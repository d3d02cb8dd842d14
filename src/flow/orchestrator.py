"""
Gated on-chain action orchestrator.

A FlowDefinition describes one kind of value-moving action: which derived
values it needs, which approvals and balance checks gate it, and how the
final router call is built. TransactionFlowOrchestrator drives any
definition and reduces its state to a single FlowDecision.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping, Optional, Sequence

from chain.contracts import ContractReader
from chain.errors import ExecutionReverted, TransactionFailed
from chain.sender import TransactionSender
from core.base_types import Address, TransactionReceipt
from core.errors import (
    ExcessiveSlippageError,
    InsufficientLiquidityError,
    RevertCategory,
    RouterError,
    TransactionFailedError,
    classify_revert,
)
from gating.approval import (
    ApprovalGate,
    ApprovalKind,
    ApprovalRequirement,
    ApprovalState,
    ApprovalStatus,
    gate_for,
)
from gating.balance import ValidationResult
from routing.config import RouterConfig

from .calls import ContractCall, deadline_from_now
from .graph import DependencyGraph, NodeState, NodeStatus
from .state import Action, FlowDecision, FlowState, TransactionStatus, TransactionTracker

logger = logging.getLogger(__name__)

GateKey = tuple[str, str, ApprovalKind]


class FlowDefinition(ABC):
    """One configuration of the gated action (swap, add or remove liquidity)."""

    action: Action
    ready_label: str
    executing_label: str
    done_label: str = "Done"
    loading_label: str = "Loading..."
    balance_loading_label: str = "Checking Balance..."
    data_nodes: tuple[str, ...] = ()
    balance_node: str = "balance"

    @abstractmethod
    def initial_inputs(self) -> dict[str, Any]:
        """Input fields and their empty values."""

    @abstractmethod
    def register(self, graph: DependencyGraph) -> None:
        """Add this flow's derived values to the graph."""

    @abstractmethod
    def missing_selection(self, inputs: Mapping[str, Any]) -> Optional[str]:
        """Label for the first required selection that is missing, if any."""

    @abstractmethod
    def approvals(
        self, graph: DependencyGraph
    ) -> list[tuple[ApprovalRequirement, Action]]:
        """Approvals the current inputs require, in the order they are asked for."""

    @abstractmethod
    def build_call(
        self, graph: DependencyGraph, recipient: Address, deadline: int
    ) -> ContractCall:
        """The value-moving router call for the current inputs."""

    @abstractmethod
    def path(self, graph: DependencyGraph) -> Sequence[Address]:
        """Assets the action trades through, for error reporting."""

    def error_label(self, node: str, error: Optional[BaseException]) -> str:
        if isinstance(error, RouterError):
            return error.user_message
        return "Something went wrong"

    def terminal_problem(self, graph: DependencyGraph) -> Optional[str]:
        return None

    def insufficient_label(self, result: ValidationResult) -> str:
        return f"Insufficient {result.asset or 'Balance'}"

    def approval_label(
        self, requirement: ApprovalRequirement, action: Action, pending: bool
    ) -> str:
        if pending:
            return f"Enabling {requirement.symbol}..."
        return f"Enable {requirement.symbol}"

    def after_confirmation(self) -> tuple[str, ...]:
        """Nodes to reload once the action is mined."""
        return self.data_nodes


class TransactionFlowOrchestrator:
    """
    Priority of the decision, highest first: connect, selections, derived
    data, terminal pool problems, balance, approvals, the action itself.
    The value-moving action is never enabled while an approval is
    outstanding or unknown.
    """

    def __init__(
        self,
        definition: FlowDefinition,
        reader: ContractReader,
        config: RouterConfig,
        account: Optional[Address] = None,
        sender: Optional[TransactionSender] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._definition = definition
        self._reader = reader
        self._config = config
        self._sender = sender
        self._clock = clock
        self._graph = DependencyGraph(account=account, **definition.initial_inputs())
        definition.register(self._graph)
        self._gates: dict[GateKey, tuple[ApprovalGate, Action]] = {}
        self._approval_errors: dict[GateKey, str] = {}
        self.tracker = TransactionTracker()

    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    @property
    def account(self) -> Optional[Address]:
        return self._graph.inputs.get("account")

    @property
    def approvals(self) -> list[ApprovalState]:
        return [gate.state for gate, _ in self._gates.values()]

    def connect(self, account: Address, sender: Optional[TransactionSender]) -> None:
        self._sender = sender
        self.update(account=account)

    def disconnect(self) -> None:
        self._sender = None
        self.update(account=None)

    def update(self, **changes: Any) -> None:
        """Apply input changes. Any effective change resets local tracking."""
        current = self._graph.inputs
        changed = sorted(
            key
            for key, value in changes.items()
            if key not in current or current[key] != value
        )
        if "account" in changed:
            self._gates.clear()
        self._graph.update(**changes)
        if changed:
            self.tracker.reset()
            self._approval_errors.clear()
            logger.debug("inputs %s changed, reset tracking", changed)

    async def refresh(self) -> FlowDecision:
        await self._graph.refresh()
        await self._sync_approvals()
        decision = self.decision()
        logger.debug("decision %s", decision)
        return decision

    def decision(self) -> FlowDecision:
        definition = self._definition
        graph = self._graph
        if self.account is None:
            return FlowDecision(Action.CONNECT, True, "Connect Wallet", FlowState.IDLE)

        missing = definition.missing_selection(graph.inputs)
        if missing is not None:
            return self._disabled(missing, FlowState.SELECTING_INPUTS)

        for name in definition.data_nodes:
            state = graph.state(name)
            if state.status is NodeStatus.ERROR:
                return self._disabled(
                    definition.error_label(name, state.error),
                    FlowState.VALIDATING,
                    detail=str(state.error),
                )
            if not state.is_ready:
                return self._disabled(definition.loading_label, FlowState.VALIDATING)

        terminal = definition.terminal_problem(graph)
        if terminal is not None:
            return self._disabled(terminal, FlowState.FAILED)

        balance = graph.state(definition.balance_node)
        blocked = self._balance_decision(balance)
        if blocked is not None:
            return blocked

        approval = self._approval_decision()
        if approval is not None:
            return approval

        return self._action_decision()

    async def approve(
        self, amount: Optional[int] = None, max_approval: bool = False
    ) -> ApprovalState:
        decision = self.decision()
        if decision.action not in (Action.APPROVE, Action.APPROVE_LP_TOKEN):
            raise TransactionFailedError(f"nothing to approve ({decision.label})")
        if not decision.enabled:
            raise TransactionFailedError(f"approval not available ({decision.label})")
        gate = self._outstanding_gate()
        if gate is None:
            raise TransactionFailedError("nothing to approve")
        return await gate.approve(amount, max_approval=max_approval)

    async def execute(self) -> TransactionReceipt:
        decision = self.decision()
        if not decision.action.moves_value or not decision.enabled:
            raise TransactionFailedError(f"action not available ({decision.label})")
        if self._sender is None:
            raise TransactionFailedError("no wallet connected")
        account = self.account
        assert account is not None

        deadline = deadline_from_now(self._config.deadline_minutes, self._clock())
        call = self._definition.build_call(self._graph, account, deadline)
        if self.tracker.status is TransactionStatus.FAILED:
            self.tracker.reset()
        attempt = self.tracker.start()
        logger.info("executing %s on %s", call.name, call.to)

        tx_hash: Optional[str] = None
        try:
            tx_hash = await self._sender.send(call.to, call.calldata, call.value)
            if self.tracker.attempt == attempt:
                self.tracker.submitted(tx_hash)
            receipt = await self._sender.wait(tx_hash)
        except Exception as exc:
            error = self._classify(exc, tx_hash)
            if self.tracker.attempt == attempt:
                self.tracker.failed(str(error))
            logger.warning("%s failed: %s", call.name, exc)
            raise error from exc
        except asyncio.CancelledError:
            if self.tracker.attempt == attempt:
                self.tracker.failed("cancelled")
            logger.warning("%s cancelled before confirmation", call.name)
            raise

        if self.tracker.attempt == attempt:
            self.tracker.confirmed(receipt)
            # the action spent allowance; re-read it on the next refresh
            self._gates.clear()
            self._graph.invalidate(*self._definition.after_confirmation())
        else:
            logger.info("confirmation of %s arrived after inputs changed", tx_hash)
        return receipt

    def _disabled(
        self, label: str, state: FlowState, detail: Optional[str] = None
    ) -> FlowDecision:
        return FlowDecision(self._definition.action, False, label, state, detail)

    def _balance_decision(self, balance: NodeState) -> Optional[FlowDecision]:
        definition = self._definition
        if balance.status is NodeStatus.ERROR:
            return self._disabled(
                definition.error_label(definition.balance_node, balance.error),
                FlowState.VALIDATING,
                detail=str(balance.error),
            )
        result = balance.value
        if not balance.is_ready or result is None or result.is_loading:
            return self._disabled(definition.balance_loading_label, FlowState.VALIDATING)
        if not result.has_enough_balance:
            return self._disabled(
                definition.insufficient_label(result),
                FlowState.VALIDATING,
                detail=result.validation_error,
            )
        return None

    def _approval_decision(self) -> Optional[FlowDecision]:
        definition = self._definition
        required = definition.approvals(self._graph)
        for requirement, action in required:
            entry = self._gates.get(_gate_key(requirement))
            if entry is None or entry[0].requirement != requirement:
                return self._disabled("Checking Approval...", FlowState.VALIDATING)

        for key, (gate, action) in self._gates.items():
            if gate.state.is_pending:
                return FlowDecision(
                    action,
                    False,
                    definition.approval_label(gate.requirement, action, pending=True),
                    FlowState.APPROVING,
                    detail=gate.state.tx_hash,
                )

        for key, (gate, action) in self._gates.items():
            state = gate.state
            if key in self._approval_errors:
                return self._disabled(
                    "Approval Check Failed",
                    FlowState.VALIDATING,
                    detail=self._approval_errors[key],
                )
            if state.is_loading:
                return self._disabled("Checking Approval...", FlowState.VALIDATING)
            if state.needs_approval:
                return FlowDecision(
                    action,
                    True,
                    definition.approval_label(gate.requirement, action, pending=False),
                    FlowState.NEEDS_APPROVAL,
                    detail=state.error,
                )
        return None

    def _action_decision(self) -> FlowDecision:
        definition = self._definition
        tracker = self.tracker
        action = definition.action
        if tracker.status is TransactionStatus.PENDING:
            return FlowDecision(action, False, definition.executing_label, FlowState.EXECUTING)
        if tracker.status is TransactionStatus.CONFIRMING:
            return FlowDecision(
                action,
                False,
                definition.executing_label,
                FlowState.CONFIRMING,
                detail=tracker.tx_hash,
            )
        if tracker.status is TransactionStatus.CONFIRMED:
            return FlowDecision(
                action, False, definition.done_label, FlowState.DONE, detail=tracker.tx_hash
            )
        if tracker.status is TransactionStatus.FAILED:
            return FlowDecision(
                action, True, definition.ready_label, FlowState.FAILED, detail=tracker.error
            )
        return FlowDecision(action, True, definition.ready_label, FlowState.READY_TO_EXECUTE)

    async def _sync_approvals(self) -> None:
        account = self.account
        ready = all(
            self._graph.state(name).is_ready for name in self._definition.data_nodes
        )
        if account is None or not ready:
            return

        required = self._definition.approvals(self._graph)
        kept: dict[GateKey, tuple[ApprovalGate, Action]] = {}
        for requirement, action in required:
            key = _gate_key(requirement)
            entry = self._gates.get(key)
            if entry is None:
                gate = gate_for(self._reader, account, requirement, self._sender)
            else:
                gate = entry[0]
                gate.set_requirement(requirement)
            kept[key] = (gate, action)
        for key in set(self._gates) - set(kept):
            logger.debug("approval for %s no longer required", key[0])
            self._approval_errors.pop(key, None)
        self._gates = kept

        for key, (gate, _) in kept.items():
            if gate.state.status is not ApprovalStatus.UNKNOWN:
                continue
            try:
                await gate.refresh()
                self._approval_errors.pop(key, None)
            except RouterError as exc:
                logger.warning("allowance read for %s failed: %s", key[0], exc)
                self._approval_errors[key] = exc.user_message

    def _outstanding_gate(self) -> Optional[ApprovalGate]:
        for gate, _ in self._gates.values():
            if gate.state.needs_approval and not gate.state.is_pending:
                return gate
        return None

    def _classify(self, exc: BaseException, tx_hash: Optional[str]) -> RouterError:
        if isinstance(exc, TimeoutError):
            return TransactionFailedError("confirmation timed out", tx_hash, exc)
        if isinstance(exc, TransactionFailed):
            return TransactionFailedError("reverted on chain", exc.tx_hash, exc)
        if isinstance(exc, ExecutionReverted):
            reason = exc.reason
        else:
            reason = str(exc) or type(exc).__name__
        category = classify_revert(reason)
        if category is RevertCategory.LIQUIDITY:
            return InsufficientLiquidityError(self._definition.path(self._graph), exc)
        if category is RevertCategory.SLIPPAGE:
            return ExcessiveSlippageError(reason, exc)
        return TransactionFailedError(reason, tx_hash, exc)


def _gate_key(requirement: ApprovalRequirement) -> GateKey:
    return requirement.token.lower, requirement.spender.lower, requirement.kind
