from .calls import (
    NEW_POOL_MIN_NATIVE,
    REMOVE_LIQUIDITY_MIN_AMOUNT,
    ContractCall,
    build_add_liquidity_call,
    build_remove_liquidity_call,
    build_swap_call,
    deadline_from_now,
)
from .graph import DependencyGraph, NodeState, NodeStatus
from .liquidity import LiquidityFlow, LiquidityMode
from .orchestrator import FlowDefinition, TransactionFlowOrchestrator
from .state import (
    Action,
    FlowDecision,
    FlowState,
    TransactionStatus,
    TransactionTracker,
)
from .swap import SwapFlow

__all__ = [
    "Action",
    "ContractCall",
    "DependencyGraph",
    "FlowDecision",
    "FlowDefinition",
    "FlowState",
    "LiquidityFlow",
    "LiquidityMode",
    "NEW_POOL_MIN_NATIVE",
    "NodeState",
    "NodeStatus",
    "REMOVE_LIQUIDITY_MIN_AMOUNT",
    "SwapFlow",
    "TransactionFlowOrchestrator",
    "TransactionStatus",
    "TransactionTracker",
    "build_add_liquidity_call",
    "build_remove_liquidity_call",
    "build_swap_call",
    "deadline_from_now",
]
