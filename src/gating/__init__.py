from .approval import (
    ApprovalGate,
    ApprovalKind,
    ApprovalRequirement,
    ApprovalState,
    ApprovalStatus,
    CollectionApprovalGate,
    collection_requirement,
    gate_for,
    needs_approval,
)
from .balance import BalanceValidator, ValidationResult

__all__ = [
    "ApprovalGate",
    "ApprovalKind",
    "ApprovalRequirement",
    "ApprovalState",
    "ApprovalStatus",
    "CollectionApprovalGate",
    "collection_requirement",
    "gate_for",
    "needs_approval",
    "BalanceValidator",
    "ValidationResult",
]
