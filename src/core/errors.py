"""Domain error taxonomy for routing, quoting and gated execution."""

from __future__ import annotations

import re
from enum import Enum, auto
from typing import Iterable, Optional

from .base_types import Address


class RouterError(Exception):
    """Base class for typed domain errors consumed by the flow orchestrator."""

    code = "ROUTER_ERROR"
    retryable = False
    user_message = "Something went wrong"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause


class InvalidParametersError(RouterError):
    code = "INVALID_PARAMETERS"
    user_message = "Invalid swap parameters"

    def __init__(self, message: str):
        super().__init__(f"Invalid parameters: {message}")


class PoolNotFoundError(RouterError):
    code = "POOL_NOT_FOUND"
    user_message = "No pool found"

    def __init__(self, token_a: Address, token_b: Address):
        self.token_a = token_a
        self.token_b = token_b
        super().__init__(f"Pool not found between {token_a} and {token_b}")


class InsufficientLiquidityError(RouterError):
    code = "INSUFFICIENT_LIQUIDITY"
    user_message = "Insufficient liquidity"

    def __init__(self, path: Iterable[Address], cause: Optional[BaseException] = None):
        self.path = tuple(path)
        joined = " -> ".join(str(address) for address in self.path)
        super().__init__(f"Insufficient liquidity for path: {joined}", cause)


class ExcessiveSlippageError(RouterError):
    code = "EXCESSIVE_SLIPPAGE"
    user_message = "Price moved beyond slippage tolerance"

    def __init__(self, detail: str, cause: Optional[BaseException] = None):
        super().__init__(f"Slippage too high: {detail}", cause)


class ContractCallError(RouterError):
    """An RPC read or simulated call failed; the original error is the cause."""

    code = "CONTRACT_CALL_ERROR"
    retryable = True
    user_message = "Network error, try again"

    def __init__(self, function_name: str, cause: Optional[BaseException] = None):
        self.function_name = function_name
        super().__init__(f"Contract call failed: {function_name}", cause)


class UnsupportedSwapTypeError(RouterError):
    code = "UNSUPPORTED_SWAP_TYPE"
    user_message = "This pair cannot be swapped here"

    def __init__(self, swap_type: str):
        self.swap_type = swap_type
        super().__init__(f"Unsupported swap type: {swap_type}")


class ApprovalFailedError(RouterError):
    code = "APPROVAL_FAILED"
    user_message = "Approval failed"

    def __init__(self, token: Address, reason: str, cause: Optional[BaseException] = None):
        self.token = token
        self.reason = reason
        super().__init__(f"Approval of {token} failed: {reason}", cause)


class TransactionFailedError(RouterError):
    code = "TRANSACTION_FAILED"
    user_message = "Transaction failed"

    def __init__(
        self,
        reason: str,
        tx_hash: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.reason = reason
        self.tx_hash = tx_hash
        super().__init__(f"Transaction failed: {reason}", cause)


class RevertCategory(Enum):
    """Buckets for on-chain revert reasons."""

    LIQUIDITY = auto()
    SLIPPAGE = auto()
    EXPIRED = auto()
    UNKNOWN = auto()


# Ordered list of (regex, category). First match wins.
_REVERT_PATTERNS: list[tuple[re.Pattern, RevertCategory]] = [
    (re.compile(r"INSUFFICIENT_LIQUIDITY", re.I), RevertCategory.LIQUIDITY),
    (re.compile(r"INSUFFICIENT_(INPUT|OUTPUT)_AMOUNT", re.I), RevertCategory.SLIPPAGE),
    (re.compile(r"EXCESSIVE_INPUT_AMOUNT", re.I), RevertCategory.SLIPPAGE),
    (re.compile(r"INSUFFICIENT_[AB]_AMOUNT", re.I), RevertCategory.SLIPPAGE),
    (re.compile(r"slippage", re.I), RevertCategory.SLIPPAGE),
    (re.compile(r"EXPIRED", re.I), RevertCategory.EXPIRED),
]


def classify_revert(reason: Optional[str]) -> RevertCategory:
    if not reason:
        return RevertCategory.UNKNOWN
    for pattern, category in _REVERT_PATTERNS:
        if pattern.search(reason):
            return category
    return RevertCategory.UNKNOWN
