"""Flow state machine, user-facing decision and per-attempt transaction tracking."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from core.base_types import TransactionReceipt

logger = logging.getLogger(__name__)


class FlowState(Enum):
    IDLE = "idle"
    SELECTING_INPUTS = "selecting_inputs"
    VALIDATING = "validating"
    NEEDS_APPROVAL = "needs_approval"
    APPROVING = "approving"
    READY_TO_EXECUTE = "ready_to_execute"
    EXECUTING = "executing"
    CONFIRMING = "confirming"
    DONE = "done"
    FAILED = "failed"


class Action(Enum):
    CONNECT = "connect"
    APPROVE = "approve"
    APPROVE_LP_TOKEN = "approveLpToken"
    SWAP = "swap"
    ADD_LIQUIDITY = "addLiquidity"
    REMOVE_LIQUIDITY = "removeLiquidity"

    @property
    def moves_value(self) -> bool:
        return self in (Action.SWAP, Action.ADD_LIQUIDITY, Action.REMOVE_LIQUIDITY)


@dataclass(frozen=True)
class FlowDecision:
    """What the single primary button should do right now."""

    action: Action
    enabled: bool
    label: str
    state: FlowState
    detail: Optional[str] = None


class TransactionStatus(Enum):
    IDLE = "idle"
    PENDING = "pending"
    CONFIRMING = "confirming"
    CONFIRMED = "confirmed"
    FAILED = "failed"


_ALLOWED = {
    TransactionStatus.IDLE: {TransactionStatus.PENDING},
    TransactionStatus.PENDING: {TransactionStatus.CONFIRMING, TransactionStatus.FAILED},
    TransactionStatus.CONFIRMING: {TransactionStatus.CONFIRMED, TransactionStatus.FAILED},
    TransactionStatus.CONFIRMED: set(),
    TransactionStatus.FAILED: set(),
}


class TransactionTracker:
    """
    Tracks one attempt. Parameter changes call reset(); an already
    broadcast transaction keeps going on chain, only local state is cleared.
    """

    def __init__(self) -> None:
        self.status = TransactionStatus.IDLE
        self.tx_hash: Optional[str] = None
        self.receipt: Optional[TransactionReceipt] = None
        self.error: Optional[str] = None
        self.attempt = 0

    @property
    def in_flight(self) -> bool:
        return self.status in (TransactionStatus.PENDING, TransactionStatus.CONFIRMING)

    def reset(self) -> None:
        if self.status is not TransactionStatus.IDLE:
            logger.debug("tracker reset from %s", self.status.value)
        self.status = TransactionStatus.IDLE
        self.tx_hash = None
        self.receipt = None
        self.error = None
        self.attempt += 1

    def start(self) -> int:
        self._move(TransactionStatus.PENDING)
        return self.attempt

    def submitted(self, tx_hash: str) -> None:
        self.tx_hash = tx_hash
        self._move(TransactionStatus.CONFIRMING)

    def confirmed(self, receipt: TransactionReceipt) -> None:
        self.receipt = receipt
        self._move(TransactionStatus.CONFIRMED)

    def failed(self, error: str) -> None:
        self.error = error
        self._move(TransactionStatus.FAILED)

    def _move(self, status: TransactionStatus) -> None:
        if status not in _ALLOWED[self.status]:
            raise RuntimeError(
                f"Invalid transaction transition {self.status.value} -> {status.value}"
            )
        logger.info("transaction %s -> %s", self.status.value, status.value)
        self.status = status
