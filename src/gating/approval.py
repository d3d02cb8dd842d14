"""Allowance state machines gating value-moving calls."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from chain.contracts import (
    ERC20_ALLOWANCE,
    ERC20_APPROVE,
    ERC721_IS_APPROVED_FOR_ALL,
    ERC721_SET_APPROVAL_FOR_ALL,
    ContractReader,
)
from chain.errors import ChainError
from chain.sender import TransactionSender
from core.base_types import MAX_UINT256, Address
from core.errors import ApprovalFailedError, ContractCallError

logger = logging.getLogger(__name__)


class ApprovalStatus(Enum):
    UNKNOWN = "unknown"
    NEEDS_APPROVAL = "needs_approval"
    APPROVING = "approving"
    CONFIRMING = "confirming"
    APPROVED = "approved"


class ApprovalKind(Enum):
    ERC20 = "erc20"
    COLLECTION = "collection"


@dataclass(frozen=True)
class ApprovalRequirement:
    """(token, spender, amount) that must be covered before execution."""

    token: Address
    spender: Address
    amount: int
    symbol: str = ""
    kind: ApprovalKind = ApprovalKind.ERC20

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("amount must be non-negative")
        if self.token.is_zero:
            raise ValueError("native assets need no approval")


def needs_approval(current_allowance: int, required_amount: int) -> bool:
    return current_allowance < required_amount


@dataclass(frozen=True)
class ApprovalState:
    requirement: ApprovalRequirement
    status: ApprovalStatus = ApprovalStatus.UNKNOWN
    current_allowance: Optional[int] = None
    tx_hash: Optional[str] = None
    error: Optional[str] = None

    @property
    def needs_approval(self) -> bool:
        if self.current_allowance is None:
            return self.status is not ApprovalStatus.APPROVED
        return needs_approval(self.current_allowance, self.requirement.amount)

    @property
    def is_approved(self) -> bool:
        return self.status is ApprovalStatus.APPROVED and not self.needs_approval

    @property
    def is_loading(self) -> bool:
        return self.status is ApprovalStatus.UNKNOWN

    @property
    def is_pending(self) -> bool:
        return self.status in (ApprovalStatus.APPROVING, ApprovalStatus.CONFIRMING)


class ApprovalGate:
    """
    UNKNOWN -> APPROVED | NEEDS_APPROVAL -> APPROVING -> CONFIRMING -> APPROVED.

    A failed approval drops back to NEEDS_APPROVAL with the error recorded.
    Nothing is retried automatically. Results that arrive after the
    requirement changed are dropped.
    """

    def __init__(
        self,
        reader: ContractReader,
        owner: Address,
        requirement: ApprovalRequirement,
        sender: Optional[TransactionSender] = None,
    ):
        self._reader = reader
        self._owner = owner
        self._sender = sender
        self._generation = 0
        self._state = ApprovalState(requirement)

    @property
    def state(self) -> ApprovalState:
        return self._state

    @property
    def requirement(self) -> ApprovalRequirement:
        return self._state.requirement

    def set_requirement(self, requirement: ApprovalRequirement) -> None:
        if requirement == self._state.requirement:
            return
        self._generation += 1
        self._state = ApprovalState(requirement)
        logger.debug("approval reset for %s -> %s", requirement.token, requirement.spender)

    async def refresh(self) -> ApprovalState:
        generation = self._generation
        requirement = self._state.requirement
        allowance = await self._read_allowance(requirement)
        if generation != self._generation:
            logger.debug("discarding stale allowance for %s", requirement.token)
            return self._state
        self._state = self._settle(self._state, allowance)
        return self._state

    async def approve(
        self, amount: Optional[int] = None, max_approval: bool = False
    ) -> ApprovalState:
        if self._sender is None:
            raise ApprovalFailedError(self.requirement.token, "no wallet connected")
        if self._state.is_pending:
            raise ApprovalFailedError(self.requirement.token, "approval already in flight")
        generation = self._generation
        requirement = self._state.requirement
        if max_approval:
            amount = MAX_UINT256
        elif amount is None:
            amount = requirement.amount
        elif amount < requirement.amount:
            raise ApprovalFailedError(
                requirement.token, f"{amount} is below the required {requirement.amount}"
            )
        self._transition(ApprovalStatus.APPROVING, error=None)
        try:
            tx_hash = await self._sender.send(
                requirement.token, self._approval_calldata(requirement, amount)
            )
            if generation == self._generation:
                self._transition(ApprovalStatus.CONFIRMING, tx_hash=tx_hash)
            await self._sender.wait(tx_hash)
            allowance = await self._read_allowance(requirement)
        except Exception as exc:
            error = ApprovalFailedError(
                requirement.token, str(exc) or type(exc).__name__, exc
            )
            if generation == self._generation:
                self._transition(ApprovalStatus.NEEDS_APPROVAL, error=str(error))
            logger.warning("approval of %s failed: %s", requirement.token, exc)
            raise error from exc
        except asyncio.CancelledError:
            if generation == self._generation:
                self._transition(ApprovalStatus.NEEDS_APPROVAL, error="cancelled")
            raise

        if generation != self._generation:
            logger.debug("approval confirmed for superseded requirement")
            return self._state
        self._state = self._settle(self._state, allowance)
        if self._state.needs_approval:
            self._state = replace(
                self._state, error="Allowance still below the required amount"
            )
        logger.info(
            "approval %s for %s: %s",
            self._state.tx_hash,
            requirement.token,
            self._state.status.value,
        )
        return self._state

    def _transition(self, status: ApprovalStatus, **changes) -> None:
        logger.debug(
            "approval %s: %s -> %s",
            self.requirement.token,
            self._state.status.value,
            status.value,
        )
        self._state = replace(self._state, status=status, **changes)

    @staticmethod
    def _settle(state: ApprovalState, allowance: int) -> ApprovalState:
        required = state.requirement.amount
        status = (
            ApprovalStatus.NEEDS_APPROVAL
            if needs_approval(allowance, required)
            else ApprovalStatus.APPROVED
        )
        return replace(state, status=status, current_allowance=allowance)

    async def _read_allowance(self, requirement: ApprovalRequirement) -> int:
        try:
            value = await self._reader.read_one(
                requirement.token, ERC20_ALLOWANCE, self._owner, requirement.spender
            )
        except ChainError as exc:
            raise ContractCallError("allowance", exc) from exc
        return int(value)

    def _approval_calldata(self, requirement: ApprovalRequirement, amount: int) -> bytes:
        return ERC20_APPROVE.encode((requirement.spender, amount))


class CollectionApprovalGate(ApprovalGate):
    """
    Operator approval for a whole collection. Allowance reads as 1 when
    the spender is an approved operator and 0 otherwise.
    """

    async def _read_allowance(self, requirement: ApprovalRequirement) -> int:
        try:
            approved = await self._reader.read_one(
                requirement.token,
                ERC721_IS_APPROVED_FOR_ALL,
                self._owner,
                requirement.spender,
            )
        except ChainError as exc:
            raise ContractCallError("isApprovedForAll", exc) from exc
        return 1 if approved else 0

    def _approval_calldata(self, requirement: ApprovalRequirement, amount: int) -> bytes:
        return ERC721_SET_APPROVAL_FOR_ALL.encode((requirement.spender, True))


def collection_requirement(
    collection: Address, operator: Address, symbol: str = ""
) -> ApprovalRequirement:
    return ApprovalRequirement(
        token=collection,
        spender=operator,
        amount=1,
        symbol=symbol,
        kind=ApprovalKind.COLLECTION,
    )


def gate_for(
    reader: ContractReader,
    owner: Address,
    requirement: ApprovalRequirement,
    sender: Optional[TransactionSender] = None,
) -> ApprovalGate:
    if requirement.kind is ApprovalKind.COLLECTION:
        return CollectionApprovalGate(reader, owner, requirement, sender)
    return ApprovalGate(reader, owner, requirement, sender)
