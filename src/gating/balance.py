"""Balance and per-id ownership checks for the connected account."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Optional

from chain.contracts import (
    ERC20_BALANCE_OF,
    ERC721_BALANCE_OF,
    ERC721_OWNER_OF,
    ContractReader,
)
from chain.errors import ChainError, ExecutionReverted
from core.base_types import Address, Token

logger = logging.getLogger(__name__)

LP_DECIMALS = 18
LP_LABEL = "LP Tokens"


@dataclass(frozen=True)
class ValidationResult:
    has_enough_balance: bool
    required_amount: int
    user_balance: Optional[int] = None
    validation_error: Optional[str] = None
    missing_token_ids: tuple[int, ...] = ()
    is_loading: bool = False
    asset: Optional[str] = None

    @classmethod
    def loading(cls, required_amount: int = 0) -> "ValidationResult":
        return cls(
            has_enough_balance=False,
            required_amount=required_amount,
            is_loading=True,
        )

    @classmethod
    def failed(
        cls, required_amount: int, message: str, asset: Optional[str] = None
    ) -> "ValidationResult":
        return cls(
            has_enough_balance=False,
            required_amount=required_amount,
            validation_error=message,
            asset=asset,
        )

    @property
    def is_valid(self) -> bool:
        return self.has_enough_balance and not self.is_loading


class BalanceValidator:
    """
    Read failures come back as a result with validation_error set; nothing
    here raises across the flow boundary.
    """

    def __init__(self, reader: ContractReader, owner: Address):
        self._reader = reader
        self._owner = owner

    async def validate_fungible(self, token: Token, required: int) -> ValidationResult:
        symbol = token.symbol
        if required < 0:
            return ValidationResult.failed(required, "Amount must not be negative", symbol)
        try:
            if token.is_native:
                balance = await self._reader.native_balance(self._owner)
            else:
                balance = int(
                    await self._reader.read_one(
                        token.address, ERC20_BALANCE_OF, self._owner
                    )
                )
        except ChainError as exc:
            logger.warning("balance read for %s failed: %s", symbol, exc)
            return ValidationResult.failed(
                required, f"Could not read {symbol} balance", symbol
            )

        if balance >= required:
            return ValidationResult(True, required, user_balance=balance, asset=symbol)
        message = (
            f"Insufficient {symbol}. You have {token.amount(balance).format()} "
            f"but need {token.amount(required).format()}."
        )
        return ValidationResult(
            False,
            required,
            user_balance=balance,
            validation_error=message,
            asset=symbol,
        )

    async def validate_lp(self, pair: Address, required: int) -> ValidationResult:
        result = await self.validate_fungible(Token(pair, "LP", LP_DECIMALS), required)
        if result.validation_error and result.user_balance is not None:
            result = replace(result, validation_error="Insufficient LP tokens")
        return replace(result, asset=LP_LABEL)

    async def validate_collection(
        self, collection: Token, token_ids: Iterable[int]
    ) -> ValidationResult:
        ids = tuple(token_ids)
        required = len(ids)
        symbol = collection.symbol
        try:
            balance = int(
                await self._reader.read_one(
                    collection.address, ERC721_BALANCE_OF, self._owner
                )
            )
            missing = [
                token_id for token_id in ids if not await self._owns(collection, token_id)
            ]
        except ChainError as exc:
            logger.warning("ownership read for %s failed: %s", symbol, exc)
            return ValidationResult.failed(
                required, f"Could not read {symbol} ownership", symbol
            )

        if missing:
            listed = ", ".join(str(token_id) for token_id in missing)
            return ValidationResult(
                False,
                required,
                user_balance=balance,
                validation_error=f"You don't own the selected NFTs: {listed}",
                missing_token_ids=tuple(missing),
                asset=symbol,
            )
        if balance < required:
            return ValidationResult(
                False,
                required,
                user_balance=balance,
                validation_error=(
                    f"Insufficient {symbol} NFTs. "
                    f"You have {balance} but need {required}."
                ),
                asset=symbol,
            )
        return ValidationResult(True, required, user_balance=balance, asset=symbol)

    async def _owns(self, collection: Token, token_id: int) -> bool:
        try:
            owner = await self._reader.read_one(
                collection.address, ERC721_OWNER_OF, token_id
            )
        except ExecutionReverted:
            # burned or never minted
            return False
        return Address.from_string(owner) == self._owner
