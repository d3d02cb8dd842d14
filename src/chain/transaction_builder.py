"""EIP-1559 transaction assembly for approval, swap and liquidity calls."""

from __future__ import annotations

import logging
from dataclasses import replace

from eth_account.datastructures import SignedTransaction

from core.base_types import Address, TokenAmount, TransactionRequest
from core.wallet_manager import WalletManager

from .client import PRIORITY_LEVELS, ChainClient

logger = logging.getLogger(__name__)


class TransactionBuilder:
    """
    Turns one contract call into a signed transaction from the connected
    wallet.

    Gas is estimated as the wallet itself, so router checks that depend on
    msg.sender (allowances, ownership of the token ids) revert here rather
    than on chain. The nonce comes from the pending block.
    """

    def __init__(
        self,
        client: ChainClient,
        wallet: WalletManager,
        chain_id: int,
        gas_priority: str = "medium",
        gas_buffer: float = 1.2,
    ):
        if chain_id <= 0:
            raise ValueError("chain_id must be positive")
        if gas_priority not in PRIORITY_LEVELS:
            raise ValueError("priority must be low, medium, or high")
        if gas_buffer < 1:
            raise ValueError("gas_buffer must be at least 1")
        self._client = client
        self._wallet = wallet
        self._chain_id = chain_id
        self._gas_priority = gas_priority
        self._gas_buffer = gas_buffer

    @property
    def sender(self) -> Address:
        return self._wallet.address

    def prepare(self, to: Address, data: bytes, value: int = 0) -> TransactionRequest:
        """Call with nonce, gas limit and fee caps filled in."""
        if value < 0:
            raise ValueError("value must be non-negative")
        request = TransactionRequest(
            to=to,
            value=TokenAmount(raw=value, decimals=18),
            data=data,
            chain_id=self._chain_id,
            sender=self.sender,
        )
        gas = self._client.estimate_gas(request)
        fees = self._client.get_fee_quote()
        return replace(
            request,
            nonce=self._client.get_nonce(self.sender),
            gas_limit=int(gas * self._gas_buffer),
            max_fee_per_gas=fees.max_fee(self._gas_priority),
            max_priority_fee=fees.tip(self._gas_priority),
        )

    def sign(self, request: TransactionRequest) -> SignedTransaction:
        return self._wallet.sign(request)

    def broadcast(self, to: Address, data: bytes, value: int = 0) -> str:
        request = self.prepare(to, data, value)
        signed = self.sign(request)
        tx_hash = self._client.send_transaction(signed.raw_transaction)
        logger.debug(
            "nonce %s gas %s max fee %s -> %s",
            request.nonce,
            request.gas_limit,
            request.max_fee_per_gas,
            tx_hash,
        )
        return tx_hash
