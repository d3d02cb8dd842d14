"""Async submission of signed transactions for the connected wallet."""

from __future__ import annotations

import asyncio
import logging

from core.base_types import Address, TransactionReceipt
from core.wallet_manager import WalletManager

from .client import ChainClient
from .transaction_builder import TransactionBuilder

logger = logging.getLogger(__name__)


class TransactionSender:
    """
    Builds, signs and broadcasts one call at a time, then waits for its receipt.

    Broadcasting and waiting are separate steps so callers can record the
    hash (pending) before the receipt arrives (confirming).
    """

    def __init__(
        self,
        client: ChainClient,
        wallet: WalletManager,
        chain_id: int,
        gas_priority: str = "medium",
        receipt_timeout: int = 120,
    ):
        self._client = client
        self._builder = TransactionBuilder(client, wallet, chain_id, gas_priority)
        self._receipt_timeout = receipt_timeout

    @property
    def account(self) -> Address:
        return self._builder.sender

    async def send(self, to: Address, data: bytes, value: int = 0) -> str:
        tx_hash = await asyncio.to_thread(self._builder.broadcast, to, data, value)
        logger.info("broadcast %s to %s (value=%d)", tx_hash, to, value)
        return tx_hash

    async def wait(self, tx_hash: str) -> TransactionReceipt:
        receipt = await asyncio.to_thread(
            self._client.wait_for_receipt, tx_hash, self._receipt_timeout
        )
        logger.info("receipt %s in block %d", tx_hash, receipt.block_number)
        return receipt
