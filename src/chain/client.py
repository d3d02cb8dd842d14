"""Blocking JSON-RPC transport shared by contract reads and transaction submission."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import requests

from core.base_types import Address, TransactionReceipt, TransactionRequest

from .errors import (
    ChainError,
    ExecutionReverted,
    InsufficientFunds,
    NonceTooLow,
    ReplacementUnderpriced,
    RPCError,
    TransactionFailed,
)

logger = logging.getLogger(__name__)

PRIORITY_LEVELS = ("low", "medium", "high")

# node messages that map to a more specific error than RPCError
_NODE_ERRORS = (
    ("insufficient funds", InsufficientFunds),
    ("nonce too low", NonceTooLow),
    ("replacement transaction underpriced", ReplacementUnderpriced),
)


@dataclass(frozen=True)
class FeeQuote:
    """EIP-1559 fee inputs sampled from the latest block."""

    base_fee: int
    priority_fee: int

    def tip(self, priority: str = "medium") -> int:
        if priority not in PRIORITY_LEVELS:
            raise ValueError("priority must be low, medium, or high")
        if priority == "high":
            return self.priority_fee * 3 // 2
        return self.priority_fee

    def max_fee(self, priority: str = "medium", headroom: int = 2) -> int:
        """Fee cap that survives `headroom`x base fee growth before inclusion."""
        if headroom < 1:
            raise ValueError("headroom must be at least 1")
        return self.base_fee * headroom + self.tip(priority)


class ChainClient:
    """
    JSON-RPC client for one chain, with several endpoints tried in order.

    Each endpoint gets `max_retries` attempts with exponential backoff on
    transport failures, rate limiting and 5xx responses. Node-reported
    errors are not retried; they are raised as typed ChainErrors so reverts
    keep their reason.
    """

    def __init__(
        self,
        rpc_urls: list[str],
        timeout: int = 30,
        max_retries: int = 3,
        backoff: float = 0.5,
    ):
        if not rpc_urls:
            raise ValueError("rpc_urls must not be empty")
        self._rpc_urls = list(rpc_urls)
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff = backoff
        self._session = requests.Session()
        self._request_id = 0

    def get_chain_id(self) -> int:
        return _quantity(self._request("eth_chainId", []))

    def get_balance(self, address: Address) -> int:
        """Native balance in wei."""
        return _quantity(self._request("eth_getBalance", [address.checksum, "latest"]))

    def get_nonce(self, address: Address) -> int:
        return _quantity(
            self._request("eth_getTransactionCount", [address.checksum, "pending"])
        )

    def get_fee_quote(self) -> FeeQuote:
        block = self._request("eth_getBlockByNumber", ["latest", False]) or {}
        return FeeQuote(
            base_fee=_quantity(block.get("baseFeePerGas", "0x0")),
            priority_fee=_quantity(self._request("eth_maxPriorityFeePerGas", [])),
        )

    def estimate_gas(self, tx: TransactionRequest) -> int:
        return _quantity(self._request("eth_estimateGas", [tx.to_call_dict()]))

    def call(self, tx: TransactionRequest, block: str = "latest") -> bytes:
        return _data(self._request("eth_call", [tx.to_call_dict(), block]))

    def send_transaction(self, signed_tx: bytes) -> str:
        return str(self._request("eth_sendRawTransaction", [f"0x{signed_tx.hex()}"]))

    def get_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        data = self._request("eth_getTransactionReceipt", [tx_hash])
        if data is None:
            return None
        return TransactionReceipt.from_web3(data)

    def wait_for_receipt(
        self,
        tx_hash: str,
        timeout: int = 120,
        poll_interval: float = 1.0,
    ) -> TransactionReceipt:
        """Poll until mined. A mined but reverted transaction raises TransactionFailed."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            receipt = self.get_receipt(tx_hash)
            if receipt is not None:
                if not receipt.status:
                    raise TransactionFailed(tx_hash, receipt)
                return receipt
            time.sleep(poll_interval)
        raise TimeoutError(f"Timed out waiting for receipt {tx_hash}")

    def _request(self, method: str, params: list[Any]) -> Any:
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }
        last_failure = ""
        for url in self._rpc_urls:
            for attempt in range(self._max_retries):
                try:
                    return self._post(url, payload)
                except (requests.RequestException, ValueError) as exc:
                    last_failure = f"{url}: {exc}"
                    logger.warning(
                        "rpc %s attempt %d on %s failed: %s",
                        method,
                        attempt + 1,
                        url,
                        exc,
                    )
                    time.sleep(self._backoff * (2**attempt))
        raise ChainError(f"RPC request failed for {method} ({last_failure})")

    def _post(self, url: str, payload: dict) -> Any:
        start = time.perf_counter()
        response = self._session.post(url, json=payload, timeout=self._timeout)
        logger.debug(
            "rpc %s via %s in %.3fs", payload["method"], url, time.perf_counter() - start
        )
        if response.status_code == 429 or response.status_code >= 500:
            raise requests.HTTPError(f"HTTP {response.status_code}", response=response)
        if response.status_code >= 400:
            raise RPCError(f"HTTP {response.status_code} from {url}")
        body = response.json()
        if "error" in body:
            raise _node_error(body["error"])
        return body.get("result")


def _node_error(error: dict) -> ChainError:
    message = str(error.get("message", "RPC error"))
    code = error.get("code")
    lowered = message.lower()
    for marker, error_type in _NODE_ERRORS:
        if marker in lowered:
            return error_type(message)
    if "execution reverted" in lowered or code == 3:
        return ExecutionReverted(message, code=code, data=error.get("data"))
    return RPCError(message, code=code, data=error.get("data"))


def _quantity(value: Any) -> int:
    if not isinstance(value, str):
        raise RPCError(f"expected a hex quantity, got {value!r}")
    return int(value, 16)


def _data(value: Any) -> bytes:
    if not isinstance(value, str):
        raise RPCError(f"expected hex data, got {value!r}")
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)
