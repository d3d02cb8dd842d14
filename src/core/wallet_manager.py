"""Signing key for the connected account."""

from __future__ import annotations

from typing import Any

from eth_account import Account
from eth_account.datastructures import SignedTransaction

import config

from .base_types import Address, TransactionRequest


def _mask_private_key(private_key: Any) -> str:
    if isinstance(private_key, (bytes, bytearray)):
        raw = private_key.hex()
    else:
        raw = str(private_key)
    raw = raw[2:] if raw.startswith("0x") else raw
    if len(raw) < 10:
        return "<redacted>"
    return f"0x{raw[:6]}...{raw[-4:]}"


class WalletManager:
    """
    Signs approvals, swaps and liquidity calls for one account.

    The key lives only inside the eth_account LocalAccount. It is never
    rendered in reprs or error messages; invalid keys are masked.
    """

    def __init__(self, private_key: str | bytes) -> None:
        try:
            self._account = Account.from_key(private_key)
        except Exception as exc:
            masked = _mask_private_key(private_key)
            raise ValueError(f"Invalid private key: {masked}") from exc
        self._address = Address.from_string(self._account.address)

    @classmethod
    def from_env(cls, env_var: str = "PRIVATE_KEY") -> "WalletManager":
        value = config.get_env(env_var)
        if not value:
            raise ValueError(f"Environment variable {env_var} is not set")
        return cls(value)

    @property
    def address(self) -> Address:
        return self._address

    def sign(self, request: TransactionRequest) -> SignedTransaction:
        """Sign a prepared request. It must be from this account and carry nonce and gas."""
        if request.sender is not None and request.sender != self._address:
            raise ValueError(f"request is from {request.sender}, wallet is {self._address}")
        if request.nonce is None or request.gas_limit is None:
            raise ValueError("request must carry nonce and gas_limit before signing")
        if request.max_fee_per_gas is None or request.max_priority_fee is None:
            raise ValueError("request must carry fee caps before signing")
        return self._account.sign_transaction(request.to_dict())

    def __repr__(self) -> str:
        return f"WalletManager(address={self._address})"

    __str__ = __repr__
