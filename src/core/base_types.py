"""Core type definitions shared by the routing and flow modules."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from enum import Enum
from typing import Optional

from eth_utils.address import is_address, to_checksum_address

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
MAX_UINT256 = 2**256 - 1


@dataclass(frozen=True)
class Address:
    """Ethereum address with validation and checksumming."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise TypeError("Address value must be a string")
        if not is_address(self.value):
            raise ValueError("Invalid Ethereum address")
        object.__setattr__(self, "value", to_checksum_address(self.value))

    @classmethod
    def from_string(cls, s: str) -> "Address":
        return cls(s)

    @classmethod
    def zero(cls) -> "Address":
        return cls(ZERO_ADDRESS)

    @property
    def checksum(self) -> str:
        return self.value

    @property
    def lower(self) -> str:
        return self.value.lower()

    @property
    def is_zero(self) -> bool:
        return self.lower == ZERO_ADDRESS

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Address):
            return self.lower == other.lower
        if isinstance(other, str):
            return self.lower == other.lower()
        return False

    def __hash__(self) -> int:
        return hash(self.lower)

    def __str__(self) -> str:
        return self.value


class AssetKind(Enum):
    FUNGIBLE = "fungible"
    NATIVE = "native"
    DISCRETE = "discrete"


@dataclass(frozen=True)
class Token:
    """
    A tradeable asset.

    NATIVE tokens sit at the zero address and are routed through the
    chain's wrapped-native token. DISCRETE tokens are NFT collections traded
    per unit (decimals 0).
    """

    address: Address
    symbol: str
    decimals: int
    kind: AssetKind = AssetKind.FUNGIBLE

    def __post_init__(self) -> None:
        if not isinstance(self.decimals, int) or self.decimals < 0:
            raise ValueError("decimals must be a non-negative integer")
        if self.kind is AssetKind.DISCRETE and self.decimals != 0:
            raise ValueError("discrete tokens must have 0 decimals")
        if self.kind is AssetKind.NATIVE and not self.address.is_zero:
            raise ValueError("native token must use the zero address")

    @classmethod
    def native(cls, symbol: str = "ETH") -> "Token":
        return cls(Address.zero(), symbol, 18, AssetKind.NATIVE)

    @classmethod
    def collection(cls, address: Address, symbol: str) -> "Token":
        return cls(address, symbol, 0, AssetKind.DISCRETE)

    @property
    def is_discrete(self) -> bool:
        return self.kind is AssetKind.DISCRETE

    @property
    def is_native(self) -> bool:
        return self.kind is AssetKind.NATIVE

    def amount(self, raw: int) -> "TokenAmount":
        return TokenAmount(raw=raw, decimals=self.decimals, symbol=self.symbol)

    def parse(self, human: str | Decimal) -> "TokenAmount":
        return TokenAmount.from_human(human, self.decimals, self.symbol)


@dataclass(frozen=True)
class TokenAmount:
    """
    Represents a token amount with proper decimal handling.

    Internally stores raw integer (wei-equivalent).
    Provides human-readable formatting.
    """

    raw: int
    decimals: int
    symbol: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.raw, int):
            raise TypeError("raw must be an int")
        if not isinstance(self.decimals, int) or self.decimals < 0:
            raise ValueError("decimals must be a non-negative integer")

    @classmethod
    def from_human(
        cls, amount: str | Decimal, decimals: int, symbol: str | None = None
    ) -> "TokenAmount":
        """Create from human-readable amount (e.g., '1.5' ETH)."""
        if isinstance(amount, float):
            raise TypeError("amount must be a string or Decimal, not float")
        if isinstance(amount, str):
            decimal_amount = Decimal(amount)
        elif isinstance(amount, Decimal):
            decimal_amount = amount
        else:
            raise TypeError("amount must be a string or Decimal")

        scale = Decimal(10) ** Decimal(decimals)
        raw_decimal = decimal_amount * scale
        if raw_decimal != raw_decimal.to_integral_value():
            raise ValueError("amount has more precision than decimals allow")
        return cls(raw=int(raw_decimal), decimals=decimals, symbol=symbol)

    @property
    def human(self) -> Decimal:
        """Returns human-readable decimal."""
        scale = Decimal(10) ** Decimal(self.decimals)
        return Decimal(self.raw) / scale

    def format(self, places: int = 6) -> str:
        """Display string truncated to `places` fractional digits."""
        quantum = Decimal(1).scaleb(-min(places, self.decimals))
        shown = self.human.quantize(quantum, rounding=ROUND_DOWN).normalize()
        text = format(shown, "f")
        return f"{text} {self.symbol or ''}".strip()

    def __str__(self) -> str:
        return f"{self.human} {self.symbol or ''}".strip()


@dataclass
class TransactionRequest:
    """A transaction ready to be signed."""

    to: Address
    value: TokenAmount
    data: bytes
    nonce: Optional[int] = None
    gas_limit: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee: Optional[int] = None
    chain_id: int = 1
    sender: Optional[Address] = None

    def to_dict(self) -> dict:
        """Convert to web3-compatible dict."""
        payload: dict[str, object] = {
            "to": self.to.checksum,
            "value": self.value.raw,
            "data": f"0x{self.data.hex()}",
            "chainId": self.chain_id,
        }
        if self.sender is not None:
            payload["from"] = self.sender.checksum
        if self.nonce is not None:
            payload["nonce"] = self.nonce
        if self.gas_limit is not None:
            payload["gas"] = self.gas_limit
        if self.max_fee_per_gas is not None:
            payload["maxFeePerGas"] = self.max_fee_per_gas
        if self.max_priority_fee is not None:
            payload["maxPriorityFeePerGas"] = self.max_priority_fee
        return payload

    def to_call_dict(self) -> dict:
        """eth_call / eth_estimateGas payload with hex quantities."""
        payload: dict[str, object] = {
            "to": self.to.checksum,
            "value": hex(self.value.raw),
            "data": f"0x{self.data.hex()}",
        }
        if self.sender is not None:
            payload["from"] = self.sender.checksum
        return payload


@dataclass
class TransactionReceipt:
    """Parsed transaction receipt."""

    tx_hash: str
    block_number: int
    status: bool
    gas_used: int
    effective_gas_price: int
    logs: list

    @property
    def tx_fee(self) -> TokenAmount:
        """Returns transaction fee as TokenAmount."""
        return TokenAmount(
            raw=self.gas_used * self.effective_gas_price,
            decimals=18,
            symbol="ETH",
        )

    @classmethod
    def from_web3(cls, receipt: dict) -> "TransactionReceipt":
        """Parse from web3 receipt dict."""
        tx_hash = receipt.get("transactionHash")
        if hasattr(tx_hash, "hex"):
            tx_hash_value = tx_hash.hex()
        else:
            tx_hash_value = str(tx_hash)

        status_value = receipt.get("status")
        if isinstance(status_value, bool):
            status = status_value
        elif isinstance(status_value, int):
            status = status_value == 1
        elif isinstance(status_value, str):
            if status_value.startswith("0x"):
                status = int(status_value, 16) == 1
            else:
                status = int(status_value) == 1
        else:
            raise ValueError("Invalid status in receipt")

        return cls(
            tx_hash=tx_hash_value,
            block_number=_to_int(receipt.get("blockNumber")),
            status=status,
            gas_used=_to_int(receipt.get("gasUsed")),
            effective_gas_price=_to_int(receipt.get("effectiveGasPrice", 0)),
            logs=receipt.get("logs", []),
        )


def _to_int(value: object) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    raise ValueError("Expected integer-like value")
