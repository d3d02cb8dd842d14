from .client import ChainClient, FeeQuote
from .contracts import ContractFunction, ContractReader
from .errors import (
    ChainError,
    ExecutionReverted,
    InsufficientFunds,
    NonceTooLow,
    ReplacementUnderpriced,
    RPCError,
    TransactionFailed,
)
from .sender import TransactionSender
from .transaction_builder import TransactionBuilder

__all__ = [
    "ChainClient",
    "FeeQuote",
    "ContractFunction",
    "ContractReader",
    "TransactionBuilder",
    "TransactionSender",
    "ChainError",
    "RPCError",
    "ExecutionReverted",
    "TransactionFailed",
    "InsufficientFunds",
    "NonceTooLow",
    "ReplacementUnderpriced",
]
