from .base_types import (
    MAX_UINT256,
    ZERO_ADDRESS,
    Address,
    AssetKind,
    Token,
    TokenAmount,
    TransactionReceipt,
    TransactionRequest,
)
from .errors import (
    ApprovalFailedError,
    ContractCallError,
    ExcessiveSlippageError,
    InsufficientLiquidityError,
    InvalidParametersError,
    PoolNotFoundError,
    RouterError,
    RevertCategory,
    TransactionFailedError,
    UnsupportedSwapTypeError,
    classify_revert,
)

__all__ = [
    "Address",
    "AssetKind",
    "Token",
    "TokenAmount",
    "TransactionRequest",
    "TransactionReceipt",
    "ZERO_ADDRESS",
    "MAX_UINT256",
    "RouterError",
    "InvalidParametersError",
    "PoolNotFoundError",
    "InsufficientLiquidityError",
    "ExcessiveSlippageError",
    "ContractCallError",
    "UnsupportedSwapTypeError",
    "ApprovalFailedError",
    "TransactionFailedError",
    "RevertCategory",
    "classify_revert",
]
