from .pools import LpPosition, PoolRepository, PoolSnapshot
from .router import RouterRepository
from .tokens import TokenRepository

__all__ = [
    "TokenRepository",
    "PoolRepository",
    "PoolSnapshot",
    "LpPosition",
    "RouterRepository",
]
