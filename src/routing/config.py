"""Per-chain router deployments and the immutable routing configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional

from core.base_types import Address
from core.errors import InvalidParametersError

logger = logging.getLogger(__name__)

MAX_SLIPPAGE_BPS = 5000
BPS_DENOMINATOR = 10_000


@dataclass(frozen=True)
class ChainDeployment:
    name: str
    router: str
    factory: str
    wrapped_native: str
    native_symbol: str = "ETH"


_ROUTER_A = "0x151522484121f4e28eA24c8b5d827132775a93FE"
_FACTORY_A = "0x16eD649675e6Ed9F1480091123409B4b8D228dC1"
_ROUTER_B = "0x46ed13B4EdDa147fA7eF018FB178300FA24C4Efc"
_FACTORY_B = "0xFc42221594c07F2EFCEDfb11f4763FCa03248B5A"
_ROUTER_C = "0xB18e06D9eBC9dBa28D56C112D44c6AC9b343E2Cb"
_FACTORY_C = "0x7962223D940E1b099AbAe8F54caBFB8a3a0887AB"
_OP_STACK_WETH = "0x4200000000000000000000000000000000000006"

CHAIN_DEPLOYMENTS: dict[int, ChainDeployment] = {
    1: ChainDeployment(
        "Ethereum", _ROUTER_A, _FACTORY_A, "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
    ),
    5: ChainDeployment(
        "Goerli", _ROUTER_A, _FACTORY_A, "0xB4FBF271143F4FBf7B91A5ded31805e42b2208d6"
    ),
    10: ChainDeployment("Optimism", _ROUTER_C, _FACTORY_C, _OP_STACK_WETH),
    56: ChainDeployment(
        "BNB Smart Chain",
        "0x790488868E4b2eDb166778D67142035091eb130A",
        "0x1fC0D65ae98F69cD8DCDA4ec0F6155A5F2a7b0ab",
        "0xbb4CdB9CBd36B01bD1cBaEBF2De08d9173bc095c",
        "BNB",
    ),
    137: ChainDeployment(
        "Polygon",
        _ROUTER_A,
        _FACTORY_A,
        "0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270",
        "MATIC",
    ),
    999: ChainDeployment(
        "HyperEVM",
        "0x1c865C75ab96aEbe4F3beEb4388036047240096b",
        "0xa575959Ab114BF3a84A9B7D92838aC3b77324E65",
        "0x5555555555555555555555555555555555555555",
        "HYPE",
    ),
    1284: ChainDeployment(
        "Moonbeam",
        _ROUTER_C,
        _FACTORY_C,
        "0xAcc15dC74880C9944775448304B263D191c6077F",
        "GLMR",
    ),
    8453: ChainDeployment("Base", _ROUTER_B, _FACTORY_B, _OP_STACK_WETH),
    33139: ChainDeployment(
        "ApeChain",
        "0x4C91AE2260c713EE61b7094141E9494fA7947Cfe",
        "0x58ac416c2A8A217f3aF4acb1F5490efd2bE4652a",
        "0x48b62137EdfA95a428D35C09E44256a739F6B557",
        "APE",
    ),
    34443: ChainDeployment("Mode", _ROUTER_C, _FACTORY_C, _OP_STACK_WETH),
    42161: ChainDeployment(
        "Arbitrum One",
        _ROUTER_B,
        _FACTORY_B,
        "0x82aF49447D8a07e3bd95BD0d56f35241523fBab1",
    ),
    43113: ChainDeployment(
        "Avalanche Fuji",
        _ROUTER_A,
        _FACTORY_A,
        "0xd00ae08403B9bbb9124bB305C09058E32C39A48c",
        "AVAX",
    ),
    43114: ChainDeployment(
        "Avalanche",
        _ROUTER_B,
        _FACTORY_B,
        "0xB31f66AA3C1e785363F0875A1B74E27b85FD66c7",
        "AVAX",
    ),
    59144: ChainDeployment(
        "Linea", _ROUTER_B, _FACTORY_B, "0xe5D7C2a44FfDDf6b295A15c148167daaAf5Cf34f"
    ),
    80001: ChainDeployment(
        "Polygon Mumbai",
        _ROUTER_A,
        _FACTORY_A,
        "0x9c3C9283D3e44854697Cd22D3Faa240Cfb032889",
        "MATIC",
    ),
    80084: ChainDeployment(
        "Berachain bArtio",
        "0x2C4F3f0EEB169BaE301151FbFa99B4c82438F4FD",
        "0x65624436e377c8A4A6918B69927e56982331b590",
        "0x7507c1dc16935B82698e4C63f2746A5fCf994dF8",
        "BERA",
    ),
    81457: ChainDeployment(
        "Blast", _ROUTER_A, _FACTORY_A, "0x4300000000000000000000000000000000000004"
    ),
}


@dataclass(frozen=True)
class RouterConfig:
    """
    Everything the resolver, quote calculator and flows need to know about
    one chain's deployment. Passed around as a value; never mutated.
    """

    chain_id: int
    router: Address
    factory: Address
    wrapped_native: Address
    intermediary: Address
    native_symbol: str = "ETH"
    default_slippage_bps: int = 100
    max_slippage_bps: int = MAX_SLIPPAGE_BPS
    deadline_minutes: int = 20

    def __post_init__(self) -> None:
        if self.chain_id <= 0:
            raise ValueError("chain_id must be positive")
        if not 0 <= self.default_slippage_bps <= self.max_slippage_bps:
            raise ValueError(
                f"default_slippage_bps must be in [0, {self.max_slippage_bps}]"
            )
        if self.max_slippage_bps > MAX_SLIPPAGE_BPS:
            raise ValueError(f"max_slippage_bps cannot exceed {MAX_SLIPPAGE_BPS}")
        if self.deadline_minutes <= 0:
            raise ValueError("deadline_minutes must be positive")

    @classmethod
    def for_chain(
        cls,
        chain_id: int,
        router: Optional[Address] = None,
        factory: Optional[Address] = None,
        intermediary: Optional[Address] = None,
        **settings,
    ) -> "RouterConfig":
        deployment = CHAIN_DEPLOYMENTS.get(chain_id)
        if deployment is None:
            raise ValueError(f"Unsupported chain id: {chain_id}")
        wrapped = Address.from_string(deployment.wrapped_native)
        return cls(
            chain_id=chain_id,
            router=router or Address.from_string(deployment.router),
            factory=factory or Address.from_string(deployment.factory),
            wrapped_native=wrapped,
            intermediary=intermediary or wrapped,
            native_symbol=deployment.native_symbol,
            **settings,
        )

    @classmethod
    def from_env(cls) -> "RouterConfig":
        import config

        chain_id = config.get_int_env("CHAIN_ID", 1)
        built = cls.for_chain(
            chain_id,
            router=_optional_address(config.get_env("ROUTER_ADDRESS")),
            factory=_optional_address(config.get_env("FACTORY_ADDRESS")),
            intermediary=_optional_address(config.get_env("INTERMEDIARY_ADDRESS")),
            default_slippage_bps=config.TRANSACTION_DEFAULTS["slippage_bps"],
            deadline_minutes=config.TRANSACTION_DEFAULTS["deadline_minutes"],
        )
        logger.info(
            "router config chain=%d router=%s intermediary=%s",
            built.chain_id,
            built.router,
            built.intermediary,
        )
        return built

    def with_intermediary(self, intermediary: Address) -> "RouterConfig":
        return replace(self, intermediary=intermediary)

    def wrap(self, address: Address) -> Address:
        """Map the native zero address onto the wrapped-native token."""
        if address.is_zero:
            return self.wrapped_native
        return address

    def validate_slippage(self, slippage_bps: int) -> None:
        if isinstance(slippage_bps, bool) or not isinstance(slippage_bps, int):
            raise InvalidParametersError("slippage_bps must be an integer")
        if not 0 <= slippage_bps <= self.max_slippage_bps:
            raise InvalidParametersError(
                f"slippage_bps must be in [0, {self.max_slippage_bps}]"
            )


def _optional_address(raw: Optional[str]) -> Optional[Address]:
    if raw is None or raw.strip() == "":
        return None
    return Address.from_string(raw.strip())
