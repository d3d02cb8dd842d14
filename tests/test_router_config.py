import pytest

from core.base_types import Address
from core.errors import InvalidParametersError
from fakes import WETH, X_TOKEN, make_config
from routing.config import CHAIN_DEPLOYMENTS, MAX_SLIPPAGE_BPS, RouterConfig


def test_known_chain_defaults_intermediary_to_wrapped_native():
    config = RouterConfig.for_chain(1)
    assert config.intermediary == config.wrapped_native
    assert config.native_symbol == "ETH"
    assert config.router == Address.from_string(CHAIN_DEPLOYMENTS[1].router)


def test_native_symbol_follows_chain():
    assert RouterConfig.for_chain(56).native_symbol == "BNB"


def test_unknown_chain_rejected():
    with pytest.raises(ValueError, match="Unsupported chain id"):
        RouterConfig.for_chain(999_999)


def test_settings_are_validated():
    with pytest.raises(ValueError):
        make_config(default_slippage_bps=MAX_SLIPPAGE_BPS + 1)
    with pytest.raises(ValueError):
        make_config(deadline_minutes=0)


def test_wrap_maps_only_the_zero_address():
    config = make_config()
    assert config.wrap(Address.zero()) == WETH
    assert config.wrap(X_TOKEN) == X_TOKEN


def test_with_intermediary_returns_new_value():
    config = make_config()
    other = config.with_intermediary(X_TOKEN)
    assert other.intermediary == X_TOKEN
    assert config.intermediary == WETH


def test_validate_slippage():
    config = make_config()
    config.validate_slippage(0)
    config.validate_slippage(MAX_SLIPPAGE_BPS)
    with pytest.raises(InvalidParametersError):
        config.validate_slippage(MAX_SLIPPAGE_BPS + 1)


def test_from_env_applies_overrides(monkeypatch):
    router = "0x0000000000000000000000000000000000000abc"
    monkeypatch.setenv("CHAIN_ID", "8453")
    monkeypatch.setenv("ROUTER_ADDRESS", router)
    monkeypatch.delenv("FACTORY_ADDRESS", raising=False)
    monkeypatch.delenv("INTERMEDIARY_ADDRESS", raising=False)

    config = RouterConfig.from_env()

    assert config.chain_id == 8453
    assert config.router == Address.from_string(router)
    assert config.factory == Address.from_string(CHAIN_DEPLOYMENTS[8453].factory)
