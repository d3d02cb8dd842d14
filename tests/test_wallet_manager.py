import pytest
from eth_account import Account

from core.base_types import Address, TokenAmount, TransactionRequest
from core.wallet_manager import WalletManager, _mask_private_key

ROUTER = Address.from_string("0x" + "1" * 40)


def _prepared(sender, **overrides):
    values = dict(
        to=ROUTER,
        value=TokenAmount(raw=123, decimals=18),
        data=b"\x12\x34",
        nonce=0,
        gas_limit=200_000,
        max_fee_per_gas=10,
        max_priority_fee=1,
        chain_id=8453,
        sender=sender,
    )
    values.update(overrides)
    return TransactionRequest(**values)


def test_repr_and_str_do_not_expose_private_key():
    account = Account.create()
    wallet = WalletManager(account.key)
    key_hex = account.key.hex()

    assert key_hex not in repr(wallet)
    assert key_hex not in str(wallet)
    assert "WalletManager(address=" in repr(wallet)


def test_invalid_private_key_is_masked(monkeypatch):
    bad_key = "0x" + ("a" * 12)
    masked = _mask_private_key(bad_key)
    monkeypatch.setenv("PRIVATE_KEY", bad_key)

    with pytest.raises(ValueError) as exc:
        WalletManager.from_env()

    assert bad_key not in str(exc.value)
    assert masked in str(exc.value)


def test_missing_env_var(monkeypatch):
    monkeypatch.delenv("PRIVATE_KEY", raising=False)
    with pytest.raises(ValueError, match="PRIVATE_KEY"):
        WalletManager.from_env()


def test_address_is_typed():
    account = Account.create()
    wallet = WalletManager(account.key)
    assert wallet.address == Address.from_string(account.address)


def test_signs_prepared_router_call():
    wallet = WalletManager(Account.create().key)

    signed = wallet.sign(_prepared(wallet.address))
    recovered = Account.recover_transaction(signed.raw_transaction)

    assert Address.from_string(recovered) == wallet.address


def test_refuses_request_from_another_account():
    wallet = WalletManager(Account.create().key)
    other = Address.from_string(Account.create().address)
    with pytest.raises(ValueError, match="wallet is"):
        wallet.sign(_prepared(other))


def test_refuses_unprepared_request():
    wallet = WalletManager(Account.create().key)
    with pytest.raises(ValueError, match="nonce and gas_limit"):
        wallet.sign(_prepared(wallet.address, nonce=None))
    with pytest.raises(ValueError, match="fee caps"):
        wallet.sign(_prepared(wallet.address, max_fee_per_gas=None))
