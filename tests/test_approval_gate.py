import pytest

from chain.contracts import (
    ERC20_ALLOWANCE,
    ERC20_APPROVE,
    ERC721_IS_APPROVED_FOR_ALL,
    ERC721_SET_APPROVAL_FOR_ALL,
)
from chain.errors import RPCError
from core.base_types import MAX_UINT256, Address
from core.errors import ApprovalFailedError, ContractCallError
from fakes import ACCOUNT, PUNKS, ROUTER, USDC, FakeReader, FakeSender
from gating.approval import (
    ApprovalGate,
    ApprovalKind,
    ApprovalRequirement,
    ApprovalStatus,
    CollectionApprovalGate,
    collection_requirement,
    gate_for,
    needs_approval,
)


def _requirement(amount=1_000):
    return ApprovalRequirement(token=USDC, spender=ROUTER, amount=amount, symbol="USDC")


class Allowance:
    """Mutable allowance the fake sender can raise on confirmation."""

    def __init__(self, value=0):
        self.value = value

    def __call__(self, owner, spender):
        return self.value


def test_needs_approval_boundary():
    assert needs_approval(999, 1_000)
    assert not needs_approval(1_000, 1_000)
    assert not needs_approval(1_001, 1_000)


def test_requirement_rejects_native_token():
    with pytest.raises(ValueError):
        ApprovalRequirement(token=Address.zero(), spender=ROUTER, amount=1)


@pytest.mark.asyncio
async def test_exact_allowance_is_approved():
    reader = FakeReader()
    reader.on(USDC, ERC20_ALLOWANCE, 1_000)
    gate = ApprovalGate(reader, ACCOUNT, _requirement(1_000))

    state = await gate.refresh()

    assert state.status is ApprovalStatus.APPROVED
    assert state.is_approved
    assert not state.needs_approval
    assert reader.calls_to("allowance") == [(ACCOUNT, ROUTER)]


@pytest.mark.asyncio
async def test_short_allowance_needs_approval():
    reader = FakeReader()
    reader.on(USDC, ERC20_ALLOWANCE, 999)
    gate = ApprovalGate(reader, ACCOUNT, _requirement(1_000))

    state = await gate.refresh()

    assert state.status is ApprovalStatus.NEEDS_APPROVAL
    assert state.current_allowance == 999


@pytest.mark.asyncio
async def test_unknown_until_first_read():
    gate = ApprovalGate(FakeReader(), ACCOUNT, _requirement())
    assert gate.state.is_loading
    assert gate.state.needs_approval


@pytest.mark.asyncio
async def test_read_failure_is_contract_call_error():
    reader = FakeReader()
    reader.on(USDC, ERC20_ALLOWANCE, RPCError("boom"))
    gate = ApprovalGate(reader, ACCOUNT, _requirement())

    with pytest.raises(ContractCallError):
        await gate.refresh()
    assert gate.state.status is ApprovalStatus.UNKNOWN


@pytest.mark.asyncio
async def test_approve_walks_to_approved():
    reader = FakeReader()
    allowance = Allowance(0)
    reader.on(USDC, ERC20_ALLOWANCE, allowance)
    seen = []

    def confirm(to, data, value):
        seen.append(gate.state.status)
        allowance.value = 1_000

    sender = FakeSender(on_confirm=confirm)
    gate = ApprovalGate(reader, ACCOUNT, _requirement(1_000), sender)
    await gate.refresh()

    state = await gate.approve()

    assert seen == [ApprovalStatus.CONFIRMING]
    assert state.status is ApprovalStatus.APPROVED
    assert state.tx_hash == f"0x{1:064x}"
    to, data, value = sender.sent[0]
    assert to == USDC
    assert value == 0
    assert data == ERC20_APPROVE.encode((ROUTER, 1_000))


@pytest.mark.asyncio
async def test_max_approval_encodes_max_uint():
    reader = FakeReader()
    reader.on(USDC, ERC20_ALLOWANCE, MAX_UINT256)
    sender = FakeSender()
    gate = ApprovalGate(reader, ACCOUNT, _requirement(), sender)

    await gate.approve(max_approval=True)

    assert sender.sent[0][1] == ERC20_APPROVE.encode((ROUTER, MAX_UINT256))


@pytest.mark.asyncio
async def test_failed_approval_returns_to_needs_approval():
    reader = FakeReader()
    reader.on(USDC, ERC20_ALLOWANCE, 0)
    sender = FakeSender()
    sender.send_error = RPCError("user rejected")
    gate = ApprovalGate(reader, ACCOUNT, _requirement(), sender)
    await gate.refresh()

    with pytest.raises(ApprovalFailedError):
        await gate.approve()

    assert gate.state.status is ApprovalStatus.NEEDS_APPROVAL
    assert "user rejected" in gate.state.error


@pytest.mark.asyncio
async def test_unexpected_send_error_does_not_wedge_the_gate():
    reader = FakeReader()
    reader.on(USDC, ERC20_ALLOWANCE, 0)
    sender = FakeSender()
    sender.send_error = RuntimeError("signer unavailable")
    gate = ApprovalGate(reader, ACCOUNT, _requirement(), sender)
    await gate.refresh()

    with pytest.raises(ApprovalFailedError, match="signer unavailable"):
        await gate.approve()
    assert gate.state.status is ApprovalStatus.NEEDS_APPROVAL
    assert not gate.state.is_pending

    sender.send_error = None
    await gate.approve()
    assert len(sender.sent) == 1


@pytest.mark.asyncio
async def test_approve_without_wallet_fails():
    gate = ApprovalGate(FakeReader(), ACCOUNT, _requirement())
    with pytest.raises(ApprovalFailedError, match="no wallet"):
        await gate.approve()


@pytest.mark.asyncio
async def test_confirmed_but_still_short_keeps_gate_closed():
    reader = FakeReader()
    reader.on(USDC, ERC20_ALLOWANCE, 10)
    gate = ApprovalGate(reader, ACCOUNT, _requirement(1_000), FakeSender())

    state = await gate.approve()

    assert state.status is ApprovalStatus.NEEDS_APPROVAL
    assert state.error == "Allowance still below the required amount"


@pytest.mark.asyncio
async def test_requirement_change_resets_state():
    reader = FakeReader()
    reader.on(USDC, ERC20_ALLOWANCE, 1_000)
    gate = ApprovalGate(reader, ACCOUNT, _requirement(1_000))
    await gate.refresh()

    gate.set_requirement(_requirement(1_000))
    assert gate.state.is_approved

    gate.set_requirement(_requirement(2_000))
    assert gate.state.status is ApprovalStatus.UNKNOWN
    state = await gate.refresh()
    assert state.status is ApprovalStatus.NEEDS_APPROVAL


@pytest.mark.asyncio
async def test_allowance_for_superseded_requirement_is_dropped():
    reader = FakeReader()
    gate = ApprovalGate(reader, ACCOUNT, _requirement(1_000))

    def allowance(owner, spender):
        gate.set_requirement(_requirement(5_000))
        return 1_000

    reader.on(USDC, ERC20_ALLOWANCE, allowance)

    state = await gate.refresh()

    assert state.requirement.amount == 5_000
    assert state.status is ApprovalStatus.UNKNOWN


class TestCollectionApproval:
    @pytest.mark.asyncio
    async def test_operator_flag_reads_as_allowance(self):
        reader = FakeReader()
        reader.on(PUNKS, ERC721_IS_APPROVED_FOR_ALL, True)
        gate = gate_for(reader, ACCOUNT, collection_requirement(PUNKS, ROUTER, "PUNK"))

        assert isinstance(gate, CollectionApprovalGate)
        state = await gate.refresh()
        assert state.current_allowance == 1
        assert state.is_approved

    @pytest.mark.asyncio
    async def test_set_approval_for_all_is_sent(self):
        reader = FakeReader()
        approved = {"flag": False}
        reader.on(PUNKS, ERC721_IS_APPROVED_FOR_ALL, lambda owner, op: approved["flag"])

        def confirm(to, data, value):
            approved["flag"] = True

        sender = FakeSender(on_confirm=confirm)
        requirement = collection_requirement(PUNKS, ROUTER, "PUNK")
        assert requirement.kind is ApprovalKind.COLLECTION
        gate = gate_for(reader, ACCOUNT, requirement, sender)

        assert (await gate.refresh()).needs_approval
        state = await gate.approve()

        assert state.is_approved
        assert sender.sent[0][0] == PUNKS
        assert sender.sent[0][1] == ERC721_SET_APPROVAL_FOR_ALL.encode((ROUTER, True))


@pytest.mark.asyncio
async def test_explicit_amount_below_requirement_refused():
    reader = FakeReader()
    reader.on(USDC, ERC20_ALLOWANCE, 0)
    sender = FakeSender()
    gate = ApprovalGate(reader, ACCOUNT, _requirement(1_000), sender)

    with pytest.raises(ApprovalFailedError, match="below the required"):
        await gate.approve(999)
    assert sender.sent == []


@pytest.mark.asyncio
async def test_explicit_amount_is_encoded():
    reader = FakeReader()
    reader.on(USDC, ERC20_ALLOWANCE, 5_000)
    sender = FakeSender()
    gate = ApprovalGate(reader, ACCOUNT, _requirement(1_000), sender)

    state = await gate.approve(5_000)

    assert state.current_allowance >= 1_000
    assert sender.sent[0][1] == ERC20_APPROVE.encode((ROUTER, 5_000))
