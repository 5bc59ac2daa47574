import pytest
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from optisubs.core.subs_core.subs_errors import TransactionReverted
from optisubs.core.subs_core.subs_token import TokenApprover

from helpers import CONTRACT_ADDR, SIGNER, FakeContext, receipt

TOKEN = "0xda10009cbd5d07dd0cecc66161fc93d7c9000da1"


def test_approve_submits_and_waits():
    ctx = FakeContext()
    TokenApprover(ctx, TOKEN).approve(CONTRACT_ADDR.lower(), 10**18)
    call = ctx.calls[0]
    assert call.name == "approve"
    assert call.args == (CONTRACT_ADDR, 10**18)
    assert ctx.events == ["submit:approve", "wait:1"]


def test_approve_revert_raises():
    ctx = FakeContext(receipts={"approve": [receipt(status=0)]})
    with pytest.raises(TransactionReverted):
        TokenApprover(ctx, TOKEN).approve(CONTRACT_ADDR, 1)


class _Allowance:
    def __init__(self, value):
        self.value = value

    def call(self):
        return self.value


class _TokenContract:
    class functions:
        @staticmethod
        def allowance(owner, spender):
            assert owner == SIGNER
            return _Allowance(5)


def test_allowance_reads_contract():
    approver = TokenApprover(FakeContext(), TOKEN, contract=_TokenContract())
    assert approver.allowance(SIGNER.lower(), CONTRACT_ADDR) == 5


def test_malformed_spender_is_rejected_before_sending():
    ctx = FakeContext()
    with pytest.raises(TransactionReverted):
        TokenApprover(ctx, TOKEN).approve("0x1234", 1)
    assert ctx.calls == []


def test_approve_returning_false_is_rejected():
    ctx = FakeContext()
    approver = TokenApprover(ctx, TOKEN)
    approver.token.reads["approve"] = False
    with pytest.raises(TransactionReverted) as exc:
        approver.approve(CONTRACT_ADDR, 1)
    assert "false" in str(exc.value)
    assert ctx.calls == []


def test_approve_without_return_value_still_sends():
    ctx = FakeContext()
    approver = TokenApprover(ctx, TOKEN)
    approver.token.reads["approve"] = BadFunctionCallOutput("no return data")
    approver.approve(CONTRACT_ADDR, 1)
    assert ctx.events == ["submit:approve", "wait:1"]


def test_approve_simulation_revert():
    ctx = FakeContext()
    approver = TokenApprover(ctx, TOKEN)
    approver.token.reads["approve"] = ContractLogicError("execution reverted: bad spender")
    with pytest.raises(TransactionReverted):
        approver.approve(CONTRACT_ADDR, 1)
    assert ctx.calls == []
