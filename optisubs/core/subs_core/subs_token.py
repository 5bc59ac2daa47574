from __future__ import annotations

import logging
from typing import Any, Optional

from web3 import Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from .subs_abi import ERC20_APPROVE_ABI
from .subs_context import ClientContext
from .subs_errors import TransactionReverted

log = logging.getLogger(__name__)


class TokenApprover:
    """Grants an ERC-20 allowance and waits for it to be mined."""

    def __init__(self, ctx: ClientContext, token_address: str, contract: Optional[Any] = None):
        self.ctx = ctx
        self.token_address = Web3.to_checksum_address(token_address)
        self.token = contract if contract is not None else ctx.contract(self.token_address, ERC20_APPROVE_ABI)

    def approve(self, spender: str, amount: int) -> None:
        """
        Raises TransactionReverted if the token refuses or the tx reverts.

        The call is simulated first so a token that answers `false` instead of
        reverting is caught before anything is sent. Tokens that return
        nothing (pre-ERC-20-final, e.g. USDT) are accepted on revert status alone.
        """
        try:
            spender = Web3.to_checksum_address(spender)
        except (TypeError, ValueError) as e:
            raise TransactionReverted("approve rejected: malformed spender", {"spender": spender}) from e
        call = self.token.functions.approve(spender, int(amount))
        try:
            ok = call.call({"from": self.ctx.address})
        except ContractLogicError as e:
            raise TransactionReverted("approve rejected by token", {"spender": spender, "reason": str(e)}) from e
        except BadFunctionCallOutput:
            ok = None
        if ok is False:
            raise TransactionReverted("approve returned false", {"spender": spender, "token": self.token_address})

        pending = self.ctx.transact(call, label="approve")
        pending.confirm()
        log.info("Approved %s for %s on token %s", amount, spender, self.token_address)

    def allowance(self, owner: str, spender: str) -> int:
        return int(
            self.token.functions.allowance(
                Web3.to_checksum_address(owner), Web3.to_checksum_address(spender)
            ).call()
        )
