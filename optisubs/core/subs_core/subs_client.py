"""
SubscriptionClient – deploy / subscribe / unsubscribe against OptimisticSubs.

Every call goes through one ClientContext, so submissions share a single
nonce sequence and run strictly one after another.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted

from .subs_abi import SUBS_ABI, SUBSCRIBED_TOPIC
from .subs_context import ClientContext, PendingTransaction
from .subs_errors import DeploymentFailed, TransactionReverted
from .subs_events import EventCorrelator
from .subs_models import ContractHandle, DeploymentConfig, Subscription, TrackedSubscription, to_0x

log = logging.getLogger(__name__)


class SubscriptionClient:
    def __init__(
        self,
        ctx: ClientContext,
        abi: Optional[List[Dict[str, Any]]] = None,
        bytecode: Optional[str] = None,
        correlator: Optional[EventCorrelator] = None,
    ):
        self.ctx = ctx
        self.abi = abi or SUBS_ABI
        self.bytecode = bytecode
        self.correlator = correlator or EventCorrelator()
        self._tracked: Dict[bytes, TrackedSubscription] = {}

    # ---------------- deployment ----------------

    def deploy(self, config: DeploymentConfig) -> ContractHandle:
        if not self.bytecode:
            raise DeploymentFailed("No contract bytecode configured")
        factory = self.ctx.w3.eth.contract(abi=self.abi, bytecode=self.bytecode)
        try:
            pending = self.ctx.transact(factory.constructor(*config.as_args()), label="deploy")
            receipt = pending.confirm()
        except TransactionReverted as e:
            raise DeploymentFailed("Contract deployment reverted", e.details) from e
        except (TimeExhausted, ContractLogicError, requests.exceptions.RequestException) as e:
            # receipt wait timed out, or the HTTP transport itself failed
            raise DeploymentFailed("Contract deployment did not complete", {"reason": str(e)}) from e

        address = receipt.get("contractAddress")
        if not address:
            raise DeploymentFailed("Receipt has no contractAddress", {"tx": pending.hex})
        log.info("Deployed OptimisticSubs at %s (tx %s)", address, pending.hex)
        return ContractHandle(address=address, contract=self.ctx.contract(address, self.abi), deploy_tx_hash=pending.hex)

    def attach(self, address: str) -> ContractHandle:
        """Handle for an instance that is already on chain."""
        address = Web3.to_checksum_address(address)
        return ContractHandle(address=address, contract=self.ctx.contract(address, self.abi))

    # ---------------- subscribe / unsubscribe ----------------

    def subscribe(self, handle: ContractHandle, subscriber: str, amount: int, period_count: int) -> PendingTransaction:
        """Submit only; the caller decides whether to wait or correlate."""
        call = handle.contract.functions.subscribe(
            Web3.to_checksum_address(subscriber), int(amount), int(period_count)
        )
        return self.ctx.transact(call, label="subscribe")

    def track(
        self,
        handle: ContractHandle,
        subscriber: str,
        amount: int,
        period_count: int,
        expected_signature: bytes = SUBSCRIBED_TOPIC,
    ) -> TrackedSubscription:
        """subscribe + correlate, walking the record NOT_CREATED -> PENDING -> ACTIVE."""
        tracked = TrackedSubscription()
        tracked.mark_pending(self.subscribe(handle, subscriber, amount, period_count))
        sub = self.correlator.correlate(tracked.pending, expected_signature)
        tracked.activate(sub)
        self._tracked[bytes(sub.sub_id)] = tracked
        return tracked

    def tracked(self, sub_id: bytes) -> Optional[TrackedSubscription]:
        return self._tracked.get(bytes(HexBytes(sub_id)))

    def unsubscribe(self, handle: ContractHandle, sub_id: bytes | Subscription) -> None:
        """
        Submit unsubscribe and wait for it to be mined.

        A tracked subscription must be ACTIVE; it only moves to CANCELLED
        once the receipt succeeds. On revert it stays ACTIVE.
        """
        raw = sub_id.sub_id if isinstance(sub_id, Subscription) else HexBytes(sub_id)
        tracked = self._tracked.get(bytes(raw))
        if tracked is not None:
            tracked.require_active()

        call = handle.contract.functions.unsubscribe(bytes(raw))
        pending = self.ctx.transact(call, label="unsubscribe")
        try:
            pending.confirm()
        except TransactionReverted as e:
            e.details.setdefault("subId", to_0x(raw))
            raise

        if tracked is not None:
            tracked.cancel()
        log.info("Unsubscribed %s", to_0x(raw))
