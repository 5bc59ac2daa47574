"""
Signing / connection context shared by every subs_core component.

One ClientContext == one signing identity == one nonce sequence. It is built
explicitly and passed around; nothing here is module-global.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

from web3 import Web3
from web3.exceptions import ContractLogicError

from .subs_config import SubsConfig
from .subs_errors import TransactionReverted
from .subs_models import to_0x

log = logging.getLogger(__name__)

GAS_BUMP_NUM = 12
GAS_BUMP_DEN = 10  # +20% over the node's estimate


@dataclass(frozen=True)
class PendingTransaction:
    """A submitted, not yet confirmed transaction."""

    tx_hash: bytes
    context: "ClientContext"
    label: str = ""

    @property
    def hex(self) -> str:
        return to_0x(self.tx_hash)

    def wait(self) -> Dict[str, Any]:
        """Block until mined and return the receipt (any status)."""
        return self.context.wait(self.tx_hash)

    def confirm(self) -> Dict[str, Any]:
        """Block until mined; raise TransactionReverted unless status == 1."""
        receipt = self.wait()
        if receipt.get("status", 0) != 1:
            raise TransactionReverted(
                f"{self.label or 'transaction'} reverted",
                {"tx": self.hex, "block": receipt.get("blockNumber")},
            )
        return receipt


class ClientContext:
    def __init__(
        self,
        w3: Web3,
        private_key: str,
        chain_id: Optional[int] = None,
        receipt_timeout_sec: float = 120,
    ):
        self.w3 = w3
        self.account = w3.eth.account.from_key(private_key)
        self._chain_id = chain_id
        self.receipt_timeout_sec = receipt_timeout_sec
        self._nonce: Optional[int] = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, cfg: SubsConfig) -> "ClientContext":
        w3 = Web3(Web3.HTTPProvider(cfg.rpc_url, request_kwargs={"timeout": cfg.http_timeout_sec}))
        return cls(
            w3,
            cfg.private_key,
            chain_id=cfg.chain_id,
            receipt_timeout_sec=cfg.receipt_timeout_sec,
        )

    @property
    def address(self) -> str:
        return self.account.address

    @property
    def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = int(self.w3.eth.chain_id)
        return self._chain_id

    def contract(self, address: str, abi: list) -> Any:
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    # ---------------- submission ----------------

    def _next_nonce(self) -> int:
        if self._nonce is None:
            self._nonce = int(self.w3.eth.get_transaction_count(self.address, "pending"))
        return self._nonce

    def transact(self, call: Any, label: str = "") -> PendingTransaction:
        """
        Build, sign and send a contract call or constructor.

        *call* is anything exposing build_transaction(), i.e. a bound
        ContractFunction or ContractConstructor. A call the node refuses
        during gas estimation surfaces as TransactionReverted.
        """
        with self._lock:
            base = {"from": self.address, "nonce": self._next_nonce(), "chainId": self.chain_id}
            try:
                tx = call.build_transaction(base)
            except ContractLogicError as e:
                raise TransactionReverted(
                    f"{label or 'call'} rejected by contract", {"reason": str(e)}
                ) from e
            return self._sign_and_send(tx, label)

    def send(self, tx: Dict[str, Any], label: str = "") -> PendingTransaction:
        """Send a raw tx dict; fills from/nonce/chainId/gas when missing."""
        with self._lock:
            tx = dict(tx)
            tx.setdefault("from", self.address)
            tx.setdefault("nonce", self._next_nonce())
            tx.setdefault("chainId", self.chain_id)
            if "gas" not in tx:
                try:
                    tx["gas"] = int(self.w3.eth.estimate_gas(tx))
                except ContractLogicError as e:
                    raise TransactionReverted(
                        f"{label or 'transaction'} rejected by node", {"reason": str(e)}
                    ) from e
            if "gasPrice" not in tx and "maxFeePerGas" not in tx:
                tx["gasPrice"] = self.w3.eth.gas_price
            return self._sign_and_send(tx, label)

    def _sign_and_send(self, tx: Dict[str, Any], label: str) -> PendingTransaction:
        if "gas" in tx:
            tx["gas"] = int(tx["gas"]) * GAS_BUMP_NUM // GAS_BUMP_DEN
        signed = self.account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        # only advance once the node accepted the nonce
        self._nonce = int(tx["nonce"]) + 1
        pending = PendingTransaction(tx_hash=bytes(tx_hash), context=self, label=label)
        log.info("Submitted %s nonce=%s tx=%s", label or "tx", tx["nonce"], pending.hex)
        return pending

    # ---------------- confirmation ----------------

    def wait(self, tx_hash: bytes) -> Dict[str, Any]:
        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout_sec)
        log.debug("Mined %s status=%s block=%s", to_0x(tx_hash), receipt.get("status"), receipt.get("blockNumber"))
        return receipt
