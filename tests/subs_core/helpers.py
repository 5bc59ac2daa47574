from __future__ import annotations

from typing import Any, Dict, List, Optional

from eth_abi import encode as abi_encode
from hexbytes import HexBytes

from optisubs.core.subs_core.subs_abi import SUBSCRIBED_TOPIC
from optisubs.core.subs_core.subs_context import PendingTransaction

SIGNER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
SIGNER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
CONTRACT_ADDR = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
OTHER_TOPIC = HexBytes("0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef")


def address_topic(addr: str) -> HexBytes:
    return HexBytes(b"\x00" * 12 + bytes.fromhex(addr[2:]))


def subscribed_log(sub_id: bytes, subscriber: str = SIGNER, amount: int = 150000000000000000,
                   periods: int = 2, log_index: int = 0) -> Dict[str, Any]:
    return {
        "address": CONTRACT_ADDR,
        "logIndex": log_index,
        "topics": [SUBSCRIBED_TOPIC, address_topic(subscriber)],
        "data": HexBytes(abi_encode(["bytes32", "uint256", "uint256"], [sub_id, amount, periods])),
    }


def transfer_log(log_index: int = 0) -> Dict[str, Any]:
    return {
        "address": "0xDA10009cBd5D07dd0CeCc66161FC93D7c9000da1",
        "logIndex": log_index,
        "topics": [OTHER_TOPIC, address_topic(SIGNER), address_topic(CONTRACT_ADDR)],
        "data": HexBytes(abi_encode(["uint256"], [10])),
    }


def receipt(logs: Optional[List[Dict[str, Any]]] = None, status: int = 1, **extra: Any) -> Dict[str, Any]:
    r = {"status": status, "blockNumber": 1, "logs": logs or []}
    r.update(extra)
    return r


class FakeCall:
    def __init__(self, name: str, args: tuple, result: Any = True):
        self.name = name
        self.args = args
        self.result = result

    def call(self, tx: Optional[Dict[str, Any]] = None) -> Any:
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class _Functions:
    def __init__(self, reads: Dict[str, Any]):
        self._reads = reads

    def __getattr__(self, name: str):
        return lambda *args: FakeCall(name, args, self._reads.get(name, True))


class FakeContract:
    def __init__(self, address: str = CONTRACT_ADDR):
        self.address = address
        self.reads: Dict[str, Any] = {}
        self.functions = _Functions(self.reads)


class _Factory:
    def constructor(self, *args):
        return FakeCall("constructor", args)


class _Eth:
    def contract(self, address=None, abi=None, bytecode=None):
        return _Factory() if bytecode else FakeContract(address)


class _W3:
    def __init__(self):
        self.eth = _Eth()


class FakeContext:
    """
    Stand-in for ClientContext: records every submission in order and hands
    back scripted receipts keyed by call label.
    """

    def __init__(self, receipts: Optional[Dict[str, List[Dict[str, Any]]]] = None, address: str = SIGNER,
                 wait_error: Optional[Exception] = None):
        self.wait_error = wait_error
        self.address = address
        self.w3 = _W3()
        self.receipts = {k: list(v) for k, v in (receipts or {}).items()}
        self.calls: List[FakeCall] = []
        self.events: List[str] = []
        self._by_hash: Dict[bytes, Dict[str, Any]] = {}

    def contract(self, address: str, abi: list) -> FakeContract:
        return FakeContract(address)

    def transact(self, call: FakeCall, label: str = "") -> PendingTransaction:
        self.calls.append(call)
        self.events.append(f"submit:{label}")
        tx_hash = len(self.calls).to_bytes(32, "big")
        queue = self.receipts.get(label) or [receipt()]
        self._by_hash[tx_hash] = queue.pop(0) if len(queue) > 1 else queue[0]
        return PendingTransaction(tx_hash=tx_hash, context=self, label=label)

    def wait(self, tx_hash: bytes) -> Dict[str, Any]:
        self.events.append(f"wait:{int.from_bytes(tx_hash, 'big')}")
        if self.wait_error is not None:
            raise self.wait_error
        return self._by_hash[tx_hash]
