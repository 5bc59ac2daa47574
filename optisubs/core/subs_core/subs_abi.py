"""
Contract interface for OptimisticSubs and the ERC-20 approve call.

Only the call/event surface is described here; bytecode comes from the
compiled Hardhat artifact (see load_artifact).
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

from hexbytes import HexBytes

from .subs_errors import ConfigError

log = logging.getLogger(__name__)

# keccak of the Subscribed event signature as emitted by the deployed contract
SUBSCRIBED_TOPIC = HexBytes("0x4eea731ae1fda3da326d839452cf98ef0b814e2e0c09bc8122100e44c4f0649b")

# Subscribed: topics[1] = subscriber; data = (subId, amount, periodCount)
SUBSCRIBED_DATA_TYPES: Tuple[str, ...] = ("bytes32", "uint256", "uint256")

SUBS_ABI: List[Dict[str, Any]] = [
    {
        "type": "constructor",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_periodDuration", "type": "uint256"},
            {"name": "_vault", "type": "address"},
            {"name": "_feeCollector", "type": "address"},
            {"name": "_currentPeriod", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "name": "subscribe",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "beneficiary", "type": "address"},
            {"name": "amountPerCycle", "type": "uint256"},
            {"name": "cycles", "type": "uint256"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "unsubscribe",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "subId", "type": "bytes32"}],
        "outputs": [],
    },
    {
        "type": "event",
        "name": "Subscribed",
        "anonymous": False,
        "inputs": [
            {"name": "subscriber", "type": "address", "indexed": True},
            {"name": "subId", "type": "bytes32", "indexed": False},
            {"name": "amountPerCycle", "type": "uint256", "indexed": False},
            {"name": "cycles", "type": "uint256", "indexed": False},
        ],
    },
]

ERC20_APPROVE_ABI: List[Dict[str, Any]] = [
    {
        "type": "function",
        "name": "approve",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "allowance",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]


def load_artifact(path: str | Path) -> Tuple[List[Dict[str, Any]], str]:
    """
    Read a Hardhat artifact JSON and return (abi, bytecode).

    Artifact ABI wins over SUBS_ABI when present; bytecode is required.
    """
    p = Path(path)
    if not p.is_file():
        raise ConfigError("Contract artifact not found", {"path": str(p)})
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError("Contract artifact is not valid JSON", {"path": str(p)}) from e
    if not isinstance(data, dict):
        raise ConfigError("Contract artifact root must be an object", {"path": str(p)})

    bytecode = data.get("bytecode")
    if isinstance(bytecode, dict):
        # solc standard-json shape: {"object": "..."}
        bytecode = bytecode.get("object")
    if not bytecode or bytecode in ("0x", "0x0"):
        raise ConfigError("Contract artifact has no bytecode", {"path": str(p)})
    if not str(bytecode).startswith("0x"):
        bytecode = f"0x{bytecode}"

    abi = data.get("abi") or SUBS_ABI
    log.debug("Loaded artifact %s (%d abi entries)", p, len(abi))
    return abi, bytecode
