from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .subs_errors import ConfigError

log = logging.getLogger(__name__)

DEFAULT_RPC_URL = "https://rpc.ankr.com/optimism"
DEFAULT_TOKEN = "0xda10009cbd5d07dd0cecc66161fc93d7c9000da1"          # DAI on Optimism
DEFAULT_FEE_RECIPIENT = "0x85c6Cd5fC71AF35e6941d7b53564AC0A68E09f5C"
DEFAULT_PERIOD_SECONDS = 8 * 24 * 60 * 60
DEFAULT_START_TIMESTAMP = 1694919024
DEFAULT_ARTIFACT = "artifacts/contracts/OptimisticSubs.sol/OptimisticSubs.json"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if (v is not None and v.strip() != "") else default


def _first_existing(paths: list[str | Path | None]) -> Optional[Path]:
    for p in paths:
        if not p:
            continue
        path = Path(p)
        if path.is_file():
            return path
    return None


def _load_json_config() -> tuple[Dict[str, Any], Optional[str]]:
    """
    Search order:
      1) SUBS_CONFIG_PATH (env)
      2) ./config/subs_config.json
      3) ./subs_config.json
    Returns (config_dict, path_str|None)
    """
    candidates: list[str | Path | None] = [
        _env("SUBS_CONFIG_PATH"),
        Path("config") / "subs_config.json",
        Path("subs_config.json"),
    ]
    path = _first_existing(candidates)
    if not path:
        return {}, None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("root JSON must be an object")
        return data, str(path)
    except (OSError, ValueError) as e:
        log.warning("Failed to load subs JSON config at %s: %s", path, e)
        return {}, str(path)


def _int(name: str, raw: Any) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be an integer", {"value": raw}) from e


@dataclass(frozen=True)
class SubsConfig:
    """Runtime config for the OptimisticSubs live run (Optimism by default)."""

    # —— Connection / signer ——
    rpc_url: str
    private_key: str = field(repr=False)
    chain_id: Optional[int] = None          # None → ask the node

    # —— Deployment ——
    token_address: str = DEFAULT_TOKEN
    fee_recipient: str = DEFAULT_FEE_RECIPIENT
    period_length_seconds: int = DEFAULT_PERIOD_SECONDS
    start_timestamp: int = DEFAULT_START_TIMESTAMP
    artifact_path: str = DEFAULT_ARTIFACT

    # —— Tunables (passed straight to web3) ——
    http_timeout_sec: int = 25
    receipt_timeout_sec: int = 120

    # —— Debug ——
    source_json_path: Optional[str] = None

    @staticmethod
    def from_env(dotenv_path: Optional[str] = None) -> "SubsConfig":
        """
        Layering (highest → lowest):
          1) Process env vars (after .env is loaded)
          2) subs_config.json (see search order above)
          3) Defaults matching the Optimism live test
        JSON shape (example):
        {
          "rpc_url": "https://rpc.ankr.com/optimism",
          "chain_id": 10,
          "token_address": "0xda10...",
          "fee_recipient": "0x85c6...",
          "period_length_seconds": 691200,
          "start_timestamp": 1694919024,
          "artifact_path": "artifacts/contracts/OptimisticSubs.sol/OptimisticSubs.json"
        }
        """
        load_dotenv(dotenv_path=dotenv_path)
        jcfg, jpath = _load_json_config()

        pk = _env("EVM_PRIVATE_KEY") or _env("PRIVATEKEY")
        if not pk:
            raise ConfigError("EVM_PRIVATE_KEY (or PRIVATEKEY) not set; required for sending transactions.")

        chain_raw = _env("SUBS_CHAIN_ID", None if jcfg.get("chain_id") is None else str(jcfg.get("chain_id")))

        return SubsConfig(
            rpc_url=_env("SUBS_RPC_URL") or _env("EVM_RPC_URL") or jcfg.get("rpc_url") or DEFAULT_RPC_URL,
            private_key=pk.strip(),
            chain_id=_int("SUBS_CHAIN_ID", chain_raw) if chain_raw else None,
            token_address=_env("SUBS_TOKEN_ADDRESS", jcfg.get("token_address", DEFAULT_TOKEN)),
            fee_recipient=_env("SUBS_FEE_RECIPIENT", jcfg.get("fee_recipient", DEFAULT_FEE_RECIPIENT)),
            period_length_seconds=_int(
                "SUBS_PERIOD_SECONDS",
                _env("SUBS_PERIOD_SECONDS", jcfg.get("period_length_seconds", DEFAULT_PERIOD_SECONDS)),
            ),
            start_timestamp=_int(
                "SUBS_START_TIMESTAMP",
                _env("SUBS_START_TIMESTAMP", jcfg.get("start_timestamp", DEFAULT_START_TIMESTAMP)),
            ),
            artifact_path=_env("SUBS_ARTIFACT_PATH", jcfg.get("artifact_path", DEFAULT_ARTIFACT)),
            http_timeout_sec=_int("SUBS_HTTP_TIMEOUT_SEC", _env("SUBS_HTTP_TIMEOUT_SEC", jcfg.get("http_timeout_sec", 25))),
            receipt_timeout_sec=_int(
                "SUBS_RECEIPT_TIMEOUT_SEC",
                _env("SUBS_RECEIPT_TIMEOUT_SEC", jcfg.get("receipt_timeout_sec", 120)),
            ),
            source_json_path=jpath,
        )
