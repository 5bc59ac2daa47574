import json

import pytest

from optisubs.core.subs_core.subs_abi import SUBS_ABI, load_artifact
from optisubs.core.subs_core.subs_errors import ConfigError


def test_hardhat_artifact(tmp_path):
    p = tmp_path / "OptimisticSubs.json"
    p.write_text(json.dumps({"abi": [{"type": "fallback"}], "bytecode": "0x6080"}), encoding="utf-8")
    abi, bytecode = load_artifact(p)
    assert abi == [{"type": "fallback"}]
    assert bytecode == "0x6080"


def test_standard_json_bytecode_and_default_abi(tmp_path):
    p = tmp_path / "a.json"
    p.write_text(json.dumps({"bytecode": {"object": "6080"}}), encoding="utf-8")
    abi, bytecode = load_artifact(p)
    assert abi is SUBS_ABI
    assert bytecode == "0x6080"


@pytest.mark.parametrize("content", ["{", "[]", json.dumps({"abi": [], "bytecode": "0x"})])
def test_bad_artifacts(tmp_path, content):
    p = tmp_path / "bad.json"
    p.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_artifact(p)


def test_missing_artifact(tmp_path):
    with pytest.raises(ConfigError):
        load_artifact(tmp_path / "nope.json")
