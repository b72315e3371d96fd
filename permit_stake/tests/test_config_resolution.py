from __future__ import annotations

import json
from pathlib import Path

import pytest

import permit_stake.core.config as config


def test_resolve_config_path_defaults_to_repo_root(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("PERMIT_STAKE_CONFIG_PATH", raising=False)
    monkeypatch.delenv("PERMIT_STAKE_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)

    repo_root = Path(__file__).resolve().parents[2]
    assert config.resolve_config_path() == repo_root / "config.json"


def test_resolve_config_path_env_relative_is_repo_relative(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("PERMIT_STAKE_CONFIG_PATH", "config.example.json")
    monkeypatch.chdir(tmp_path)

    repo_root = Path(__file__).resolve().parents[2]
    assert config.resolve_config_path() == repo_root / "config.example.json"


def test_load_config_json_missing_file(tmp_path: Path) -> None:
    missing = tmp_path / "nope.json"
    assert config.load_config_json(missing) == {}
    with pytest.raises(FileNotFoundError):
        config.load_config_json(missing, require_exists=True)


def test_load_config_json_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json")
    with pytest.raises(ValueError, match="Invalid JSON"):
        config.load_config_json(path)


def test_load_config_replaces_global_in_place(staking_config, tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"staking": {"primary_chain_id": 100}}))
    cfg_ref = config.CONFIG

    config.load_config(path)

    assert config.CONFIG is cfg_ref
    assert config.get_primary_chain_id() == 100
    assert config.get_rpc_urls() == {}


def test_set_rpc_urls_creates_strategy_section(staking_config) -> None:
    config.set_config({})
    config.set_rpc_urls({"1": "https://rpc.invalid"})
    assert config.get_rpc_urls() == {"1": "https://rpc.invalid"}


class TestStakingSettings:
    def test_defaults_without_staking_section(self, staking_config) -> None:
        config.set_config({})
        assert config.get_primary_chain_id() == 1
        assert config.get_token_symbol() == "NODE"
        assert config.get_display_token(1) == "NODE"
        assert config.get_display_token(100) == "xNODE"
        assert config.get_stake_pools(1) == []

    def test_display_token_follows_primary_chain(self, staking_config) -> None:
        staking_config["staking"]["primary_chain_id"] = 100
        staking_config["staking"]["bridged_token_symbol"] = "bNODE"
        assert config.get_display_token(100) == "NODE"
        assert config.get_display_token(1) == "bNODE"

    def test_tracked_token_is_checksummed(self, staking_config) -> None:
        assert (
            config.get_tracked_token_address(100)
            == "0x2222222222222222222222222222222222222222"
        )

    def test_tracked_token_missing_raises(self, staking_config) -> None:
        with pytest.raises(ValueError, match="chain ID 137"):
            config.get_tracked_token_address(137)

    def test_pools_accept_int_keys(self, staking_config) -> None:
        staking_config["staking"]["pools"] = {
            100: [{"pool_address": "0xa", "lm_address": "0xb"}]
        }
        pools = config.get_stake_pools(100)
        assert pools == [{"pool_address": "0xa", "lm_address": "0xb"}]

    def test_pools_are_copies(self, staking_config) -> None:
        pools = config.get_stake_pools(1)
        pools[0]["title"] = "changed"
        assert config.get_stake_pools(1)[0]["title"] == "NODE / ETH"
