import json
import os
from pathlib import Path
from typing import Any

from eth_utils import is_address, to_checksum_address

from permit_stake.core.constants.base import (
    DEFAULT_BRIDGED_TOKEN_SYMBOL,
    DEFAULT_TOKEN_SYMBOL,
)
from permit_stake.core.constants.chains import CHAIN_ID_ETHEREUM

CONFIG_PATH_ENV_VARS = ("PERMIT_STAKE_CONFIG_PATH", "PERMIT_STAKE_CONFIG")
CONFIG_FILENAME = "config.json"


def find_project_root() -> Path | None:
    """Nearest directory holding a ``pyproject.toml``, from the cwd first, then this package."""
    for start in (Path.cwd(), Path(__file__).parent):
        here = start.resolve()
        root = next(
            (d for d in (here, *here.parents) if (d / "pyproject.toml").exists()),
            None,
        )
        if root is not None:
            return root
    return None


def _anchor(path: Path) -> Path:
    if path.is_absolute():
        return path
    root = find_project_root()
    return root / path if root else path


def resolve_config_path(path: str | Path | None = None) -> Path:
    """
    Config file location.

    An explicit ``path`` is used as given. Otherwise the first non-empty
    ``PERMIT_STAKE_CONFIG_PATH`` / ``PERMIT_STAKE_CONFIG`` is used, relative
    paths anchored at the project root; failing that, ``config.json`` at the
    project root.
    """
    if path is not None:
        return Path(path).expanduser()

    for var in CONFIG_PATH_ENV_VARS:
        value = os.getenv(var, "").strip()
        if value:
            return _anchor(Path(value).expanduser())

    return _anchor(Path(CONFIG_FILENAME))


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    config_path = resolve_config_path(path)
    if not config_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return {}
    try:
        return json.loads(config_path.read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in config file {config_path}: {exc}") from exc


CONFIG: dict[str, Any] = load_config_json()


def set_config(config: dict[str, Any]) -> None:
    # Mutate in place; modules hold a reference to CONFIG.
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    set_config(load_config_json(path, require_exists=require_exists))


def set_rpc_urls(rpc_urls: dict[str, Any]) -> None:
    CONFIG.setdefault("strategy", {})["rpc_urls"] = rpc_urls


def get_rpc_urls() -> dict[str, Any]:
    return CONFIG.get("strategy", {}).get("rpc_urls", {})


def _lookup_by_chain(mapping: dict[Any, Any], chain_id: int) -> Any:
    value = mapping.get(str(chain_id))
    if value is None:
        value = mapping.get(int(chain_id))
    return value


def get_chain_rpc_urls(chain_id: int) -> list[str]:
    urls = _lookup_by_chain(get_rpc_urls(), chain_id)
    if isinstance(urls, str):
        urls = [urls.strip()]
    urls = [url for url in (urls or []) if url]
    if not urls:
        raise ValueError(f"No RPCs configured for chain ID {chain_id}")
    return urls


def _staking() -> dict[str, Any]:
    return CONFIG.get("staking", {})


def get_primary_chain_id() -> int:
    """Chain on which the LP token implements the standard EIP-2612 permit."""
    return int(_staking().get("primary_chain_id", CHAIN_ID_ETHEREUM))


def get_token_symbol() -> str:
    return str(_staking().get("token_symbol") or DEFAULT_TOKEN_SYMBOL)


def get_display_token(chain_id: int) -> str:
    if int(chain_id) == get_primary_chain_id():
        return get_token_symbol()
    return str(_staking().get("bridged_token_symbol") or DEFAULT_BRIDGED_TOKEN_SYMBOL)


def get_tracked_token_address(chain_id: int) -> str:
    address = _lookup_by_chain(_staking().get("token_addresses", {}), chain_id)
    if not address or not is_address(str(address)):
        raise ValueError(f"No reward token address configured for chain ID {chain_id}")
    return to_checksum_address(str(address))


def get_stake_pools(chain_id: int) -> list[dict[str, Any]]:
    pools = _lookup_by_chain(_staking().get("pools", {}), chain_id) or []
    return [dict(pool) for pool in pools]
