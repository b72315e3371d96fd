from unittest.mock import AsyncMock, patch

import pytest
from web3 import AsyncHTTPProvider
from web3.middleware import ExtraDataToPOAMiddleware

from permit_stake.core.config import get_chain_rpc_urls
from permit_stake.core.utils.web3 import build_web3, web3_from_chain_id


def test_rpcs_accept_string_and_int_keys(staking_config):
    assert get_chain_rpc_urls(1) == ["https://rpc.invalid"]
    staking_config["strategy"]["rpc_urls"] = {137: ["https://a.invalid", "https://b.invalid"]}
    assert get_chain_rpc_urls(137) == ["https://a.invalid", "https://b.invalid"]


@pytest.mark.parametrize(
    "rpc_urls", [{}, {"1": []}, {"1": ""}, {"1": "  "}, {"1": [""]}, {"1": None}]
)
def test_missing_rpc_raises(staking_config, rpc_urls):
    staking_config["strategy"]["rpc_urls"] = rpc_urls
    with pytest.raises(ValueError, match="No RPCs configured for chain ID 1"):
        get_chain_rpc_urls(1)


def test_poa_middleware_only_on_poa_chains():
    gnosis = build_web3("https://xdai.invalid", 100)
    mainnet = build_web3("https://rpc.invalid", 1)
    assert ExtraDataToPOAMiddleware in gnosis.middleware_onion
    assert ExtraDataToPOAMiddleware not in mainnet.middleware_onion


@pytest.mark.asyncio
async def test_context_manager_uses_first_rpc_and_disconnects(staking_config):
    staking_config["strategy"]["rpc_urls"]["1"] = ["https://first.invalid", "https://second.invalid"]
    with patch.object(
        AsyncHTTPProvider, "disconnect", new_callable=AsyncMock
    ) as mock_disconnect:
        async with web3_from_chain_id(1) as web3:
            assert web3.provider.endpoint_uri == "https://first.invalid"
    mock_disconnect.assert_awaited_once()


@pytest.mark.asyncio
async def test_unknown_chain_fails_before_connecting(staking_config):
    with pytest.raises(ValueError, match="chain ID 137"):
        async with web3_from_chain_id(137):
            pass
