import copy

import pytest

import permit_stake.core.config as stake_config


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: mark test as integration")


@pytest.fixture
def staking_config():
    """Swap in a known staking config for the duration of a test."""
    original = copy.deepcopy(stake_config.CONFIG)
    stake_config.set_config(
        {
            "strategy": {"rpc_urls": {"1": "https://rpc.invalid", "100": "https://xdai.invalid"}},
            "staking": {
                "primary_chain_id": 1,
                "token_symbol": "NODE",
                "bridged_token_symbol": "xNODE",
                "token_addresses": {
                    "1": "0x1111111111111111111111111111111111111111",
                    "100": "0x2222222222222222222222222222222222222222",
                },
                "pools": {
                    "1": [
                        {
                            "title": "NODE / ETH",
                            "pool_address": "0x3333333333333333333333333333333333333333",
                            "lm_address": "0x4444444444444444444444444444444444444444",
                            "has_liquidity_pool": True,
                        },
                        {
                            "title": "NODE",
                            "pool_address": "0x5555555555555555555555555555555555555555",
                            "lm_address": "0x6666666666666666666666666666666666666666",
                            "has_liquidity_pool": False,
                        },
                    ]
                },
            },
        }
    )
    yield stake_config.CONFIG
    stake_config.set_config(original)
