from contextlib import asynccontextmanager

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.middleware import ExtraDataToPOAMiddleware

from permit_stake.core.config import get_chain_rpc_urls
from permit_stake.core.constants.chains import POA_MIDDLEWARE_CHAIN_IDS


def build_web3(rpc_url: str, chain_id: int) -> AsyncWeb3:
    web3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
    # Gnosis/Polygon headers carry a long extraData field.
    if int(chain_id) in POA_MIDDLEWARE_CHAIN_IDS:
        web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    return web3


def get_transaction_chain_id(transaction: dict) -> int:
    chain_id = transaction.get("chainId")
    if chain_id is None:
        raise ValueError("Transaction does not contain chainId")
    return int(chain_id)


@asynccontextmanager
async def web3_from_chain_id(chain_id: int):
    """Connection to the first configured RPC for ``chain_id``; disconnected on exit."""
    web3 = build_web3(get_chain_rpc_urls(chain_id)[0], chain_id)
    try:
        yield web3
    finally:
        await web3.provider.disconnect()
