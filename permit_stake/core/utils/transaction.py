import math
from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import Any

from eth_utils import to_checksum_address
from loguru import logger
from web3 import Web3
from web3.exceptions import Web3Exception

from permit_stake.core.constants.base import (
    DEFAULT_RECEIPT_POLL_INTERVAL_S,
    GAS_BUFFER_MULTIPLIER,
)
from permit_stake.core.utils.web3 import get_transaction_chain_id, web3_from_chain_id

_FEE_FIELDS = ("gasPrice", "maxFeePerGas")

# Offline encoder; never sends requests.
_ENCODER = Web3()


def _hex_hash(value: Any) -> str:
    text = value.hex() if isinstance(value, bytes | bytearray) else str(value)
    return text if text.startswith("0x") else f"0x{text}"


def sender_of(transaction: dict) -> str:
    sender = transaction.get("from")
    if not sender:
        raise ValueError("Transaction does not contain from address")
    return to_checksum_address(sender)


def receipt_succeeded(receipt: dict[str, Any]) -> bool:
    return bool(receipt.get("status"))


def buffered_gas(estimate: int) -> int:
    return math.ceil(Decimal(int(estimate)) * Decimal(str(GAS_BUFFER_MULTIPLIER)))


async def fill_transaction(web3, transaction: dict) -> dict:
    """
    Return a copy of ``transaction`` ready to sign.

    - ``gas``: kept when given (a caller-imposed cap), else estimated and buffered.
    - ``nonce``: the sender's pending transaction count.
    - fees: kept when any fee field is given, else the node's ``gasPrice``.
    """
    filled = dict(transaction)
    sender = sender_of(filled)

    if not filled.get("gas"):
        estimate = await web3.eth.estimate_gas(filled, block_identifier="latest")
        filled["gas"] = buffered_gas(estimate)

    filled["nonce"] = await web3.eth.get_transaction_count(
        sender, block_identifier="pending"
    )

    if not any(field in filled for field in _FEE_FIELDS):
        filled["gasPrice"] = int(await web3.eth.gas_price)

    return filled


async def send_transaction(
    transaction: dict, sign_callback: Callable[[dict], Awaitable[bytes]]
) -> str:
    """Fill, sign with ``sign_callback`` and broadcast. Returns the ``0x`` tx hash."""
    if sign_callback is None:
        raise ValueError("sign_callback is required to send a transaction")

    chain_id = get_transaction_chain_id(transaction)
    async with web3_from_chain_id(chain_id) as web3:
        filled = await fill_transaction(web3, transaction)
        logger.debug(f"Signing transaction on chain {chain_id}: {filled}")
        raw = await sign_callback(filled)
        tx_hash = _hex_hash(await web3.eth.send_raw_transaction(raw))

    logger.info(f"Sent transaction {tx_hash} on chain {chain_id}")
    return tx_hash


async def wait_for_transaction_receipt(
    chain_id: int,
    txn_hash: str,
    poll_interval: float = DEFAULT_RECEIPT_POLL_INTERVAL_S,
) -> dict:
    """Wait until the transaction is mined and return its receipt.

    ``timeout=None`` waits indefinitely. A reverted transaction is returned like
    any other receipt (``status == 0``) and left for the caller to classify.
    """
    txn_hash = _hex_hash(txn_hash)
    async with web3_from_chain_id(chain_id) as web3:
        receipt = await web3.eth.wait_for_transaction_receipt(
            txn_hash, timeout=None, poll_latency=poll_interval
        )
    return dict(receipt)


def encode_function_data(
    *,
    target: str,
    abi: list[dict[str, Any]],
    fn_name: str,
    args: list[Any],
) -> str:
    try:
        contract = _ENCODER.eth.contract(address=to_checksum_address(target), abi=abi)
        return contract.encode_abi(fn_name, args)
    except (ValueError, TypeError, Web3Exception) as exc:
        raise ValueError(f"Failed to encode {fn_name}: {exc}") from exc


def encode_call(
    *,
    target: str,
    abi: list[dict[str, Any]],
    fn_name: str,
    args: list[Any],
    from_address: str,
    chain_id: int,
    value: int = 0,
    gas: int | None = None,
) -> dict[str, Any]:
    """Unsigned contract-call transaction; ``gas`` pins the limit instead of estimating."""
    transaction: dict[str, Any] = {
        "chainId": int(chain_id),
        "from": to_checksum_address(from_address),
        "to": to_checksum_address(target),
        "data": encode_function_data(target=target, abi=abi, fn_name=fn_name, args=args),
        "value": int(value),
    }
    if gas is not None:
        transaction["gas"] = int(gas)
    return transaction
