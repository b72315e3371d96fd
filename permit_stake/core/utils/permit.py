"""
Off-chain EIP-712 permits that let a staking contract pull LP tokens without a
separate ``approve`` transaction.

Two token flavours are supported and selected by chain:

- ``STANDARD``: EIP-2612 ``permit(owner, spender, value, deadline, v, r, s)``
  as implemented by Uniswap V2 pair tokens on the primary network.
- ``BRIDGE``: the DAI-style ``permit(holder, spender, nonce, expiry, allowed,
  v, r, s)`` exposed by bridged tokens on side chains.

Each builder reads the token name and the signer's nonce, asks the signer for
a typed-data signature and returns the encoded (unsent) ``permit`` call. A
failing read or signature raises; a half-built permit is never returned.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from eth_utils import to_checksum_address
from loguru import logger
from web3 import AsyncWeb3

from permit_stake.core.constants.base import (
    BRIDGE_PERMIT_EXPIRY_S,
    MAX_UINT256,
    PERMIT_VERSION,
)
from permit_stake.core.constants.staking_abi import BRIDGE_TOKEN_ABI, UNI_V2_PAIR_ABI
from permit_stake.core.utils.transaction import encode_function_data
from permit_stake.core.utils.wallets import Signer, signer_address


class PermitVariant(StrEnum):
    STANDARD = "STANDARD"
    BRIDGE = "BRIDGE"


class SignatureRejectedError(RuntimeError):
    """The signer declined (or failed) to produce a permit signature."""


EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

STANDARD_PERMIT_TYPE = [
    {"name": "owner", "type": "address"},
    {"name": "spender", "type": "address"},
    {"name": "value", "type": "uint256"},
    {"name": "nonce", "type": "uint256"},
    {"name": "deadline", "type": "uint256"},
]

BRIDGE_PERMIT_TYPE = [
    {"name": "holder", "type": "address"},
    {"name": "spender", "type": "address"},
    {"name": "nonce", "type": "uint256"},
    {"name": "expiry", "type": "uint256"},
    {"name": "allowed", "type": "bool"},
]


@dataclass(frozen=True)
class PermitPayload:
    variant: PermitVariant
    domain: dict[str, Any]
    types: dict[str, list[dict[str, str]]]
    message: dict[str, Any]
    v: int
    r: bytes
    s: bytes
    # Unsent ``permit`` call: {"to": token, "data": calldata}
    call: dict[str, str]

    @property
    def data(self) -> str:
        return self.call["data"]

    def typed_data(self) -> dict[str, Any]:
        return {
            "types": self.types,
            "primaryType": "Permit",
            "domain": self.domain,
            "message": self.message,
        }


def select_permit_variant(chain_id: int, primary_chain_id: int) -> PermitVariant:
    if int(chain_id) == int(primary_chain_id):
        return PermitVariant.STANDARD
    return PermitVariant.BRIDGE


def split_signature(signature: str | bytes) -> tuple[int, bytes, bytes]:
    """Split a 65-byte ``r || s || v`` signature into ``(v, r, s)``, with ``v`` in {27, 28}."""
    if isinstance(signature, str):
        raw = bytes.fromhex(signature.removeprefix("0x"))
    else:
        raw = bytes(signature)
    if len(raw) != 65:
        raise ValueError(f"Invalid signature length: expected 65 bytes, got {len(raw)}")

    r, s, v = raw[:32], raw[32:64], raw[64]
    if v < 27:
        if v not in (0, 1):
            raise ValueError(f"Invalid signature recovery id: {v}")
        v += 27
    return v, r, s


def build_domain(name: str, chain_id: int, verifying_contract: str) -> dict[str, Any]:
    return {
        "name": name,
        "version": PERMIT_VERSION,
        "chainId": int(chain_id),
        "verifyingContract": to_checksum_address(verifying_contract),
    }


def build_typed_data(
    domain: dict[str, Any],
    permit_type: list[dict[str, str]],
    message: dict[str, Any],
) -> dict[str, Any]:
    return {
        "types": {"EIP712Domain": EIP712_DOMAIN_TYPE, "Permit": permit_type},
        "primaryType": "Permit",
        "domain": domain,
        "message": message,
    }


async def _read_name_and_nonce(token: Any, owner: str) -> tuple[str, int]:
    name, nonce = await asyncio.gather(
        token.functions.name().call(),
        token.functions.nonces(owner).call(),
    )
    return str(name), int(nonce)


async def _sign(signer: Signer, typed_data: dict[str, Any]) -> tuple[int, bytes, bytes]:
    try:
        signature = await signer.sign_typed_data(typed_data)
    except Exception as exc:
        raise SignatureRejectedError(f"Permit signature request failed: {exc}") from exc
    if not signature:
        raise SignatureRejectedError("Permit signature was declined")
    return split_signature(signature)


async def build_standard_permit(
    web3: AsyncWeb3,
    *,
    signer: Signer,
    chain_id: int,
    pool_address: str,
    lm_address: str,
    amount: int,
) -> PermitPayload:
    owner = signer_address(signer)
    pool = to_checksum_address(pool_address)
    spender = to_checksum_address(lm_address)
    token = web3.eth.contract(address=pool, abi=UNI_V2_PAIR_ABI)

    name, nonce = await _read_name_and_nonce(token, owner)

    domain = build_domain(name, chain_id, pool)
    message = {
        "owner": owner,
        "spender": spender,
        "value": int(amount),
        "nonce": nonce,
        "deadline": MAX_UINT256,
    }
    typed_data = build_typed_data(domain, STANDARD_PERMIT_TYPE, message)
    v, r, s = await _sign(signer, typed_data)

    data = encode_function_data(
        target=pool,
        abi=UNI_V2_PAIR_ABI,
        fn_name="permit",
        args=[owner, spender, int(amount), MAX_UINT256, v, r, s],
    )
    return PermitPayload(
        variant=PermitVariant.STANDARD,
        domain=domain,
        types=typed_data["types"],
        message=message,
        v=v,
        r=r,
        s=s,
        call={"to": pool, "data": data},
    )


async def build_bridge_permit(
    web3: AsyncWeb3,
    *,
    signer: Signer,
    chain_id: int,
    pool_address: str,
    lm_address: str,
    amount: int | None = None,
    now: int | None = None,
) -> PermitPayload:
    # Bridged tokens grant an unlimited allowance; ``amount`` is not part of the permit.
    holder = signer_address(signer)
    pool = to_checksum_address(pool_address)
    spender = to_checksum_address(lm_address)
    token = web3.eth.contract(address=pool, abi=BRIDGE_TOKEN_ABI)

    name, nonce = await _read_name_and_nonce(token, holder)
    expiry = int(now if now is not None else time.time()) + BRIDGE_PERMIT_EXPIRY_S

    domain = build_domain(name, chain_id, pool)
    message = {
        "holder": holder,
        "spender": spender,
        "nonce": nonce,
        "expiry": expiry,
        "allowed": True,
    }
    typed_data = build_typed_data(domain, BRIDGE_PERMIT_TYPE, message)
    v, r, s = await _sign(signer, typed_data)

    data = encode_function_data(
        target=pool,
        abi=BRIDGE_TOKEN_ABI,
        fn_name="permit",
        args=[holder, spender, nonce, expiry, True, v, r, s],
    )
    return PermitPayload(
        variant=PermitVariant.BRIDGE,
        domain=domain,
        types=typed_data["types"],
        message=message,
        v=v,
        r=r,
        s=s,
        call={"to": pool, "data": data},
    )


PermitBuilder = Callable[..., Awaitable[PermitPayload]]

PERMIT_BUILDERS: dict[PermitVariant, PermitBuilder] = {
    PermitVariant.STANDARD: build_standard_permit,
    PermitVariant.BRIDGE: build_bridge_permit,
}


async def build_permit(
    variant: PermitVariant,
    web3: AsyncWeb3,
    *,
    signer: Signer,
    chain_id: int,
    pool_address: str,
    lm_address: str,
    amount: int,
) -> PermitPayload:
    logger.debug(f"Building {variant} permit on chain {chain_id} for {pool_address}")
    builder = PERMIT_BUILDERS[variant]
    return await builder(
        web3,
        signer=signer,
        chain_id=chain_id,
        pool_address=pool_address,
        lm_address=lm_address,
        amount=amount,
    )
