from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import to_checksum_address

SignCallback = Callable[[dict], Awaitable[bytes]]
SignTypedDataCallback = Callable[[dict], Awaitable[str | None]]


class Signer(Protocol):
    """Account capabilities the staking flows need from a connected wallet.

    ``sign_callback`` turns a fully populated transaction dict into raw signed
    bytes. ``sign_typed_data`` receives a full EIP-712 message
    (``types``/``primaryType``/``domain``/``message``) and returns a 65-byte
    hex signature, or ``None`` when the user declines.
    """

    address: str
    sign_callback: SignCallback
    sign_typed_data: SignTypedDataCallback


class LocalSigner:
    """In-process signer backed by a raw private key."""

    def __init__(self, private_key: str):
        self._account = Account.from_key(private_key)
        self.address: str = self._account.address

    async def sign_callback(self, transaction: dict) -> bytes:
        return bytes(self._account.sign_transaction(transaction).raw_transaction)

    async def sign_typed_data(self, full_message: dict) -> str:
        signed = self._account.sign_message(encode_typed_data(full_message=full_message))
        return "0x" + bytes(signed.signature).hex()


@dataclass
class WalletProvider:
    """A signer bound to the network the wallet is currently connected to."""

    chain_id: int
    signer: Signer

    def get_signer(self) -> Signer:
        return self.signer

    @property
    def address(self) -> str:
        return to_checksum_address(self.signer.address)


def make_random_wallet() -> dict[str, str]:
    """Fresh throwaway key pair, for tests and local forks."""
    account = Account.create()
    return {"address": account.address, "private_key": "0x" + bytes(account.key).hex()}


def local_wallet_provider(private_key: str, chain_id: int) -> WalletProvider:
    return WalletProvider(chain_id=int(chain_id), signer=LocalSigner(private_key))


def signer_address(signer: Any) -> str:
    address = getattr(signer, "address", None)
    if not address:
        raise ValueError("signer has no address")
    return to_checksum_address(str(address))
