from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any

from eth_keys import keys
from eth_keys.exceptions import ValidationError
from eth_utils import ValidationError as EthUtilsValidationError
from web3 import Web3

from .errors import PreconditionError
from .messages import (
    BytesLike,
    hash_personal_hash,
    hash_typed_data,
    pack_signature,
    to_bytes,
    to_hash32,
)
from .types import HexStr, TypedData


class AccountOwner(ABC):
    """
    Owner of an ERC-4337 smart account.

    Smart accounts verify their owner's signature in different ways, so every
    owner exposes three signing modes over the same key:

    - sign_personal_message: EIP-191 prefixed hash (SimpleAccount, Nexus,
      Biconomy, Light, Trust, Thirdweb, Etherspot)
    - sign_raw_hash: the hash itself, no prefix (Kernel)
    - sign_typed_data: EIP-712 digest, no prefix (Safe, Trust, Light, Thirdweb)

    Each returns r ++ s ++ v as 0x-prefixed hex (65 bytes, v in {27, 28}).
    """

    @property
    @abstractmethod
    def address(self) -> str:
        raise NotImplementedError

    @abstractmethod
    async def sign_personal_message(self, hash: BytesLike) -> HexStr:
        raise NotImplementedError

    @abstractmethod
    async def sign_raw_hash(self, hash: BytesLike) -> HexStr:
        raise NotImplementedError

    @abstractmethod
    async def sign_typed_data(self, typed_data: TypedData | dict[str, Any]) -> HexStr:
        raise NotImplementedError


class PrivateKeyOwner(AccountOwner):
    """
    Owner backed by a local secp256k1 private key.

    >>> owner = PrivateKeyOwner("0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80")
    >>> owner.address
    '0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266'
    """

    def __init__(self, private_key: BytesLike) -> None:
        try:
            self._key = keys.PrivateKey(to_bytes(private_key))
        except (ValidationError, EthUtilsValidationError) as err:
            raise PreconditionError("invalid private key") from err
        self._address = Web3.to_checksum_address(self._key.public_key.to_canonical_address())

    @classmethod
    def from_env(cls, env_var: str = "PRIVATE_KEY") -> "PrivateKeyOwner":
        pk = (os.getenv(env_var) or "").strip()
        if not pk:
            raise PreconditionError(f"{env_var} environment variable not set")
        return cls(pk)

    @property
    def address(self) -> str:
        return self._address

    @property
    def public_key(self) -> bytes:
        """Uncompressed public key without the 0x04 marker (64 bytes), as the Barz factory expects."""
        return self._key.public_key.to_bytes()

    def _sign_digest(self, digest: bytes) -> HexStr:
        sig = self._key.sign_msg_hash(digest)
        return pack_signature(sig.r, sig.s, sig.v)

    async def sign_personal_message(self, hash: BytesLike) -> HexStr:
        return self._sign_digest(hash_personal_hash(hash))

    async def sign_raw_hash(self, hash: BytesLike) -> HexStr:
        return self._sign_digest(to_hash32(hash))

    async def sign_typed_data(self, typed_data: TypedData | dict[str, Any]) -> HexStr:
        return self._sign_digest(to_hash32(hash_typed_data(typed_data)))

    def __repr__(self) -> str:
        return f"PrivateKeyOwner(address={self._address!r})"
