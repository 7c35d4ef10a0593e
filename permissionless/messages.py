from __future__ import annotations

from typing import Any, Union

from eth_account.messages import defunct_hash_message, encode_typed_data
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import ValidationError as EthUtilsValidationError
from web3 import Web3

from .errors import PreconditionError
from .types import HexStr, TypedData

SIGNATURE_LENGTH = 65

BytesLike = Union[bytes, bytearray, str]


def strip_0x(value: str) -> str:
    return value[2:] if value.startswith(("0x", "0X")) else value


def to_hex(data: bytes) -> HexStr:
    return "0x" + bytes(data).hex()


def decode_hex(value: str) -> bytes:
    h = strip_0x(str(value).strip())
    if len(h) % 2:
        h = "0" + h
    try:
        return bytes.fromhex(h)
    except ValueError as err:
        raise PreconditionError(f"invalid hex string: {value!r}") from err


def to_bytes(value: BytesLike) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return decode_hex(value)
    raise PreconditionError(f"expected hex string or bytes, got {type(value).__name__}")


def to_hash32(value: BytesLike) -> bytes:
    data = to_bytes(value)
    if len(data) != 32:
        raise PreconditionError(f"hash must be exactly 32 bytes (got {len(data)})")
    return data


def hash_message(message: str | bytes) -> HexStr:
    """EIP-191 digest of an arbitrary message, as produced by `personal_sign`."""
    if isinstance(message, str):
        digest = defunct_hash_message(text=message)
    else:
        digest = defunct_hash_message(primitive=bytes(message))
    return to_hex(digest)


def hash_personal_hash(hash32: BytesLike) -> bytes:
    """EIP-191 digest of a 32-byte hash: keccak256("\\x19Ethereum Signed Message:\\n32" + hash)."""
    return bytes(defunct_hash_message(primitive=to_hash32(hash32)))


def _signable(typed_data: TypedData | dict[str, Any]):
    try:
        full_message = typed_data.to_eip712() if isinstance(typed_data, TypedData) else typed_data
        return encode_typed_data(full_message=full_message)
    except (KeyError, TypeError, ValueError, EthUtilsValidationError) as err:
        raise PreconditionError(f"invalid EIP-712 payload: {err}") from err


def compute_domain_separator(typed_data: TypedData | dict[str, Any]) -> HexStr:
    return to_hex(_signable(typed_data).header)


def hash_struct(typed_data: TypedData | dict[str, Any]) -> HexStr:
    return to_hex(_signable(typed_data).body)


def hash_typed_data(typed_data: TypedData | dict[str, Any]) -> HexStr:
    """keccak256(0x19 0x01 ++ domainSeparator ++ hashStruct(message))"""
    signable = _signable(typed_data)
    return to_hex(Web3.keccak(b"\x19" + signable.version + signable.header + signable.body))


def normalize_v(v: int) -> int:
    return v + 27 if v < 27 else v


def pack_signature(r: int, s: int, v: int) -> HexStr:
    sig = r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([normalize_v(v)])
    assert len(sig) == SIGNATURE_LENGTH
    return to_hex(sig)


def recover_signer(digest: BytesLike, signature: BytesLike) -> str:
    """Checksum address of the key that produced `signature` over `digest`."""
    msg_hash = to_hash32(digest)
    sig = to_bytes(signature)
    if len(sig) != SIGNATURE_LENGTH:
        raise PreconditionError(f"signature must be {SIGNATURE_LENGTH} bytes (got {len(sig)})")

    v = sig[64]
    if v >= 27:
        v -= 27
    try:
        vrs = (v, int.from_bytes(sig[:32], "big"), int.from_bytes(sig[32:64], "big"))
        public_key = keys.Signature(vrs=vrs).recover_public_key_from_msg_hash(msg_hash)
    except (BadSignature, ValidationError, EthUtilsValidationError) as err:
        raise PreconditionError(f"cannot recover signer: {err}") from err
    return Web3.to_checksum_address(public_key.to_canonical_address())
