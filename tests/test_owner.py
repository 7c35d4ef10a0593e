from __future__ import annotations

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct, encode_typed_data
from web3 import Web3

from permissionless.errors import PreconditionError
from permissionless.messages import decode_hex, hash_personal_hash, hash_typed_data, recover_signer
from permissionless.owner import AccountOwner, PrivateKeyOwner
from permissionless.types import TypedData, TypedDataDomain, TypedDataField

KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
HASH = "0x" + "00" * 31 + "01"
USER_OP_HASH = "0x1234567890abcdef1234567890abcdef1234567890abcdef1234567890abcdef"


def _mail() -> TypedData:
    return TypedData(
        domain=TypedDataDomain(
            name="Ether Mail",
            version="1",
            chain_id=1,
            verifying_contract="0xCcCCccccCCCCcCCCCCCcCcCccCcCCCcCcccccccC",
        ),
        types={
            "Person": [TypedDataField("name", "string"), TypedDataField("wallet", "address")],
            "Mail": [
                TypedDataField("from", "Person"),
                TypedDataField("to", "Person"),
                TypedDataField("contents", "string"),
            ],
        },
        primary_type="Mail",
        message={
            "from": {"name": "Cow", "wallet": "0xCD2a3d9F938E13CD947Ec05AbC7FE734Df8DD826"},
            "to": {"name": "Bob", "wallet": "0xbBbBBBBbbBBBbbbBbbBbbbbBBbBbbbbBbBbbBBbB"},
            "contents": "Hello, Bob!",
        },
    )


def test_owner_exposes_checksum_address() -> None:
    owner = PrivateKeyOwner(KEY)
    assert owner.address == ADDRESS
    assert PrivateKeyOwner(KEY[2:]).address == ADDRESS
    assert PrivateKeyOwner(decode_hex(KEY)).address == ADDRESS


def test_public_key_is_deterministic_and_matches_address() -> None:
    owner = PrivateKeyOwner(KEY)
    pub = owner.public_key

    assert len(pub) == 64
    assert owner.public_key == pub
    assert Web3.to_checksum_address(Web3.keccak(pub)[-20:]) == ADDRESS


@pytest.mark.asyncio
async def test_sign_raw_hash_example() -> None:
    sig = await PrivateKeyOwner(KEY).sign_raw_hash(HASH)

    assert sig.startswith("0x")
    assert len(sig) == 132
    assert sig == sig.lower()
    assert decode_hex(sig)[-1] in (0x1B, 0x1C)
    assert recover_signer(HASH, sig) == ADDRESS


@pytest.mark.asyncio
async def test_sign_personal_message_matches_eip191() -> None:
    owner = PrivateKeyOwner(KEY)
    sig = await owner.sign_personal_message(USER_OP_HASH)

    expected = Account.sign_message(encode_defunct(primitive=decode_hex(USER_OP_HASH)), KEY).signature
    assert sig == "0x" + bytes(expected).hex()
    assert decode_hex(sig)[-1] in (27, 28)

    assert recover_signer(hash_personal_hash(USER_OP_HASH), sig) == ADDRESS
    assert Account.recover_message(encode_defunct(primitive=decode_hex(USER_OP_HASH)), signature=sig) == ADDRESS


@pytest.mark.asyncio
async def test_personal_and_raw_signatures_differ() -> None:
    owner = PrivateKeyOwner(KEY)
    personal = await owner.sign_personal_message(USER_OP_HASH)
    raw = await owner.sign_raw_hash(USER_OP_HASH)

    assert personal != raw
    assert recover_signer(USER_OP_HASH, raw) == ADDRESS
    # the raw signature does not verify against the prefixed digest
    assert recover_signer(hash_personal_hash(USER_OP_HASH), raw) != ADDRESS


@pytest.mark.asyncio
async def test_signing_accepts_bytes() -> None:
    owner = PrivateKeyOwner(KEY)
    assert await owner.sign_raw_hash(decode_hex(HASH)) == await owner.sign_raw_hash(HASH)


@pytest.mark.asyncio
async def test_sign_typed_data_signs_eip712_digest() -> None:
    owner = PrivateKeyOwner(KEY)
    typed = _mail()
    sig = await owner.sign_typed_data(typed)

    expected = Account.sign_message(encode_typed_data(full_message=typed.to_eip712()), KEY).signature
    assert sig == "0x" + bytes(expected).hex()
    assert recover_signer(hash_typed_data(typed), sig) == ADDRESS
    assert await owner.sign_typed_data(typed.to_eip712()) == sig


@pytest.mark.asyncio
@pytest.mark.parametrize("bad", ["0x1234", "0x" + "00" * 33, b"\x01" * 31])
async def test_wrong_length_hash_is_precondition_error(bad) -> None:
    owner = PrivateKeyOwner(KEY)
    with pytest.raises(PreconditionError, match="32 bytes"):
        await owner.sign_raw_hash(bad)
    with pytest.raises(PreconditionError, match="32 bytes"):
        await owner.sign_personal_message(bad)


@pytest.mark.parametrize("bad", ["0x1234", "0x" + "11" * 31, "not-hex"])
def test_invalid_private_key_is_precondition_error(bad: str) -> None:
    with pytest.raises(PreconditionError):
        PrivateKeyOwner(bad)


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OWNER_KEY", KEY)
    assert PrivateKeyOwner.from_env("OWNER_KEY").address == ADDRESS

    monkeypatch.delenv("PRIVATE_KEY", raising=False)
    with pytest.raises(PreconditionError, match="PRIVATE_KEY"):
        PrivateKeyOwner.from_env()


def test_repr_does_not_leak_key() -> None:
    text = repr(PrivateKeyOwner(KEY))
    assert ADDRESS in text
    assert KEY[2:] not in text


def test_account_owner_is_abstract() -> None:
    with pytest.raises(TypeError):
        AccountOwner()  # type: ignore[abstract]


@pytest.mark.asyncio
async def test_custom_owner_can_delegate_to_another_backend() -> None:
    class LoggingOwner(AccountOwner):
        def __init__(self, inner: AccountOwner):
            self.inner = inner
            self.calls: list[str] = []

        @property
        def address(self) -> str:
            return self.inner.address

        async def sign_personal_message(self, hash):
            self.calls.append("personal")
            return await self.inner.sign_personal_message(hash)

        async def sign_raw_hash(self, hash):
            self.calls.append("raw")
            return await self.inner.sign_raw_hash(hash)

        async def sign_typed_data(self, typed_data):
            self.calls.append("typed")
            return await self.inner.sign_typed_data(typed_data)

    owner = LoggingOwner(PrivateKeyOwner(KEY))
    sig = await owner.sign_raw_hash(HASH)

    assert owner.calls == ["raw"]
    assert recover_signer(HASH, sig) == owner.address
