from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence, TypedDict

HexStr = str
JsonValue = Any


class RpcEnvelope(TypedDict):
    jsonrpc: str
    method: str
    params: list[JsonValue]
    id: int


@dataclass(frozen=True)
class RpcRequest:
    method: str
    params: Sequence[JsonValue] = ()

    def to_envelope(self, request_id: int) -> RpcEnvelope:
        return {
            "jsonrpc": "2.0",
            "method": self.method,
            "params": list(self.params or ()),
            "id": request_id,
        }


@dataclass(frozen=True)
class TypedDataDomain:
    """EIP-712 domain. Only the fields that are set take part in the separator."""

    name: str | None = None
    version: str | None = None
    chain_id: int | None = None
    verifying_contract: str | None = None
    salt: HexStr | bytes | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.name is not None:
            out["name"] = self.name
        if self.version is not None:
            out["version"] = self.version
        if self.chain_id is not None:
            out["chainId"] = int(self.chain_id)
        if self.verifying_contract is not None:
            out["verifyingContract"] = self.verifying_contract
        if self.salt is not None:
            salt = self.salt
            if isinstance(salt, str):
                salt = bytes.fromhex(salt[2:] if salt.startswith(("0x", "0X")) else salt)
            out["salt"] = salt
        return out

    def fields(self) -> list[dict[str, str]]:
        present = self.to_dict()
        return [
            {"name": name, "type": type_}
            for name, type_ in _DOMAIN_FIELDS
            if name in present
        ]


_DOMAIN_FIELDS = (
    ("name", "string"),
    ("version", "string"),
    ("chainId", "uint256"),
    ("verifyingContract", "address"),
    ("salt", "bytes32"),
)


@dataclass(frozen=True)
class TypedDataField:
    name: str
    type: str


@dataclass
class TypedData:
    """
    Complete EIP-712 payload.

    `types` holds the custom struct definitions only; the EIP712Domain type is
    derived from `domain` when the payload is encoded.
    """

    domain: TypedDataDomain
    types: dict[str, list[TypedDataField]]
    primary_type: str
    message: dict[str, Any] = field(default_factory=dict)

    def to_eip712(self) -> dict[str, Any]:
        types: dict[str, list[dict[str, str]]] = {"EIP712Domain": self.domain.fields()}
        for type_name, fields in self.types.items():
            if type_name == "EIP712Domain":
                continue
            types[type_name] = [{"name": f.name, "type": f.type} for f in fields]
        return {
            "types": types,
            "primaryType": self.primary_type,
            "domain": self.domain.to_dict(),
            "message": self.message,
        }
