"""Account-owner signing and JSON-RPC transport for ERC-4337 smart accounts."""

from .errors import (
    PermissionlessError,
    PreconditionError,
    RpcDecodeError,
    RpcError,
    RpcTimeoutError,
    TransportError,
)
from .messages import (
    compute_domain_separator,
    hash_message,
    hash_personal_hash,
    hash_struct,
    hash_typed_data,
    recover_signer,
)
from .owner import AccountOwner, PrivateKeyOwner
from .rpc import JsonRpcClient, create_rpc_client
from .types import (
    RpcRequest,
    TypedData,
    TypedDataDomain,
    TypedDataField,
)

__all__ = [
    "AccountOwner",
    "PrivateKeyOwner",
    "JsonRpcClient",
    "create_rpc_client",
    "RpcRequest",
    "TypedData",
    "TypedDataDomain",
    "TypedDataField",
    "PermissionlessError",
    "PreconditionError",
    "TransportError",
    "RpcTimeoutError",
    "RpcError",
    "RpcDecodeError",
    "hash_message",
    "hash_personal_hash",
    "hash_typed_data",
    "compute_domain_separator",
    "hash_struct",
    "recover_signer",
]

__version__ = "1.0.0"
