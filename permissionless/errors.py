from __future__ import annotations

import re
from typing import Any

_AA_CODE = re.compile(r"AA\d+")


class PermissionlessError(Exception):
    """Top-level SDK error with an optional diagnostic payload."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class PreconditionError(PermissionlessError, ValueError):
    """Caller handed in something unusable: a bad key, a bad hash, bad hex."""


class TransportError(PermissionlessError):
    """The HTTP exchange itself failed (status, connection or timeout)."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message, details)
        self.status_code = status_code


class RpcTimeoutError(TransportError):
    pass


class RpcDecodeError(PermissionlessError):
    """The response body could not be read as JSON-RPC."""


class RpcError(PermissionlessError):
    """A JSON-RPC error object returned by the node or bundler."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message, data)
        self.code = code
        self.data = data

    @classmethod
    def from_payload(cls, error: Any) -> "RpcError":
        if not isinstance(error, dict):
            raise RpcDecodeError("JSON-RPC error member is not an object", error)
        code = error.get("code")
        if isinstance(code, bool) or not isinstance(code, int):
            raise RpcDecodeError("JSON-RPC error object has no integer code", error)
        return cls(code, str(error.get("message", "")), error.get("data"))

    @property
    def aa_error_code(self) -> str | None:
        """ERC-4337 validation code such as "AA21" or "AA25", if the bundler sent one."""
        for source in (self.data, self.message):
            if source is None:
                continue
            match = _AA_CODE.search(str(source))
            if match:
                return match.group(0)
        return None

    def __str__(self) -> str:
        suffix = f" - {self.data}" if self.data is not None else ""
        return f"RpcError({self.code}): {self.message}{suffix}"
