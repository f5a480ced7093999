"""
peerdb — core.errors
--------------------

A small, consistent error system for the store, codecs and CLI.

Design goals
------------
- One root `PeerDBError` with machine-friendly `code` and optional `data`.
- Concrete subclasses per domain (config, codec, record, store).
- Non-invasive helpers to enrich errors with contextual fields.
- Safe JSON representation (`to_dict`) suitable for logs.
- Clear separation of *retryable* vs *permanent* failures.

This module uses only stdlib to avoid import-time dependency cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

# ---------------------------------------------------------------------------
# Error codes & classes
# ---------------------------------------------------------------------------


class ErrorCode(str, Enum):
    # Generic
    INTERNAL = "PEERDB/INTERNAL"
    CONFIG = "PEERDB/CONFIG"

    # Encoding / decoding
    DESERIALIZATION = "PEERDB/DESERIALIZATION"
    MALFORMED_ENCODING = "PEERDB/MALFORMED_ENCODING"
    RECORD_INVALID = "PEERDB/RECORD_INVALID"

    # Storage
    DB = "PEERDB/DB"
    DB_DECODE = "PEERDB/DB_DECODE"


@dataclass(eq=False)
class PeerDBError(Exception):
    """
    Root error for peerdb components.

    Attributes
    ----------
    code: str
        Machine-stable error code (see ErrorCode).
    message: str
        Human hint suitable for logs.
    data: dict
        Optional machine data (keys, columns, sizes). Must be JSON-serializable.
    retryable: bool
        Whether the operation may succeed on retry without changing inputs.
    cause: Optional[BaseException]
        Wrapped original exception; also installed as ``__cause__``.
    """

    code: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    retryable: bool = False
    cause: Optional[BaseException] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        super().__init__(self.message)
        if self.cause is not None:
            self.__cause__ = self.cause

    @property
    def code_str(self) -> str:
        return self.code.value if isinstance(self.code, ErrorCode) else str(self.code)

    # ---------------- Public API ----------------

    def with_context(self, **ctx: Any) -> "PeerDBError":
        """Return a *new* error with extra context merged (does not mutate)."""
        out = type(self).__new__(type(self))
        Exception.__init__(out, *self.args)
        out.__dict__.update(self.__dict__)
        out.data = {**self.data, **_jsonmap(ctx)}
        out.__cause__ = self.__cause__
        return out

    def to_dict(self, include_cause: bool = False) -> Dict[str, Any]:
        """JSON-safe shape suitable for logs."""
        out: Dict[str, Any] = {
            "code": self.code_str,
            "message": self.message,
            "data": _coerce_json(self.data),
            "retryable": self.retryable,
        }
        if include_cause and self.cause is not None:
            out["cause"] = {
                "type": type(self.cause).__name__,
                "message": str(self.cause),
            }
        return out

    def __str__(self) -> str:
        parts = [f"{self.code_str}: {self.message}"]
        if self.data:
            preview = ", ".join(f"{k}={_preview(v)}" for k, v in self.data.items())
            parts.append(f"[{preview}]")
        return " ".join(parts)


class InternalError(PeerDBError):
    def __init__(self, message="internal error", cause=None, **data: Any) -> None:
        super().__init__(
            code=ErrorCode.INTERNAL, message=message, data=_jsonmap(data), cause=cause
        )


class ConfigError(PeerDBError):
    def __init__(self, message="invalid configuration", **data: Any) -> None:
        super().__init__(code=ErrorCode.CONFIG, message=message, data=_jsonmap(data))


class DeserializationError(PeerDBError):
    def __init__(self, message="deserialization failed", cause=None, **data: Any) -> None:
        super().__init__(
            code=ErrorCode.DESERIALIZATION,
            message=message,
            data=_jsonmap(data),
            cause=cause,
        )


class MalformedEncoding(DeserializationError):
    """A byte sequence could not be parsed as an encoded record list."""

    def __init__(self, message="malformed encoding", cause=None, **data: Any) -> None:
        super().__init__(message=message, cause=cause, **data)
        self.code = ErrorCode.MALFORMED_ENCODING


class RecordInvalid(DeserializationError):
    """A discovery record failed structural validation."""

    def __init__(self, message="invalid record", cause=None, **data: Any) -> None:
        super().__init__(message=message, cause=cause, **data)
        self.code = ErrorCode.RECORD_INVALID


class StoreError(PeerDBError):
    def __init__(
        self, message="store error", retryable: bool = False, cause=None, **data: Any
    ) -> None:
        super().__init__(
            code=ErrorCode.DB,
            message=message,
            data=_jsonmap(data),
            retryable=retryable,
            cause=cause,
        )


class StoreFailure(StoreError):
    """The key-value backend failed to read, write or delete."""

    def __init__(self, message="store failure", cause=None, **data: Any) -> None:
        super().__init__(message=message, retryable=True, cause=cause, **data)


class StoreDecodeError(StoreError):
    """Stored bytes exist but cannot be decoded into the requested item."""

    def __init__(self, message="stored item is unreadable", cause=None, **data: Any) -> None:
        super().__init__(message=message, retryable=False, cause=cause, **data)
        self.code = ErrorCode.DB_DECODE


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

T = TypeVar("T", bound=PeerDBError)


def wrap(exc: BaseException, *, as_: Type[T] = InternalError, **ctx: Any) -> T:
    """
    Wrap any exception into a PeerDBError subclass, attaching context.
    If `exc` is already a PeerDBError, returns a context-enriched copy.
    """
    if isinstance(exc, PeerDBError):
        return exc.with_context(**ctx)  # type: ignore[return-value]
    return as_(str(exc) or type(exc).__name__, cause=exc, **ctx)  # type: ignore[call-arg]


def _jsonmap(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: _coerce_json(v) for k, v in data.items()}


def _coerce_json(v: Any) -> Any:
    # Keep JSON primitives; hex-encode bytes; stringify the rest.
    if isinstance(v, Enum):
        return v.value
    if v is None or isinstance(v, (bool, int, float, str)):
        return v
    if isinstance(v, (bytes, bytearray)):
        return v.hex()
    if isinstance(v, (list, tuple)):
        return [_coerce_json(x) for x in v]
    if isinstance(v, dict):
        return {str(k): _coerce_json(x) for k, x in v.items()}
    return str(v)


def _preview(v: Any, limit: int = 96) -> str:
    s = str(_coerce_json(v))
    return s if len(s) <= limit else s[:limit] + "…"


__all__ = [
    "ErrorCode",
    "PeerDBError",
    "InternalError",
    "ConfigError",
    "DeserializationError",
    "MalformedEncoding",
    "RecordInvalid",
    "StoreError",
    "StoreFailure",
    "StoreDecodeError",
    "wrap",
]
