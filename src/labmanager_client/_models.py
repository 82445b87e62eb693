"""Define dataclasses and types for the client.

'why': capture session state, operation schemas, and call outcomes in typed, testable shapes
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Final, TypeAlias


SOAP_NAMESPACE: Final[str] = "http://vmware.com/labmanager"


class Endpoint(str, Enum):
    """Name the two SOAP surfaces exposed by a Lab Manager server."""

    PUBLIC = "public"
    INTERNAL = "internal"


class WireType(str, Enum):
    """Semantic type of a parameter as it travels on the wire."""

    INT = "int"
    LONG = "long"
    STRING = "string"
    BOOLEAN = "boolean"
    STRUCT = "struct"


class ResultShape(str, Enum):
    """Describe how the result element of a response should be returned."""

    SCALAR = "scalar"
    OBJECT = "object"
    LIST = "list"


class _Required:
    """Sentinel type marking a parameter without a default."""

    _instance: _Required | None = None

    def __new__(cls) -> _Required:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "REQUIRED"


REQUIRED: Final = _Required()


@dataclass(frozen=True)
class Session:
    """Capture the connection and credential settings of one client."""

    hostname: str
    username: str
    password: str
    organization: str
    workspace: str
    timeout: float
    debug: bool
    fail_fast: bool
    verify_ssl: bool


@dataclass(frozen=True)
class Credentials:
    """Authentication block attached as a SOAP header to every call."""

    username: str
    password: str
    organization: str
    workspace: str


@dataclass(frozen=True)
class Binding:
    """Resolved connection descriptor for one endpoint."""

    endpoint: Endpoint
    url: str
    namespace: str
    timeout: float
    verify_ssl: bool

    def soap_action(self, operation: str) -> str:
        return f"{self.namespace}/{operation}"


@dataclass(frozen=True)
class Param:
    """Declare one positional parameter of a remote operation."""

    name: str
    wire_type: WireType
    default: object = REQUIRED
    choices: frozenset[object] | None = None

    @property
    def required(self) -> bool:
        return self.default is REQUIRED


@dataclass(frozen=True)
class Operation:
    """Static description of a remote operation consumed by the call pipeline."""

    name: str
    endpoint: Endpoint
    params: tuple[Param, ...] = ()
    shape: ResultShape = ResultShape.SCALAR
    item_field: str | None = None
    returns: WireType | None = None
    postprocess: Callable[[object], object] | None = None

    def param(self, name: str) -> Param | None:
        for candidate in self.params:
            if candidate.name == name:
                return candidate
        return None


@dataclass(frozen=True)
class Fault:
    """Classified failure reported by the service or the transport."""

    code: str
    message: str
    detail: object | None = None
    raw_payload: object | None = field(default=None, repr=False)
    operation: str | None = None

    def formatted(self) -> str:
        """Render the fault the way it is reported by get_last_error()."""

        parts = ["LabManager SOAP error", self.code, self.message]
        detail = _detail_text(self.detail)
        if detail and detail != self.message:
            parts.append(detail)
        return ": ".join(part for part in parts if part)

    def __str__(self) -> str:
        return self.formatted()


@dataclass(frozen=True)
class Success:
    """Successful outcome of a call, already normalized."""

    operation: str
    value: object = None


CallResult: TypeAlias = Success | Fault


def _detail_text(detail: object | None) -> str:
    if detail is None:
        return ""
    if isinstance(detail, dict):
        message = detail.get("message")
        if isinstance(message, dict) and isinstance(message.get("format"), str):
            return message["format"]
        if isinstance(message, str):
            return message
    return str(detail)
