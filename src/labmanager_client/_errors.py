"""Define the client exception taxonomy.

'why': let callers tell bad input, broken transport, and service faults apart
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._models import Fault


class LabManagerError(Exception):
    """Base class for every error raised by the client."""


class CallerError(LabManagerError, ValueError):
    """Raised when arguments do not satisfy an operation's parameter schema.

    Always raised synchronously, before any network traffic, regardless of the
    fail-fast setting.
    """


class ClientConfigurationError(CallerError):
    """Raised when constructor or configure() options are invalid."""


class TransportError(LabManagerError):
    """Raised when the SOAP endpoint cannot be reached or answers without an envelope."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class ServiceFault(LabManagerError):
    """Raised in fail-fast mode when the service answers with a SOAP fault."""

    def __init__(self, fault: Fault) -> None:
        operation = fault.operation or "call"
        super().__init__(f"{operation} failed: {fault.message}")
        self.fault = fault
