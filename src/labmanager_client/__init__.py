"""Expose the Lab Manager client and its error taxonomy.

'why': provide a small, explicit surface for callers scripting Lab Manager
"""
from ._catalog import OPERATIONS
from ._client import LabManager
from ._errors import (
    CallerError,
    ClientConfigurationError,
    LabManagerError,
    ServiceFault,
    TransportError,
)
from ._models import Fault, Success

__all__ = [
    "CallerError",
    "ClientConfigurationError",
    "Fault",
    "LabManager",
    "LabManagerError",
    "OPERATIONS",
    "ServiceFault",
    "Success",
    "TransportError",
]

__version__ = "0.1.0"
