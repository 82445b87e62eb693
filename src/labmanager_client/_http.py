"""HTTP transport for the Lab Manager SOAP endpoints."""
from __future__ import annotations

from typing import Final

import httpx

from ._errors import TransportError
from ._models import Binding


CONTENT_TYPE: Final[str] = "text/xml; charset=utf-8"
MAX_ERROR_SNIPPET: Final[int] = 500


def post_envelope(binding: Binding, operation: str, envelope: bytes) -> httpx.Response:
    """POST a request envelope to the binding and return the raw response.

    Raises TransportError when the channel cannot be established or times out.
    Non-2xx responses are returned as-is; SOAP faults arrive with HTTP 500.
    """

    headers = {
        "Content-Type": CONTENT_TYPE,
        "SOAPAction": f'"{binding.soap_action(operation)}"',
    }
    try:
        with httpx.Client(
            timeout=httpx.Timeout(binding.timeout),
            verify=binding.verify_ssl,
        ) as client:
            return client.post(binding.url, content=envelope, headers=headers)
    except httpx.TimeoutException as exc:
        raise TransportError(
            f"{operation} timed out after {binding.timeout:g}s calling {binding.url}",
            url=binding.url,
        ) from exc
    except httpx.HTTPError as exc:
        raise TransportError(f"{operation} could not reach {binding.url}: {exc}", url=binding.url) from exc


def error_snippet(response: httpx.Response) -> str:
    """Return a bounded excerpt of a response body for error messages."""

    return (response.text or "")[:MAX_ERROR_SNIPPET]
