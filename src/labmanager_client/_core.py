"""Run one catalog operation end to end.

'why': keep the call pipeline deterministic by returning Success or Fault and
leaving the raise-or-return decision to the client
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence

from ._envelope import bind_arguments, build_envelope, redacted
from ._errors import TransportError
from ._http import error_snippet, post_envelope
from ._logging import get_logger
from ._models import Binding, CallResult, Credentials, Fault, Operation, Success
from ._response import MalformedResponse, classify_fault, normalize_result, parse_envelope


_logger = get_logger()

TRANSPORT_FAULT_CODE = "Client.Transport"


def execute(
    operation: Operation,
    args: Sequence[object],
    kwargs: Mapping[str, object],
    *,
    binding: Binding,
    credentials: Credentials,
    debug: bool = False,
) -> CallResult:
    """Invoke operation and return its normalized outcome.

    CallerError and TransportError propagate; service faults come back as Fault.
    """

    bound = bind_arguments(operation, args, kwargs)
    envelope = build_envelope(operation, bound, credentials, namespace=binding.namespace)
    if debug:
        _logger.debug(
            "soap request: operation=%s url=%s envelope=%s",
            operation.name,
            binding.url,
            redacted(envelope),
        )

    response = post_envelope(binding, operation.name, envelope)
    _logger.debug(
        "soap response: operation=%s status=%s bytes=%s",
        operation.name,
        response.status_code,
        len(response.content),
    )

    try:
        parsed = parse_envelope(response.content)
    except MalformedResponse as exc:
        raise TransportError(
            f"{operation.name} returned HTTP {response.status_code} without a SOAP envelope: {error_snippet(response)!r}",
            url=binding.url,
        ) from exc

    if parsed.fault is not None:
        fault = classify_fault(parsed.fault, operation=operation.name)
        if debug:
            _logger.debug("soap fault details: operation=%s payload=%s", operation.name, fault.raw_payload)
        return fault

    if not response.is_success:
        raise TransportError(
            f"{operation.name} returned HTTP {response.status_code} without a SOAP fault",
            url=binding.url,
        )
    return Success(operation=operation.name, value=normalize_result(operation, parsed.result))


def transport_fault(operation: Operation, exc: TransportError) -> Fault:
    """Represent a transport failure as a Fault for non-fail-fast callers."""

    return Fault(
        code=TRANSPORT_FAULT_CODE,
        message=str(exc),
        detail=exc.url,
        operation=operation.name,
    )
