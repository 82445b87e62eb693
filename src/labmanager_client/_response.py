"""Parse SOAP responses, normalize results, and classify faults.

'why': give every operation one predictable result shape and one fault shape,
whatever the cardinality quirks of the wire format
"""
from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final, cast

from defusedxml import ElementTree as SafeET

from ._models import Fault, Operation, ResultShape, WireType


SOAP_ENV_NS: Final[str] = "http://schemas.xmlsoap.org/soap/envelope/"
XSI_NIL: Final[str] = "{http://www.w3.org/2001/XMLSchema-instance}nil"


class MalformedResponse(ValueError):
    """Raised when a body is not a SOAP envelope."""


@dataclass(frozen=True)
class ParsedResponse:
    """Body of a SOAP response split into result and fault parts."""

    result: object = None
    fault: Mapping[str, object] | None = None


def parse_envelope(body: bytes) -> ParsedResponse:
    """Return the deserialized result or fault carried by a SOAP envelope.

    Raises MalformedResponse when the body is not XML or lacks a SOAP Body.
    """

    try:
        root = SafeET.fromstring(body)
    except (ET.ParseError, ValueError) as exc:
        raise MalformedResponse(f"response is not XML: {exc}") from exc

    if root.tag != f"{{{SOAP_ENV_NS}}}Envelope":
        raise MalformedResponse(f"unexpected root element {root.tag}")
    soap_body = root.find(f"{{{SOAP_ENV_NS}}}Body")
    if soap_body is None:
        raise MalformedResponse("SOAP envelope has no Body")

    payload = next(iter(soap_body), None)
    if payload is None:
        return ParsedResponse()
    if payload.tag == f"{{{SOAP_ENV_NS}}}Fault":
        deserialized = element_to_python(payload)
        fault = cast(dict[str, object], deserialized) if isinstance(deserialized, dict) else {}
        return ParsedResponse(fault=fault)

    result_element = next(iter(payload), None)
    if result_element is None:
        return ParsedResponse()
    return ParsedResponse(result=element_to_python(result_element))


def element_to_python(element: ET.Element) -> object:
    """Deserialize an element: children become a dict, repeats a list, leaves text."""

    children = list(element)
    if not children:
        if element.get(XSI_NIL) in {"true", "1"}:
            return None
        text = element.text
        if text is None or not text.strip():
            return None
        return text

    # element_to_python never yields a list itself, so a list here means repeated siblings
    record: dict[str, object] = {}
    for child in children:
        key = local_name(child.tag)
        value = element_to_python(child)
        if key not in record:
            record[key] = value
            continue
        existing = record[key]
        if isinstance(existing, list):
            cast(list[object], existing).append(value)
        else:
            record[key] = [existing, value]
    return record


def local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def normalize_result(operation: Operation, raw: object) -> object:
    """Shape a deserialized result according to the operation's declaration."""

    if operation.shape is ResultShape.LIST:
        value: object = unwrap_list(raw, operation.item_field)
    elif operation.shape is ResultShape.SCALAR:
        value = _decoded_scalar(raw, operation.returns)
    else:
        value = raw
    if operation.postprocess is not None:
        value = operation.postprocess(value)
    return value


def unwrap_list(raw: object, item_field: str | None) -> list[object]:
    """Always return a list for list-shaped results.

    The wire format cannot tell one child from many, so a single record is
    wrapped and a missing wrapper field means no items. An empty item that is
    present still counts as one.
    """

    if item_field is None:
        if raw is None:
            return []
        container = raw
    else:
        if not isinstance(raw, Mapping):
            return []
        record = cast(Mapping[str, object], raw)
        if item_field not in record:
            return []
        container = record[item_field]
    if isinstance(container, list):
        return list(cast(list[object], container))
    if isinstance(container, str) and not container.strip():
        return []
    return [container]


def _decoded_scalar(raw: object, returns: WireType | None) -> object:
    if not isinstance(raw, str) or returns is None:
        return raw
    text = raw.strip()
    if returns in {WireType.INT, WireType.LONG}:
        try:
            return int(text)
        except ValueError:
            return raw
    if returns is WireType.BOOLEAN:
        lowered = text.lower()
        if lowered in {"true", "1"}:
            return True
        if lowered in {"false", "0"}:
            return False
    return raw


def classify_fault(payload: object, *, operation: str | None = None) -> Fault:
    """Build a Fault, preferring faultstring, then detail message text, then the payload itself."""

    if not isinstance(payload, Mapping):
        return Fault(code="Client", message=str(payload), raw_payload=payload, operation=operation)

    data = cast(Mapping[str, object], payload)
    code = data.get("faultcode")
    detail = data.get("detail")
    return Fault(
        code=str(code) if code is not None else "Server",
        message=_fault_message(data, detail),
        detail=detail,
        raw_payload=payload,
        operation=operation,
    )


def _fault_message(data: Mapping[str, object], detail: object) -> str:
    faultstring = data.get("faultstring")
    if isinstance(faultstring, str) and faultstring.strip():
        return faultstring.strip()
    nested = _detail_message(detail)
    if nested:
        return nested
    return str(dict(data))


def _detail_message(detail: object) -> str | None:
    if not isinstance(detail, Mapping):
        return detail.strip() if isinstance(detail, str) and detail.strip() else None
    message = cast(Mapping[str, object], detail).get("message")
    if isinstance(message, Mapping):
        fmt = cast(Mapping[str, object], message).get("format")
        return fmt if isinstance(fmt, str) and fmt else None
    if isinstance(message, str) and message:
        return message
    return None
