"""Build SOAP request envelopes for catalog operations.

'why': check caller arguments against the operation schema once, then serialize them
with the authentication header in a single place
"""
from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from collections.abc import Mapping, Sequence
from typing import Final

from ._errors import CallerError
from ._models import SOAP_NAMESPACE, Credentials, Operation, Param, WireType


SOAP_ENV_NS: Final[str] = "http://schemas.xmlsoap.org/soap/envelope/"
XSI_NS: Final[str] = "http://www.w3.org/2001/XMLSchema-instance"
XSD_NS: Final[str] = "http://www.w3.org/2001/XMLSchema"
AUTH_HEADER: Final[str] = "AuthenticationHeader"
REDACTED: Final[str] = "********"
SECRET_ELEMENTS: Final[frozenset[str]] = frozenset({"password", "dirPassword"})

ET.register_namespace("soap", SOAP_ENV_NS)
ET.register_namespace("xsi", XSI_NS)
ET.register_namespace("xsd", XSD_NS)
ET.register_namespace("lm", SOAP_NAMESPACE)

_TRUE_TEXT: Final[frozenset[str]] = frozenset({"true", "1"})
_FALSE_TEXT: Final[frozenset[str]] = frozenset({"false", "0"})
_SECRET_ELEMENT: Final[re.Pattern[str]] = re.compile(
    r"(?P<open><(?:[\w.-]+:)?(?:" + "|".join(sorted(SECRET_ELEMENTS)) + r")(?:\s[^>/]*)?>)[^<]*"
)


def bind_arguments(
    operation: Operation,
    args: Sequence[object],
    kwargs: Mapping[str, object],
) -> list[tuple[Param, object]]:
    """Return (param, wire value) pairs in declaration order.

    Positional arguments fill parameters in order; keyword arguments match the
    wire parameter name. Raises CallerError on arity, keyword, or choice problems.
    """

    if len(args) > len(operation.params):
        raise CallerError(
            f"{operation.name} takes at most {len(operation.params)} arguments ({len(args)} given)"
        )
    unknown = [key for key in kwargs if operation.param(key) is None]
    if unknown:
        raise CallerError(f"{operation.name} got unexpected arguments: {', '.join(sorted(unknown))}")

    bound: list[tuple[Param, object]] = []
    for index, param in enumerate(operation.params):
        if index < len(args):
            if param.name in kwargs:
                raise CallerError(f"{operation.name} got multiple values for {param.name}")
            value = args[index]
        elif param.name in kwargs:
            value = kwargs[param.name]
        elif param.required:
            raise CallerError(f"{operation.name} missing required argument: {param.name}")
        else:
            value = param.default
        bound.append((param, _checked_value(operation, param, value)))
    return bound


def _checked_value(operation: Operation, param: Param, value: object) -> object:
    if value is None:
        if param.required:
            raise CallerError(f"{operation.name} requires a value for {param.name}")
        return None
    converted = convert_value(param.wire_type, value, name=f"{operation.name}.{param.name}")
    if param.choices is not None and _choice_key(param.wire_type, converted) not in param.choices:
        allowed = ", ".join(str(choice) for choice in sorted(param.choices, key=str))
        raise CallerError(f"{operation.name}.{param.name} must be one of {{{allowed}}} (got {value!r})")
    return converted


def _choice_key(wire_type: WireType, converted: object) -> object:
    if wire_type in {WireType.INT, WireType.LONG} and isinstance(converted, str):
        return int(converted)
    return converted


def convert_value(wire_type: WireType, value: object, *, name: str) -> object:
    """Convert a caller value into its wire representation.

    Scalars become text; structs are returned untouched for encode_struct.
    """

    if wire_type in {WireType.INT, WireType.LONG}:
        return str(_integer(value, name=name))
    if wire_type is WireType.BOOLEAN:
        return "true" if _boolean(value, name=name) else "false"
    if wire_type is WireType.STRING:
        return str(value)
    if not isinstance(value, (Mapping, list, tuple)):
        raise CallerError(f"{name} must be a mapping or a sequence of mappings")
    return value


def _integer(value: object, *, name: str) -> int:
    if isinstance(value, bool):
        raise CallerError(f"{name} must be an integer, not a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        try:
            return int(stripped)
        except ValueError:
            pass
    raise CallerError(f"{name} must be an integer (got {value!r})")


def _boolean(value: object, *, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in {0, 1}:
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_TEXT:
            return True
        if lowered in _FALSE_TEXT:
            return False
    raise CallerError(f"{name} must be a boolean (got {value!r})")


def build_envelope(
    operation: Operation,
    bound: Sequence[tuple[Param, object]],
    credentials: Credentials,
    *,
    namespace: str,
) -> bytes:
    """Serialize the request envelope, carrying credentials in the SOAP header."""

    envelope = ET.Element(f"{{{SOAP_ENV_NS}}}Envelope")
    header = ET.SubElement(envelope, f"{{{SOAP_ENV_NS}}}Header")
    _append_credentials(header, credentials, namespace)

    body = ET.SubElement(envelope, f"{{{SOAP_ENV_NS}}}Body")
    call = ET.SubElement(body, f"{{{namespace}}}{operation.name}")
    for param, value in bound:
        if value is None:
            continue
        element = ET.SubElement(call, f"{{{namespace}}}{param.name}")
        if param.wire_type is WireType.STRUCT:
            encode_struct(element, value, namespace)
        else:
            element.text = str(value)
    return ET.tostring(envelope, encoding="utf-8", xml_declaration=True)


def _append_credentials(header: ET.Element, credentials: Credentials, namespace: str) -> None:
    auth = ET.SubElement(header, f"{{{namespace}}}{AUTH_HEADER}")
    fields = (
        ("username", credentials.username),
        ("password", credentials.password),
        ("organizationname", credentials.organization),
        ("workspacename", credentials.workspace),
    )
    for tag, text in fields:
        ET.SubElement(auth, f"{{{namespace}}}{tag}").text = text


def encode_struct(parent: ET.Element, value: object, namespace: str) -> None:
    """Encode nested mappings and sequences under parent.

    A mapping contributes one child per key; a list under a key repeats that key;
    a sequence of mappings contributes each mapping's children in order.
    """

    if isinstance(value, Mapping):
        for key, item in value.items():
            _encode_member(parent, str(key), item, namespace)
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            if not isinstance(item, Mapping):
                raise CallerError("struct sequences must contain mappings")
            encode_struct(parent, item, namespace)
        return
    parent.text = _scalar_text(value)


def _encode_member(parent: ET.Element, key: str, item: object, namespace: str) -> None:
    if item is None:
        return
    if isinstance(item, (list, tuple)):
        for entry in item:
            _encode_member(parent, key, entry, namespace)
        return
    child = ET.SubElement(parent, f"{{{namespace}}}{key}")
    if isinstance(item, Mapping):
        encode_struct(child, item, namespace)
    else:
        child.text = _scalar_text(item)


def _scalar_text(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def redacted(envelope: bytes) -> str:
    """Return the envelope as text for debug logging, with every secret element masked.

    Covers the AuthenticationHeader password and the password parameters of the
    import and export operations.
    """

    return _SECRET_ELEMENT.sub(rf"\g<open>{REDACTED}", envelope.decode("utf-8"))
