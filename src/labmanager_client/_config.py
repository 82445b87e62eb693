"""Manage per-client session configuration.

'why': centralize settings validation and keep bindings in step with the session
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Final

from ._errors import ClientConfigurationError
from ._logging import get_logger
from ._models import SOAP_NAMESPACE, Binding, Credentials, Endpoint, Session


DEFAULT_TIMEOUT: Final[float] = 3600.0  # heavyweight clones can take most of an hour
CONFIGURABLE_KEYS: Final[frozenset[str]] = frozenset(
    {
        "debug",
        "fail_fast",
        "hostname",
        "organization",
        "password",
        "timeout",
        "username",
        "verify_ssl",
        "workspace",
    }
)
_ENDPOINT_PATHS: Final[dict[Endpoint, str]] = {
    Endpoint.PUBLIC: "LabManager/SOAP/LabManager.asmx",
    Endpoint.INTERNAL: "LabManager/SOAP/LabManagerInternal.asmx",
}

_logger = get_logger()


def _validated_timeout(timeout: object) -> float:
    if timeout is None:
        return DEFAULT_TIMEOUT
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise ClientConfigurationError("timeout must be a number of seconds")
    if timeout <= 0:
        raise ClientConfigurationError("timeout must be positive when provided")
    return float(timeout)


def _normalized_bool(value: object, *, default: bool) -> bool:
    if value is None:
        return default
    return bool(value)


def _required_text(value: object, *, name: str) -> str:
    candidate = "" if value is None else str(value).strip()
    if not candidate:
        raise ClientConfigurationError(f"{name} must be a non-empty string")
    return candidate


def _normalized_hostname(value: object) -> str:
    host = _required_text(value, name="hostname")
    for prefix in ("https://", "http://"):
        if host.lower().startswith(prefix):
            host = host[len(prefix):]
    return host.rstrip("/")


def _optional_text(value: object) -> str:
    return "" if value is None else str(value)


def build_session(
    *,
    username: str,
    password: str,
    hostname: str,
    organization: str,
    workspace: str,
    timeout: float | None = None,
    debug: bool | None = None,
    fail_fast: bool | None = None,
    verify_ssl: bool | None = None,
) -> Session:
    """Validate constructor arguments and return the initial session.

    Raises ClientConfigurationError on blank hostname/username or a bad timeout.
    """

    return Session(
        hostname=_normalized_hostname(hostname),
        username=_required_text(username, name="username"),
        password=_optional_text(password),
        organization=_optional_text(organization),
        workspace=_optional_text(workspace),
        timeout=_validated_timeout(timeout),
        debug=_normalized_bool(debug, default=False),
        fail_fast=_normalized_bool(fail_fast, default=True),
        verify_ssl=_normalized_bool(verify_ssl, default=True),
    )


def updated_session(session: Session, options: Mapping[str, object]) -> Session:
    """Return a new session with the recognized options applied.

    Unknown keys are dropped with a warning rather than failing the call.
    """

    accepted: dict[str, object] = {}
    for key, value in options.items():
        if key not in CONFIGURABLE_KEYS:
            _logger.warning("configure ignored unknown option: %s", key)
            continue
        accepted[key] = value
    if not accepted:
        return session
    return replace(session, **_normalized_options(accepted))


def _normalized_options(options: Mapping[str, object]) -> dict[str, object]:
    normalized: dict[str, object] = {}
    for key, value in options.items():
        if key == "hostname":
            normalized[key] = _normalized_hostname(value)
        elif key == "username":
            normalized[key] = _required_text(value, name="username")
        elif key == "timeout":
            normalized[key] = _validated_timeout(value)
        elif key == "debug":
            normalized[key] = _normalized_bool(value, default=False)
        elif key in {"fail_fast", "verify_ssl"}:
            normalized[key] = _normalized_bool(value, default=True)
        else:
            normalized[key] = _optional_text(value)
    return normalized


def build_bindings(session: Session) -> dict[Endpoint, Binding]:
    """Derive both endpoint bindings from the session."""

    return {
        endpoint: Binding(
            endpoint=endpoint,
            url=f"https://{session.hostname}/{path}",
            namespace=SOAP_NAMESPACE,
            timeout=session.timeout,
            verify_ssl=session.verify_ssl,
        )
        for endpoint, path in _ENDPOINT_PATHS.items()
    }


def build_credentials(session: Session) -> Credentials:
    """Derive the authentication block from the session."""

    return Credentials(
        username=session.username,
        password=session.password,
        organization=session.organization,
        workspace=session.workspace,
    )


def describe_session(session: Session) -> dict[str, object]:
    """Return the effective configuration with the password masked."""

    return {
        "debug": session.debug,
        "fail_fast": session.fail_fast,
        "hostname": session.hostname,
        "organization": session.organization,
        "password": "********" if session.password else "",
        "timeout": session.timeout,
        "username": session.username,
        "verify_ssl": session.verify_ssl,
        "workspace": session.workspace,
    }
