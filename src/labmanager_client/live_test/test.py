"""Minimal live test harness for the Lab Manager client.

Reads LABMANAGER_* settings from live_test/.env, checks out a library
configuration, deploys it fenced, then undeploys and deletes the copy.
"""

from __future__ import annotations

import sys
from pathlib import Path

from dotenv import dotenv_values

from labmanager_client import Fault, LabManager

ROOT = Path(__file__).resolve().parent
ENV = dotenv_values(ROOT / ".env")

_ALLOW_IN_AND_OUT = 4


def _env_value(key: str, default: str | None = None) -> str | None:
    value = ENV.get(key)
    if value is None or not value.strip():
        return default
    return value.strip()


def _required(key: str) -> str:
    value = _env_value(key)
    if value is None:
        raise SystemExit(f"{key} missing from {ROOT / '.env'}")
    return value


def main() -> int:
    client = LabManager(
        username=_required("LABMANAGER_USERNAME"),
        password=_env_value("LABMANAGER_PASSWORD", "") or "",
        hostname=_required("LABMANAGER_HOSTNAME"),
        organization=_env_value("LABMANAGER_ORGANIZATION", "Global") or "Global",
        workspace=_env_value("LABMANAGER_WORKSPACE", "Main") or "Main",
        debug=_env_value("LABMANAGER_DEBUG") == "1",
    )
    library_name = _required("LABMANAGER_LIBRARY_CONFIGURATION")
    checkout_name = _env_value("LABMANAGER_CHECKOUT_NAME", f"{library_name}-live") or f"{library_name}-live"

    library = client.get_single_configuration_by_name(library_name)
    if not isinstance(library, dict):
        print(f"Library configuration not found: {library_name}")
        return 1
    print(f"Library configuration: id={library['id']} name={library['name']}")

    workspace_config_id = client.configuration_checkout(int(str(library["id"])), checkout_name)
    if isinstance(workspace_config_id, Fault):
        print(workspace_config_id.formatted())
        return 1
    print(f"Checked out as configuration {workspace_config_id}")
    try:
        client.configuration_deploy(workspace_config_id, _ALLOW_IN_AND_OUT)
        machines = client.list_machines(workspace_config_id)
        if not isinstance(machines, Fault):
            for machine in machines:
                print(f"Machine: {machine}")
        client.configuration_undeploy(workspace_config_id)
    finally:
        client.configuration_delete(workspace_config_id)
    print("Deleted checked-out configuration")
    return 0


if __name__ == "__main__":
    sys.exit(main())
