"""Declare every remote operation the client can call.

'why': keep per-operation knowledge as data so the call pipeline stays uniform
"""
from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Final, cast

from ._errors import CallerError
from ._models import Endpoint, Operation, Param, ResultShape, WireType


_INT = WireType.INT
_LONG = WireType.LONG
_STR = WireType.STRING
_BOOL = WireType.BOOLEAN
_STRUCT = WireType.STRUCT

FENCE_MODES: Final[frozenset[object]] = frozenset({1, 2, 3, 4})
CONFIGURATION_TYPES: Final[frozenset[object]] = frozenset({1, 2})  # 1 = workspace, 2 = library
CONFIGURATION_ACTIONS: Final[frozenset[object]] = frozenset(range(1, 7))
MACHINE_ACTIONS: Final[frozenset[object]] = frozenset(range(1, 9))
OBJECT_TYPES: Final[frozenset[object]] = frozenset({1, 2, 3, 4})  # vm, managed server, resource pool, configuration


def _public(name: str, *params: Param, **shape: object) -> Operation:
    return Operation(name, Endpoint.PUBLIC, params, **shape)  # type: ignore[arg-type]


def _internal(name: str, *params: Param, **shape: object) -> Operation:
    return Operation(name, Endpoint.INTERNAL, params, **shape)  # type: ignore[arg-type]


def _listing(item_field: str) -> dict[str, object]:
    return {"shape": ResultShape.LIST, "item_field": item_field}


_OBJECT: Final[dict[str, object]] = {"shape": ResultShape.OBJECT}
_RETURNS_ID: Final[dict[str, object]] = {"returns": _INT}


def _label_only(value: object) -> object:
    if isinstance(value, Mapping):
        return cast(Mapping[str, object], value).get("label")
    return value


_CATALOG: Final[tuple[Operation, ...]] = (
    # public API
    _public(
        "ConfigurationCapture",
        Param("configurationId", _INT),
        Param("newLibraryName", _STR),
        **_RETURNS_ID,
    ),
    _public(
        "ConfigurationCheckout",
        Param("configurationId", _INT),
        Param("workspaceName", _STR),
        **_RETURNS_ID,
    ),
    _public(
        "ConfigurationClone",
        Param("configurationId", _INT),
        Param("newWorkspaceName", _STR),
        **_RETURNS_ID,
    ),
    _public("ConfigurationDelete", Param("configurationId", _INT)),
    _public(
        "ConfigurationDeploy",
        Param("configurationId", _INT),
        Param("isCached", _BOOL, default=False),
        Param("fenceMode", _INT, choices=FENCE_MODES),
    ),
    _public(
        "ConfigurationPerformAction",
        Param("configurationId", _INT),
        Param("action", _INT, choices=CONFIGURATION_ACTIONS),
    ),
    _public(
        "ConfigurationSetPublicPrivate",
        Param("configurationId", _INT),
        Param("isPublic", _BOOL),
    ),
    _public("ConfigurationUndeploy", Param("configurationId", _INT)),
    _public("GetConfiguration", Param("id", _INT), **_OBJECT),
    _public("GetConfigurationByName", Param("name", _STR), **_listing("Configuration")),
    _public("GetConsoleAccessInfo", Param("machineId", _INT), **_OBJECT),
    _public("GetMachine", Param("machineId", _INT), **_OBJECT),
    _public(
        "GetMachineByName",
        Param("configurationId", _INT),
        Param("name", _STR),
        **_OBJECT,
    ),
    _public("GetSingleConfigurationByName", Param("name", _STR), **_OBJECT),
    _public(
        "ListConfigurations",
        Param("configurationType", _INT, choices=CONFIGURATION_TYPES),
        **_listing("Configuration"),
    ),
    _public("ListMachines", Param("configurationId", _INT), **_listing("Machine")),
    _public("LiveLink", Param("configName", _STR)),
    _public(
        "MachinePerformAction",
        Param("machineId", _INT),
        Param("action", _INT, choices=MACHINE_ACTIONS),
    ),
    # internal API: not supported by VMware and subject to change between releases
    _internal(
        "ConfigurationAddMachineEx",
        Param("id", _INT),
        Param("template_id", _INT),
        Param("name", _STR),
        Param("desc", _STR, default=""),
        Param("boot_seq", _INT, default=0),
        Param("boot_delay", _INT, default=0),
        Param("netInfo", _STRUCT, default=None),
        **_RETURNS_ID,
    ),
    _internal(
        "ConfigurationArchiveEx",
        Param("restoreConfigId", _INT),
        Param("archiveName", _STR),
        Param("archiveDescription", _STR, default=""),
        Param("isFullClone", _BOOL, default=False),
        Param("storageName", _STR, default=None),
        Param("storageLeaseInMilliseconds", _LONG, default=0),
        **_RETURNS_ID,
    ),
    _internal(
        "ConfigurationCaptureEx",
        Param("configurationId", _INT),
        Param("newLibraryName", _STR),
        Param("libraryDescription", _STR, default=""),
        Param("isGoldMaster", _BOOL, default=False),
        Param("storageName", _STR, default=None),
        Param("storageLeaseInMilliseconds", _LONG, default=0),
        **_RETURNS_ID,
    ),
    _internal(
        "ConfigurationChangeOwner",
        Param("configurationId", _INT),
        Param("newOwnerId", _INT),
    ),
    _internal(
        "ConfigurationCloneToWorkspace",
        Param("configID", _INT),
        Param("destWorkspaceId", _INT),
        Param("isNewConfiguration", _BOOL),
        Param("newConfigName", _STR),
        Param("description", _STR, default=""),
        Param("copyData", _STRUCT, default=None),
        Param("existingConfigId", _INT, default=0),
        Param("isFullClone", _BOOL, default=False),
        Param("storageLeaseInMilliseconds", _LONG, default=0),
        **_RETURNS_ID,
    ),
    _internal(
        "ConfigurationCopy",
        Param("sg_id", _INT),
        Param("name", _STR),
        Param("description", _STR, default=""),
        Param("configurationCopyData", _STRUCT),
        **_RETURNS_ID,
    ),
    _internal(
        "ConfigurationCreateEx",
        Param("name", _STR),
        Param("desc", _STR, default=""),
        **_RETURNS_ID,
    ),
    _internal(
        "ConfigurationDeployEx2",
        Param("configurationId", _INT),
        Param("honorBootOrders", _BOOL, default=True),
        Param("startAfterDeploy", _BOOL, default=True),
        Param("fenceNetworkOptions", _STRUCT, default=None),
        Param("bridgeNetworkOptions", _STRUCT, default=None),
        Param("isCrossHost", _BOOL, default=True),
    ),
    _internal(
        "ConfigurationExport",
        Param("configId", _INT),
        Param("uncPath", _STR),
        Param("username", _STR),
        Param("password", _STR),
    ),
    _internal(
        "ConfigurationImport",
        Param("UNCPath", _STR),
        Param("dirUsername", _STR),
        Param("dirPassword", _STR),
        Param("name", _STR),
        Param("description", _STR, default=""),
        Param("storageName", _STR, default=None),
        **_RETURNS_ID,
    ),
    _internal(
        "ConfigurationMove",
        Param("configIdToMove", _INT),
        Param("destinationWorkspaceId", _INT),
        Param("isNewConfiguration", _BOOL),
        Param("newConfigName", _STR),
        Param("newConfigDescription", _STR, default=""),
        Param("storageLeaseInMilliseconds", _LONG, default=0),
        Param("existingConfigId", _INT, default=0),
        Param("vmIds", _STRUCT),
        Param("deleteOriginalConfig", _BOOL, default=False),
        **_RETURNS_ID,
    ),
    _internal("GetAllWorkspaces", **_listing("Workspace")),
    _internal("GetNetworkInfo", Param("vmID", _INT), **_listing("VMNetworkInfo")),
    _internal(
        "GetObjectConditions",
        Param("objectType", _INT, choices=OBJECT_TYPES),
        Param("objectID", _INT),
        **_listing("ObjectCondition"),
    ),
    _internal("GetOrganization", Param("organizationId", _INT), **_OBJECT),
    _internal("GetOrganizationByName", Param("organizationName", _STR), **_OBJECT),
    _internal("GetOrganizations", **_listing("Organization")),
    _internal(
        "GetOrganizationWorkspaces",
        Param("organizationId", _INT),
        **_listing("Workspace"),
    ),
    _internal("GetTemplate", Param("id", _INT), **_OBJECT),
    _internal("GetUser", Param("userName", _STR), **_OBJECT),
    _internal("GetWorkspaceByName", Param("workspaceName", _STR), **_OBJECT),
    _internal(
        "LibraryCloneToWorkspace",
        Param("libraryId", _INT),
        Param("destWorkspaceId", _INT),
        Param("isNewConfiguration", _BOOL),
        Param("newConfigName", _STR),
        Param("description", _STR, default=""),
        Param("copyData", _STRUCT, default=None),
        Param("existingConfigId", _INT, default=0),
        Param("isFullClone", _BOOL, default=False),
        Param("storageLeaseInMilliseconds", _LONG, default=0),
        **_RETURNS_ID,
    ),
    _internal("ListNetworks", **_listing("Network")),
    _internal("ListTemplates", **_listing("Template")),
    _internal("ListTransportNetworksInCurrentOrg", **_listing("TransportNetwork")),
    _internal("ListUsers", **_listing("User")),
    _internal("MachineUpgradeVirtualHardware", Param("machineId", _INT)),
    _internal(
        "NetworkInterfaceCreate",
        Param("vmID", _INT),
        Param("networkID", _INT),
        Param("IPAssignmentType", _STR),
        Param("IPAddress", _STR, default=None),
        **_RETURNS_ID,
    ),
    _internal(
        "NetworkInterfaceDelete",
        Param("vmID", _INT),
        Param("nicID", _INT),
    ),
    _internal(
        "NetworkInterfaceModify",
        Param("vmID", _INT),
        Param("netInfo", _STRUCT),
    ),
    _internal(
        "StorageServerVMFSFindByName",
        Param("name", _STR),
        shape=ResultShape.OBJECT,
        postprocess=_label_only,
    ),
    _internal(
        "TemplateChangeOwner",
        Param("templateId", _INT),
        Param("newOwnerId", _INT),
    ),
    _internal(
        "TemplateExport",
        Param("template_id", _INT),
        Param("uncPath", _STR),
        Param("username", _STR),
        Param("password", _STR),
    ),
    _internal(
        "TemplateImport",
        Param("UNCPath", _STR),
        Param("dirUsername", _STR),
        Param("dirPassword", _STR),
        Param("name", _STR),
        Param("description", _STR, default=""),
        Param("VSTypeID", _INT),
        Param("storageServerName", _STR),
        Param("parameterList", _STRUCT, default=None),
        **_RETURNS_ID,
    ),
    _internal(
        "TemplateImportFromSMB",
        Param("UNCPath", _STR),
        Param("dirUsername", _STR),
        Param("dirPassword", _STR),
        Param("name", _STR),
        Param("description", _STR, default=""),
        Param("VSTypeID", _INT),
        Param("storageServerName", _STR),
        Param("performGuestCustomization", _BOOL, default=True),
        Param("parameterList", _STRUCT, default=None),
        **_RETURNS_ID,
    ),
    _internal(
        "TemplatePerformAction",
        Param("template_id", _INT),
        Param("action", _INT),
    ),
    _internal(
        "WorkspaceCreate",
        Param("name", _STR),
        Param("isMain", _BOOL, default=False),
        Param("description", _STR, default=""),
        Param("storedVMQuota", _INT, default=0),
        Param("deployedVMQuota", _INT, default=0),
        **_RETURNS_ID,
    ),
)

OPERATIONS: Final[Mapping[str, Operation]] = MappingProxyType({op.name: op for op in _CATALOG})


def get_operation(name: str) -> Operation:
    """Return the operation declared under name.

    Raises CallerError for names the catalog does not know.
    """

    try:
        return OPERATIONS[name]
    except KeyError:
        raise CallerError(f"unknown Lab Manager operation: {name}") from None
