"""Expose the Lab Manager SOAP API as a client object.

'why': give callers one method per remote operation while the session, bindings,
and fault policy live in one place
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Final

from ._catalog import get_operation
from ._config import (
    build_bindings,
    build_credentials,
    build_session,
    describe_session,
    updated_session,
)
from ._core import execute, transport_fault
from ._errors import CallerError, ServiceFault, TransportError
from ._logging import get_logger, track_debug
from ._models import Binding, Credentials, Endpoint, Fault, Operation, Session, Success


_logger = get_logger()

Record = dict[str, object]

DEPLOY_FENCE_MODES: Final[frozenset[str]] = frozenset(
    {"Nonfenced", "FenceBlockInAndOut", "FenceAllowOutOnly", "FenceAllowInAndOut"}
)


class LabManager:
    """Client for the Lab Manager public and internal SOAP APIs.

    Every call is synchronous and blocks for up to ``timeout`` seconds. With
    ``fail_fast`` (the default) service faults raise ServiceFault and transport
    failures raise TransportError; otherwise both are returned as a Fault and
    kept for get_last_error().

    Instances are not thread-safe. Serialize configure() against in-flight
    calls, or use one instance per credential context.
    """

    def __init__(
        self,
        username: str,
        password: str,
        hostname: str,
        organization: str,
        workspace: str,
        debug: bool = False,
        fail_fast: bool = True,
        timeout: float | None = None,
        verify_ssl: bool = True,
    ) -> None:
        self._session: Session = build_session(
            username=username,
            password=password,
            hostname=hostname,
            organization=organization,
            workspace=workspace,
            timeout=timeout,
            debug=debug,
            fail_fast=fail_fast,
            verify_ssl=verify_ssl,
        )
        self._last_error: Fault | None = None
        self._rebind()

    # --- session ---

    @property
    def session(self) -> Session:
        return self._session

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def binding(self, endpoint: Endpoint) -> Binding:
        return self._bindings[endpoint]

    def configure(self, **options: object) -> dict[str, object]:
        """Update session settings and return the effective configuration.

        Recognized keys: debug, fail_fast, hostname, organization, password,
        timeout, username, verify_ssl, workspace. Unknown keys are ignored with
        a warning. Bindings and credentials are rebuilt before the next call.
        """

        session = updated_session(self._session, options)
        if session is not self._session:
            self._session = session
            self._rebind()
        return describe_session(self._session)

    def get_last_error(self) -> str | None:
        """Return the formatted last fault recorded while fail_fast is off."""

        if self._last_error is None:
            return None
        return self._last_error.formatted()

    @property
    def last_fault(self) -> Fault | None:
        return self._last_error

    def _rebind(self) -> None:
        self._bindings = build_bindings(self._session)
        self._credentials = build_credentials(self._session)
        track_debug(self, self._session.debug)
        _logger.debug(
            "client bound: host=%s org=%s workspace=%s user=%s",
            self._session.hostname,
            self._session.organization,
            self._session.workspace,
            self._session.username,
        )

    # --- dispatch ---

    def call(self, operation_name: str, *args: object, **kwargs: object) -> Any:
        """Invoke any catalog operation by its wire name.

        Positional arguments follow the wire parameter order; keyword arguments
        use wire parameter names (e.g. ``fenceMode=4``).
        """

        return self._invoke(get_operation(operation_name), args, kwargs)

    def _call(self, operation_name: str, **kwargs: object) -> Any:
        return self._invoke(get_operation(operation_name), (), kwargs)

    def _invoke(self, operation: Operation, args: Sequence[object], kwargs: Mapping[str, object]) -> Any:
        session = self._session
        try:
            result = execute(
                operation,
                args,
                kwargs,
                binding=self._bindings[operation.endpoint],
                credentials=self._credentials,
                debug=session.debug,
            )
        except TransportError as exc:
            if session.fail_fast:
                _logger.error("transport failure: operation=%s err=%s", operation.name, exc)
                raise
            result = transport_fault(operation, exc)

        if isinstance(result, Success):
            return result.value
        return self._handle_fault(result, session)

    def _handle_fault(self, fault: Fault, session: Session) -> Fault:
        if session.fail_fast:
            _logger.error("soap fault: operation=%s code=%s message=%s", fault.operation, fault.code, fault.message)
            raise ServiceFault(fault)
        _logger.warning("soap fault recorded: operation=%s message=%s", fault.operation, fault.message)
        self._last_error = fault
        return fault

    # --- public API ---

    def configuration_capture(self, configuration_id: int, new_library_name: str) -> int | Fault:
        """Capture a workspace configuration into the library and return the new id."""

        return self._call(
            "ConfigurationCapture",
            configurationId=configuration_id,
            newLibraryName=new_library_name,
        )

    def configuration_checkout(self, configuration_id: int, workspace_name: str) -> int | Fault:
        """Check a library configuration out into the workspace under a new name.

        The service matches the workspace by name across organizations, so a
        duplicated workspace name (e.g. several "Main") makes this call fail;
        priv_library_clone_to_workspace avoids the ambiguity.
        """

        return self._call(
            "ConfigurationCheckout",
            configurationId=configuration_id,
            workspaceName=workspace_name,
        )

    def configuration_clone(self, configuration_id: int, new_workspace_name: str) -> int | Fault:
        return self._call(
            "ConfigurationClone",
            configurationId=configuration_id,
            newWorkspaceName=new_workspace_name,
        )

    def configuration_delete(self, configuration_id: int) -> None | Fault:
        """Delete an undeployed workspace configuration."""

        return self._call("ConfigurationDelete", configurationId=configuration_id)

    def configuration_deploy(self, configuration_id: int, fence_mode: int, is_cached: bool = False) -> None | Fault:
        """Deploy a workspace configuration.

        fence_mode: 1 not fenced, 2 block in and out, 3 allow out, 4 allow in and out.
        """

        return self._call(
            "ConfigurationDeploy",
            configurationId=configuration_id,
            isCached=is_cached,
            fenceMode=fence_mode,
        )

    def configuration_perform_action(self, configuration_id: int, action: int) -> None | Fault:
        """Run a power action on a whole configuration.

        action: 1 power on, 2 power off, 3 suspend, 4 resume, 5 reset, 6 snapshot.
        """

        return self._call("ConfigurationPerformAction", configurationId=configuration_id, action=action)

    def configuration_set_public_private(self, configuration_id: int, is_public: bool) -> None | Fault:
        return self._call("ConfigurationSetPublicPrivate", configurationId=configuration_id, isPublic=is_public)

    def configuration_undeploy(self, configuration_id: int) -> None | Fault:
        return self._call("ConfigurationUndeploy", configurationId=configuration_id)

    def get_configuration(self, configuration_id: int) -> Record | None | Fault:
        return self._call("GetConfiguration", id=configuration_id)

    def get_configuration_by_name(self, name: str) -> list[Record] | Fault:
        """Return every configuration named name, across library and workspace."""

        return self._call("GetConfigurationByName", name=name)

    def get_console_access_info(self, machine_id: int) -> Record | None | Fault:
        return self._call("GetConsoleAccessInfo", machineId=machine_id)

    def get_machine(self, machine_id: int) -> Record | None | Fault:
        return self._call("GetMachine", machineId=machine_id)

    def get_machine_by_name(self, configuration_id: int, name: str) -> Record | None | Fault:
        return self._call("GetMachineByName", configurationId=configuration_id, name=name)

    def get_single_configuration_by_name(self, name: str) -> Record | None | Fault:
        """Return the one configuration named name from the library or workspace."""

        return self._call("GetSingleConfigurationByName", name=name)

    def list_configurations(self, configuration_type: int) -> list[Record] | Fault:
        """List configurations of the current workspace (1) or the library (2)."""

        return self._call("ListConfigurations", configurationType=configuration_type)

    def list_machines(self, configuration_id: int) -> list[Record] | Fault:
        return self._call("ListMachines", configurationId=configuration_id)

    def live_link(self, config_name: str) -> str | None | Fault:
        """Return a LiveLink URL for a library configuration."""

        return self._call("LiveLink", configName=config_name)

    def machine_perform_action(self, machine_id: int, action: int) -> None | Fault:
        """Run a power action on one machine.

        action: 1 power on, 2 power off, 3 suspend, 4 resume, 5 reset,
        6 snapshot, 7 revert to snapshot, 8 shut down.
        """

        return self._call("MachinePerformAction", machineId=machine_id, action=action)

    # --- internal API (unsupported by VMware, may change between releases) ---

    def priv_configuration_add_machine_ex(
        self,
        configuration_id: int,
        template_id: int,
        name: str,
        description: str = "",
        boot_seq: int = 0,
        boot_delay: int = 0,
        net_info: Sequence[Mapping[str, object]] = (),
    ) -> int | Fault:
        """Add a machine built from a template; net_info holds one mapping per NIC."""

        return self._call(
            "ConfigurationAddMachineEx",
            id=configuration_id,
            template_id=template_id,
            name=name,
            desc=description,
            boot_seq=boot_seq,
            boot_delay=boot_delay,
            netInfo={"NetInfo": list(net_info)},
        )

    def priv_configuration_archive_ex(
        self,
        restore_config_id: int,
        archive_name: str,
        archive_description: str = "",
        is_full_clone: bool = False,
        storage_name: str | None = None,
        storage_lease_ms: int = 0,
    ) -> int | Fault:
        return self._call(
            "ConfigurationArchiveEx",
            restoreConfigId=restore_config_id,
            archiveName=archive_name,
            archiveDescription=archive_description,
            isFullClone=is_full_clone,
            storageName=storage_name,
            storageLeaseInMilliseconds=storage_lease_ms,
        )

    def priv_configuration_capture_ex(
        self,
        configuration_id: int,
        new_library_name: str,
        library_description: str = "",
        is_gold_master: bool = False,
        storage_name: str | None = None,
        storage_lease_ms: int = 0,
    ) -> int | Fault:
        """Capture into the library with description, gold-master flag, and storage lease."""

        return self._call(
            "ConfigurationCaptureEx",
            configurationId=configuration_id,
            newLibraryName=new_library_name,
            libraryDescription=library_description,
            isGoldMaster=is_gold_master,
            storageName=storage_name,
            storageLeaseInMilliseconds=storage_lease_ms,
        )

    def priv_configuration_change_owner(self, configuration_id: int, new_owner_id: int) -> None | Fault:
        return self._call("ConfigurationChangeOwner", configurationId=configuration_id, newOwnerId=new_owner_id)

    def priv_configuration_clone_to_workspace(
        self,
        configuration_id: int,
        dest_workspace_id: int,
        is_new_configuration: bool,
        new_config_name: str,
        description: str = "",
        copy_data: Mapping[str, object] | Sequence[Mapping[str, object]] | None = None,
        existing_config_id: int = 0,
        is_full_clone: bool = False,
        storage_lease_ms: int = 0,
    ) -> int | Fault:
        return self._call(
            "ConfigurationCloneToWorkspace",
            configID=configuration_id,
            destWorkspaceId=dest_workspace_id,
            isNewConfiguration=is_new_configuration,
            newConfigName=new_config_name,
            description=description,
            copyData=copy_data,
            existingConfigId=existing_config_id,
            isFullClone=is_full_clone,
            storageLeaseInMilliseconds=storage_lease_ms,
        )

    def priv_configuration_copy(
        self,
        sg_id: int,
        name: str,
        description: str,
        machines: Iterable[Mapping[str, object]],
        storage_server_name: str,
    ) -> int | Fault:
        """Copy a configuration; each machine mapping becomes one <machine> record."""

        copy_data = {
            "VMCopyData": {
                "machine": [dict(machine) for machine in machines],
                "storageServerName": storage_server_name,
            }
        }
        return self._call(
            "ConfigurationCopy",
            sg_id=sg_id,
            name=name,
            description=description,
            configurationCopyData=copy_data,
        )

    def priv_configuration_create_ex(self, name: str, description: str = "") -> int | Fault:
        """Create an empty configuration and return its id."""

        return self._call("ConfigurationCreateEx", name=name, desc=description)

    def priv_configuration_deploy_ex2(
        self,
        configuration_id: int,
        network_id: int,
        fence_mode: str = "FenceAllowInAndOut",
        honor_boot_orders: bool = True,
        start_after_deploy: bool = True,
        is_cross_host: bool = True,
    ) -> None | Fault:
        """Deploy onto a distributed virtual switch, fencing the given configured network.

        fence_mode: Nonfenced, FenceBlockInAndOut, FenceAllowOutOnly, or FenceAllowInAndOut.
        """

        if fence_mode not in DEPLOY_FENCE_MODES:
            raise CallerError(f"fence_mode must be one of {sorted(DEPLOY_FENCE_MODES)} (got {fence_mode!r})")
        options = {
            "FenceNetworkOption": {
                "configuredNetID": _integer_id(network_id, "network_id"),
                "DeployFenceMode": fence_mode,
            }
        }
        return self._call(
            "ConfigurationDeployEx2",
            configurationId=configuration_id,
            honorBootOrders=honor_boot_orders,
            startAfterDeploy=start_after_deploy,
            fenceNetworkOptions=options,
            isCrossHost=is_cross_host,
        )

    def priv_configuration_export(
        self, configuration_id: int, unc_path: str, username: str, password: str
    ) -> None | Fault:
        return self._call(
            "ConfigurationExport",
            configId=configuration_id,
            uncPath=unc_path,
            username=username,
            password=password,
        )

    def priv_configuration_import(
        self,
        unc_path: str,
        dir_username: str,
        dir_password: str,
        name: str,
        description: str = "",
        storage_name: str | None = None,
    ) -> int | Fault:
        return self._call(
            "ConfigurationImport",
            UNCPath=unc_path,
            dirUsername=dir_username,
            dirPassword=dir_password,
            name=name,
            description=description,
            storageName=storage_name,
        )

    def priv_configuration_move(
        self,
        configuration_id: int,
        destination_workspace_id: int,
        is_new_configuration: bool,
        new_config_name: str,
        new_config_description: str = "",
        storage_lease_ms: int = 0,
        existing_config_id: int = 0,
        vm_ids: Iterable[int] = (),
        delete_original_config: bool = False,
    ) -> int | Fault:
        """Move machines of a configuration into another workspace."""

        return self._call(
            "ConfigurationMove",
            configIdToMove=configuration_id,
            destinationWorkspaceId=destination_workspace_id,
            isNewConfiguration=is_new_configuration,
            newConfigName=new_config_name,
            newConfigDescription=new_config_description,
            storageLeaseInMilliseconds=storage_lease_ms,
            existingConfigId=existing_config_id,
            vmIds={"int": [_integer_id(vm_id, "vm_ids") for vm_id in vm_ids]},
            deleteOriginalConfig=delete_original_config,
        )

    def priv_get_all_workspaces(self) -> list[Record] | Fault:
        return self._call("GetAllWorkspaces")

    def priv_get_network_info(self, vm_id: int) -> list[Record] | Fault:
        return self._call("GetNetworkInfo", vmID=vm_id)

    def priv_get_object_conditions(self, object_type: int, object_id: int) -> list[Record] | Fault:
        """Return conditions on an object.

        object_type: 1 VM, 2 managed server, 3 resource pool, 4 configuration.
        """

        return self._call("GetObjectConditions", objectType=object_type, objectID=object_id)

    def priv_get_organization(self, organization_id: int) -> Record | None | Fault:
        return self._call("GetOrganization", organizationId=organization_id)

    def priv_get_organization_by_name(self, organization_name: str) -> Record | None | Fault:
        return self._call("GetOrganizationByName", organizationName=organization_name)

    def priv_get_organizations(self) -> list[Record] | Fault:
        return self._call("GetOrganizations")

    def priv_get_organization_workspaces(self, organization_id: int) -> list[Record] | Fault:
        return self._call("GetOrganizationWorkspaces", organizationId=organization_id)

    def priv_get_template(self, template_id: int) -> Record | None | Fault:
        return self._call("GetTemplate", id=template_id)

    def priv_get_user(self, username: str) -> Record | None | Fault:
        return self._call("GetUser", userName=username)

    def priv_get_workspace_by_name(self, workspace_name: str) -> Record | None | Fault:
        return self._call("GetWorkspaceByName", workspaceName=workspace_name)

    def priv_library_clone_to_workspace(
        self,
        library_id: int,
        dest_workspace_id: int,
        is_new_configuration: bool,
        new_config_name: str,
        description: str = "",
        copy_data: Mapping[str, object] | Sequence[Mapping[str, object]] | None = None,
        existing_config_id: int = 0,
        is_full_clone: bool = False,
        storage_lease_ms: int = 0,
    ) -> int | Fault:
        """Clone a library configuration into a workspace addressed by id."""

        return self._call(
            "LibraryCloneToWorkspace",
            libraryId=library_id,
            destWorkspaceId=dest_workspace_id,
            isNewConfiguration=is_new_configuration,
            newConfigName=new_config_name,
            description=description,
            copyData=copy_data,
            existingConfigId=existing_config_id,
            isFullClone=is_full_clone,
            storageLeaseInMilliseconds=storage_lease_ms,
        )

    def priv_list_networks(self) -> list[Record] | Fault:
        return self._call("ListNetworks")

    def priv_list_templates(self) -> list[Record] | Fault:
        return self._call("ListTemplates")

    def priv_list_transport_networks_in_current_org(self) -> list[Record] | Fault:
        return self._call("ListTransportNetworksInCurrentOrg")

    def priv_list_users(self) -> list[Record] | Fault:
        return self._call("ListUsers")

    def priv_machine_upgrade_virtual_hardware(self, machine_id: int) -> None | Fault:
        return self._call("MachineUpgradeVirtualHardware", machineId=machine_id)

    def priv_network_interface_create(
        self,
        vm_id: int,
        network_id: int,
        ip_assignment_type: str,
        ip_address: str | None = None,
    ) -> int | Fault:
        return self._call(
            "NetworkInterfaceCreate",
            vmID=vm_id,
            networkID=network_id,
            IPAssignmentType=ip_assignment_type,
            IPAddress=ip_address,
        )

    def priv_network_interface_delete(self, vm_id: int, nic_id: int) -> None | Fault:
        return self._call("NetworkInterfaceDelete", vmID=vm_id, nicID=nic_id)

    def priv_network_interface_modify(self, vm_id: int, net_info: Mapping[str, object]) -> None | Fault:
        return self._call("NetworkInterfaceModify", vmID=vm_id, netInfo=dict(net_info))

    def priv_storage_server_vmfs_find_by_name(self, name: str) -> str | None | Fault:
        """Return the label of the VMFS datastore called name."""

        return self._call("StorageServerVMFSFindByName", name=name)

    def priv_template_change_owner(self, template_id: int, new_owner_id: int) -> None | Fault:
        return self._call("TemplateChangeOwner", templateId=template_id, newOwnerId=new_owner_id)

    def priv_template_export(self, template_id: int, unc_path: str, username: str, password: str) -> None | Fault:
        return self._call(
            "TemplateExport",
            template_id=template_id,
            uncPath=unc_path,
            username=username,
            password=password,
        )

    def priv_template_import(
        self,
        unc_path: str,
        dir_username: str,
        dir_password: str,
        name: str,
        description: str,
        vs_type_id: int,
        storage_server_name: str,
        parameters: Mapping[str, object] | None = None,
    ) -> int | Fault:
        return self._call(
            "TemplateImport",
            UNCPath=unc_path,
            dirUsername=dir_username,
            dirPassword=dir_password,
            name=name,
            description=description,
            VSTypeID=vs_type_id,
            storageServerName=storage_server_name,
            parameterList=_vm_parameters(parameters),
        )

    def priv_template_import_from_smb(
        self,
        unc_path: str,
        dir_username: str,
        dir_password: str,
        name: str,
        description: str,
        vs_type_id: int,
        storage_server_name: str,
        perform_guest_customization: bool = True,
        parameters: Mapping[str, object] | None = None,
    ) -> int | Fault:
        """Import a template from an SMB share.

        parameters maps VM parameter names (e.g. VCPUCOUNT, GUESTOS, HW_VERSION) to values.
        """

        return self._call(
            "TemplateImportFromSMB",
            UNCPath=unc_path,
            dirUsername=dir_username,
            dirPassword=dir_password,
            name=name,
            description=description,
            VSTypeID=vs_type_id,
            storageServerName=storage_server_name,
            performGuestCustomization=perform_guest_customization,
            parameterList=_vm_parameters(parameters),
        )

    def priv_template_perform_action(self, template_id: int, action: int) -> None | Fault:
        return self._call("TemplatePerformAction", template_id=template_id, action=action)

    def priv_workspace_create(
        self,
        name: str,
        is_main: bool = False,
        description: str = "",
        stored_vm_quota: int = 0,
        deployed_vm_quota: int = 0,
    ) -> int | Fault:
        return self._call(
            "WorkspaceCreate",
            name=name,
            isMain=is_main,
            description=description,
            storedVMQuota=stored_vm_quota,
            deployedVMQuota=deployed_vm_quota,
        )


def _integer_id(value: object, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise CallerError(f"{name} must contain integers (got {value!r})")
    return value


def _vm_parameters(parameters: Mapping[str, object] | None) -> Record | None:
    if not parameters:
        return None
    return {
        "VMParameter": [
            {"parameter_name": key, "parameter_value": value} for key, value in parameters.items()
        ]
    }
