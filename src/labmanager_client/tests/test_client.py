"""Exercise client calls against mocked SOAP transports.

'why': validate request construction, result shaping, and the fault policy end-to-end
"""
from __future__ import annotations

import xml.etree.ElementTree as ET

import httpx
import pytest

from labmanager_client import CallerError, Fault, LabManager, ServiceFault, TransportError
from labmanager_client._core import TRANSPORT_FAULT_CODE
from labmanager_client._models import SOAP_NAMESPACE

from ._utils import (
    auth_header,
    install_mock_transport,
    raw_response,
    request_args,
    request_call,
    soap_fault,
    soap_success,
    transport_error,
)


NS = f"{{{SOAP_NAMESPACE}}}"


def test_public_call_posts_envelope_with_soap_headers(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    """A public call targets LabManager.asmx with a quoted SOAPAction and the auth header.

    'why': the service dispatches on SOAPAction and authenticates from the header
    """

    capture = soap_success("ConfigurationCapture", "77")
    install_mock_transport(monkeypatch, capture)

    # Given a configured client
    # When a public operation is invoked
    result = client.configuration_capture(12, "golden")

    # Then the request matches the wire contract and the id is decoded
    assert result == 77
    assert len(capture.requests) == 1
    request = capture.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://labmanager.example.com/LabManager/SOAP/LabManager.asmx"
    assert request.headers["SOAPAction"] == '"http://vmware.com/labmanager/ConfigurationCapture"'
    assert request.headers["Content-Type"].startswith("text/xml")
    assert auth_header(request) == {
        "username": "alice",
        "password": "s3cret&pw",
        "organizationname": "Global",
        "workspacename": "Main",
    }
    assert request_args(request) == [("configurationId", "12"), ("newLibraryName", "golden")]


def test_internal_call_targets_internal_endpoint(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    capture = soap_success("ListUsers", "<User><userid>1</userid><username>alice</username></User>")
    install_mock_transport(monkeypatch, capture)

    users = client.priv_list_users()

    assert users == [{"userid": "1", "username": "alice"}]
    assert capture.requests[0].url.path == "/LabManager/SOAP/LabManagerInternal.asmx"


def test_list_results_are_always_lists(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    """A single configuration and an empty result both come back as lists."""

    install_mock_transport(monkeypatch, soap_success("ListConfigurations", "<Configuration><id>4</id></Configuration>"))
    assert client.list_configurations(1) == [{"id": "4"}]

    install_mock_transport(monkeypatch, soap_success("ListConfigurations", ""))
    assert client.list_configurations(2) == []


def test_reinstalled_transport_answers_later_calls(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    """Installing a second transport in one test routes later calls to it alone."""

    first = soap_success("ListMachines", "<Machine><id>1</id></Machine>")
    second = soap_success("ListMachines", "<Machine><id>2</id></Machine><Machine><id>3</id></Machine>")

    # Given a transport replaced between two calls
    install_mock_transport(monkeypatch, first)
    before = client.list_machines(7)
    install_mock_transport(monkeypatch, second)
    after = client.list_machines(7)

    # Then each call saw only the transport installed at the time
    assert before == [{"id": "1"}]
    assert after == [{"id": "2"}, {"id": "3"}]
    assert len(first.requests) == 1
    assert len(second.requests) == 1


def test_invalid_list_selector_raises_without_traffic(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    capture = soap_success("ListConfigurations", "")
    install_mock_transport(monkeypatch, capture)

    # Given a configuration type outside {1, 2}
    # When the list call is attempted
    with pytest.raises(CallerError):
        _ = client.list_configurations(3)

    # Then nothing was sent
    assert capture.requests == []


def test_caller_error_raises_even_when_fail_fast_is_off(
    lenient_client: LabManager, monkeypatch: pytest.MonkeyPatch
) -> None:
    capture = soap_success("ConfigurationDeploy")
    install_mock_transport(monkeypatch, capture)

    with pytest.raises(CallerError):
        _ = lenient_client.configuration_deploy(1, fence_mode=9)

    assert capture.requests == []
    assert lenient_client.get_last_error() is None


def test_fail_fast_raises_service_fault(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    """Fail-fast clients raise with the service fault string in the message."""

    install_mock_transport(monkeypatch, soap_fault("Configuration 99 does not exist"))

    with pytest.raises(ServiceFault) as exc:
        _ = client.get_configuration(99)

    assert "Configuration 99 does not exist" in str(exc.value)
    assert exc.value.fault.operation == "GetConfiguration"
    assert client.get_last_error() is None


def test_lenient_client_returns_fault_and_records_it(
    lenient_client: LabManager, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Without fail-fast the fault is returned and kept as the last error.

    'why': scripts that poll many objects check get_last_error instead of catching
    """

    install_mock_transport(
        monkeypatch,
        soap_fault(detail_xml="<message><format>Storage lease expired</format></message>"),
    )

    # Given a lenient client and a fault with an empty faultstring
    # When an operation fails
    result = lenient_client.configuration_undeploy(5)

    # Then the Fault comes back and the detail message is used
    assert isinstance(result, Fault)
    assert result.message == "Storage lease expired"
    assert lenient_client.last_fault is result
    last_error = lenient_client.get_last_error()
    assert last_error is not None
    assert last_error == "LabManager SOAP error: soap:Server: Storage lease expired"


def test_fail_fast_propagates_transport_errors(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    install_mock_transport(monkeypatch, transport_error(httpx.ConnectError("connection refused")))

    with pytest.raises(TransportError) as exc:
        _ = client.get_machine(3)

    assert exc.value.url == "https://labmanager.example.com/LabManager/SOAP/LabManager.asmx"
    assert "could not reach" in str(exc.value)


def test_timeout_is_reported_as_transport_error(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    install_mock_transport(monkeypatch, transport_error(httpx.ReadTimeout("read timed out")))

    with pytest.raises(TransportError) as exc:
        _ = client.get_machine(3)

    assert "timed out after 5s" in str(exc.value)


def test_lenient_client_returns_transport_fault(lenient_client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    install_mock_transport(monkeypatch, transport_error(httpx.ConnectError("connection refused")))

    result = lenient_client.get_machine(3)

    assert isinstance(result, Fault)
    assert result.code == TRANSPORT_FAULT_CODE
    assert result.operation == "GetMachine"
    assert lenient_client.get_last_error() is not None


def test_non_soap_error_page_is_a_transport_error(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    install_mock_transport(
        monkeypatch,
        raw_response(b"<html><body>502 Bad Gateway</body></html>", status_code=502, content_type="text/html"),
    )

    with pytest.raises(TransportError) as exc:
        _ = client.list_machines(1)

    assert "HTTP 502" in str(exc.value)
    assert "Bad Gateway" in str(exc.value)


def test_configure_changes_apply_to_next_call(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    """Credential changes made through configure() reach the very next request."""

    capture = soap_success("GetWorkspaceByName", "<id>3</id><name>QA</name>")
    install_mock_transport(monkeypatch, capture)

    # Given a client switched to another organization and workspace
    _ = client.configure(organization="Engineering", workspace="QA")

    # When a call is made
    workspace = client.priv_get_workspace_by_name("QA")

    # Then the header carries the new context
    assert workspace == {"id": "3", "name": "QA"}
    header = auth_header(capture.requests[0])
    assert header["organizationname"] == "Engineering"
    assert header["workspacename"] == "QA"


def test_generic_call_accepts_positional_wire_order(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    capture = soap_success("MachinePerformAction")
    install_mock_transport(monkeypatch, capture)

    result = client.call("MachinePerformAction", 41, 8)

    assert result is None
    assert request_args(capture.requests[0]) == [("machineId", "41"), ("action", "8")]


def test_generic_call_rejects_unknown_operation(client: LabManager) -> None:
    with pytest.raises(CallerError):
        _ = client.call("ReticulateSplines")


def test_deploy_ex2_builds_fence_network_options(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    capture = soap_success("ConfigurationDeployEx2")
    install_mock_transport(monkeypatch, capture)

    _ = client.priv_configuration_deploy_ex2(21, network_id=6, fence_mode="FenceAllowOutOnly")

    call = request_call(capture.requests[0])
    option = call.find(f"{NS}fenceNetworkOptions/{NS}FenceNetworkOption")
    assert option is not None
    assert option.findtext(f"{NS}configuredNetID") == "6"
    assert option.findtext(f"{NS}DeployFenceMode") == "FenceAllowOutOnly"
    assert call.find(f"{NS}bridgeNetworkOptions") is None
    assert call.findtext(f"{NS}isCrossHost") == "true"


def test_deploy_ex2_rejects_unknown_fence_mode(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    capture = soap_success("ConfigurationDeployEx2")
    install_mock_transport(monkeypatch, capture)

    with pytest.raises(CallerError):
        _ = client.priv_configuration_deploy_ex2(21, network_id=6, fence_mode="FenceEverything")

    assert capture.requests == []


def test_configuration_move_sends_vm_ids_as_int_list(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    capture = soap_success("ConfigurationMove", "88")
    install_mock_transport(monkeypatch, capture)

    new_id = client.priv_configuration_move(5, 2, True, "moved", vm_ids=[10, 11])

    assert new_id == 88
    call = request_call(capture.requests[0])
    assert [element.text for element in call.findall(f"{NS}vmIds/{NS}int")] == ["10", "11"]


def test_configuration_copy_wraps_machines(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    capture = soap_success("ConfigurationCopy", "90")
    install_mock_transport(monkeypatch, capture)

    _ = client.priv_configuration_copy(
        4,
        "copy",
        "nightly copy",
        [{"id": 1, "name": "web"}, {"id": 2, "name": "db"}],
        "vmfs-a",
    )

    call = request_call(capture.requests[0])
    copy_data = call.find(f"{NS}configurationCopyData/{NS}VMCopyData")
    assert copy_data is not None
    assert [m.findtext(f"{NS}name") for m in copy_data.findall(f"{NS}machine")] == ["web", "db"]
    assert copy_data.findtext(f"{NS}storageServerName") == "vmfs-a"


def test_template_import_from_smb_sends_vm_parameters(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    capture = soap_success("TemplateImportFromSMB", "301")
    install_mock_transport(monkeypatch, capture)

    template_id = client.priv_template_import_from_smb(
        "\\\\files\\templates\\xp",
        "svc",
        "pw",
        "xp-base",
        "",
        2,
        "vmfs-a",
        parameters={"VCPUCOUNT": "2", "GUESTOS": "WINXPPRO"},
    )

    assert template_id == 301
    call = request_call(capture.requests[0])
    names = [e.findtext(f"{NS}parameter_name") for e in call.findall(f"{NS}parameterList/{NS}VMParameter")]
    assert names == ["VCPUCOUNT", "GUESTOS"]
    assert call.findtext(f"{NS}performGuestCustomization") == "true"


def test_add_machine_sends_empty_net_info_by_default(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    capture = soap_success("ConfigurationAddMachineEx", "55")
    install_mock_transport(monkeypatch, capture)

    _ = client.priv_configuration_add_machine_ex(3, 9, "web02")

    call = request_call(capture.requests[0])
    net_info = call.find(f"{NS}netInfo")
    assert net_info is not None
    assert list(net_info) == []
    assert call.findtext(f"{NS}desc") is not None


def test_storage_server_lookup_returns_label(client: LabManager, monkeypatch: pytest.MonkeyPatch) -> None:
    install_mock_transport(
        monkeypatch,
        soap_success("StorageServerVMFSFindByName", "<id>2</id><label>vmfs-a</label><freeSpace>1024</freeSpace>"),
    )

    assert client.priv_storage_server_vmfs_find_by_name("vmfs-a") == "vmfs-a"


def test_debug_logging_redacts_password(monkeypatch: pytest.MonkeyPatch, package_logs: pytest.LogCaptureFixture) -> None:
    """Debug dumps show the envelope but never the password."""

    install_mock_transport(monkeypatch, soap_success("ListNetworks", ""))
    client = LabManager(
        username="alice",
        password="hunter2",
        hostname="labmanager.example.com",
        organization="Global",
        workspace="Main",
        debug=True,
    )

    _ = client.priv_list_networks()

    messages = [record.getMessage() for record in package_logs.records]
    dumps = [message for message in messages if message.startswith("soap request")]
    assert len(dumps) == 1
    assert "ListNetworks" in dumps[0]
    assert "hunter2" not in "\n".join(messages)
    ET.fromstring(dumps[0].split("envelope=", 1)[1].split("?>", 1)[1])


def test_non_debug_client_does_not_dump_envelopes(
    client: LabManager, monkeypatch: pytest.MonkeyPatch, package_logs: pytest.LogCaptureFixture
) -> None:
    install_mock_transport(monkeypatch, soap_success("ListNetworks", ""))

    _ = client.priv_list_networks()

    assert not any(record.getMessage().startswith("soap request") for record in package_logs.records)
