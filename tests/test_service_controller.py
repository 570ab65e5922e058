"""Tests for service_controller module."""

from unittest import mock

import pytest

from solaris_kitchen.command_runner import CommandRunner
from solaris_kitchen.kitchen_models import CommandError, CommandResult, PropertySpec, ServiceError
from solaris_kitchen.service_controller import ServiceController

DHCP = "svc:/network/dhcp/server:ipv4"


@pytest.fixture
def runner():
    return mock.MagicMock(spec=CommandRunner)


@pytest.fixture
def services(runner):
    return ServiceController(runner)


def _enabled(value):
    return CommandResult(command="svcprop", exit_code=0, output=f"{value}\n")


def test_is_enabled_true(services, runner):
    runner.capture.return_value = _enabled("true")

    assert services.is_enabled(DHCP) is True
    runner.capture.assert_called_once_with(f"svcprop -p general/enabled {DHCP}")


def test_is_enabled_false(services, runner):
    runner.capture.return_value = _enabled("false")

    assert services.is_enabled(DHCP) is False


def test_is_enabled_query_failure(services, runner):
    """Test an unknown service is treated as not enabled."""
    runner.capture.return_value = CommandResult(command="svcprop", exit_code=1, output="doesn't match")

    assert services.is_enabled(DHCP) is False


def test_enable_disabled_service(services, runner):
    """Test a disabled service is enabled with svcadm."""
    runner.capture.return_value = _enabled("false")

    assert services.enable(DHCP) is True

    spec = runner.execute.call_args[0][0]
    assert spec.command == f"svcadm enable -s {DHCP}"


def test_enable_already_enabled_is_noop(services, runner):
    """Test enabling an enabled service issues no command."""
    runner.capture.return_value = _enabled("true")

    assert services.enable(DHCP) is False
    runner.execute.assert_not_called()


def test_enable_failure_raises_service_error(services, runner):
    runner.capture.return_value = _enabled("false")
    runner.execute.side_effect = CommandError(f"svcadm enable -s {DHCP}", 1, "svcadm: Pattern doesn't match")

    with pytest.raises(ServiceError) as excinfo:
        services.enable(DHCP)

    assert excinfo.value.fmri == DHCP
    assert "doesn't match" in str(excinfo.value)


def test_set_property_always_applies(services, runner):
    """Test the property is written and the instance refreshed on every call."""
    spec = PropertySpec.parse(f"{DHCP}#config/listen_ifnames", "vnic0")

    services.set_property(spec)
    services.set_property(spec)

    commands = [c[0][0].command for c in runner.execute.call_args_list]
    assert commands == [
        f"svccfg -s {DHCP} setprop config/listen_ifnames = astring: vnic0",
        f"svcadm refresh {DHCP}",
    ] * 2
    runner.capture.assert_not_called()


def test_set_property_quotes_value(services, runner):
    spec = PropertySpec(DHCP, "config/listen_ifnames", "vnic0 vnic1")

    services.set_property(spec)

    assert runner.execute.call_args_list[0][0][0].command.endswith("astring: 'vnic0 vnic1'")


def test_set_property_failure(services, runner):
    runner.execute.side_effect = CommandError("svccfg", 1, "svccfg: Property group config not found")

    with pytest.raises(ServiceError, match="config not found"):
        services.set_property(PropertySpec(DHCP, "config/listen_ifnames", "vnic0"))
