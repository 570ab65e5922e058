"""Shared test fixtures and configuration for kitchen tests."""

import shlex
from pathlib import Path
from typing import Dict, List, Set

import pytest

from solaris_kitchen.command_runner import CommandRunner
from solaris_kitchen.facts import FactProvider
from solaris_kitchen.file_materializer import FileMaterializer
from solaris_kitchen.kitchen_manager import KitchenProvisioner
from solaris_kitchen.kitchen_models import CommandError, CommandResult, CommandSpec


class FakeHost(CommandRunner):
    """Command runner that simulates dladm, ipadm, SMF and zone state.

    Guard logic is inherited from CommandRunner, only process execution is
    replaced.
    """

    def __init__(self, root: Path):
        super().__init__()
        self.root = root
        self.etherstubs: Set[str] = set()
        self.links: Set[str] = set()
        self.addresses: Set[str] = set()
        self.enabled: Set[str] = set()
        self.properties: Dict[str, str] = {}
        self.forwarding = False
        self.zones: Set[str] = set()

        self.queries: List[str] = []
        self.executed: List[CommandSpec] = []
        self.fail_on: List[str] = []

    @property
    def executed_commands(self) -> List[str]:
        return [spec.command for spec in self.executed]

    def capture(self, command: str) -> CommandResult:
        self.queries.append(command)
        args = shlex.split(command)

        if args[:2] == ["dladm", "show-etherstub"]:
            return self._status(command, args[2] in self.etherstubs)
        if args[:2] == ["dladm", "show-link"]:
            return self._status(command, args[2] in self.links or args[2] in self.etherstubs)
        if args[:2] == ["ipadm", "show-addr"]:
            return self._status(command, args[2] in self.addresses)
        if args[:3] == ["svcprop", "-p", "general/enabled"]:
            value = "true" if args[3] in self.enabled else "false"
            return CommandResult(command=command, exit_code=0, output=f"{value}\n")

        return CommandResult(command=command, exit_code=1, output=f"unknown command: {command}")

    def execute(self, spec: CommandSpec) -> CommandResult:
        self.executed.append(spec)

        for pattern in self.fail_on:
            if pattern in spec.command:
                raise CommandError(spec.command, 1, "simulated failure")

        for part in spec.command.split("&&"):
            self._apply(shlex.split(part))

        return CommandResult(command=spec.command)

    def _apply(self, args: List[str]) -> None:
        if args[:2] == ["dladm", "create-etherstub"]:
            self.etherstubs.add(args[2])
        elif args[:2] == ["dladm", "create-vnic"]:
            self.links.add(args[-1])
        elif args[:2] == ["ipadm", "create-ip"]:
            self.addresses.add(args[2])
        elif args == ["ipadm", "set-prop", "-p", "forwarding=on", "ipv4"]:
            self.forwarding = True
        elif args[:3] == ["svcadm", "enable", "-s"]:
            self.enabled.add(args[3])
        elif args[:2] == ["svccfg", "-s"]:
            # svccfg -s FMRI setprop NAME = TYPE: VALUE
            self.properties[f"{args[2]}#{args[4]}"] = args[7]
        elif args[:2] == ["zoneadm", "-z"] and args[3] == "install":
            self.zones.add(args[2])
            (self.root / "zones" / args[2]).mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _status(command: str, ok: bool) -> CommandResult:
        return CommandResult(command=command, exit_code=0 if ok else 1)


@pytest.fixture
def kitchen_root(tmp_path):
    """Alternate filesystem root for generated files."""
    root = tmp_path / "root"
    root.mkdir()
    return root


@pytest.fixture
def resolv_conf(tmp_path):
    """Resolver configuration with two name servers."""
    path = tmp_path / "resolv.conf"
    path.write_text("domain example.com\nnameserver 10.0.0.1\nnameserver 10.0.0.2\n")
    return path


@pytest.fixture
def fake_host(kitchen_root):
    return FakeHost(kitchen_root)


@pytest.fixture
def provisioner(fake_host, kitchen_root, resolv_conf):
    """KitchenProvisioner wired to the fake host and a temporary root."""
    return KitchenProvisioner(
        runner=fake_host,
        materializer=FileMaterializer(kitchen_root),
        facts=FactProvider(resolv_conf=resolv_conf, domain="example.com"),
    )
