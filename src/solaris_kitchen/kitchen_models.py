"""Data models for kitchen sandbox provisioning."""

import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional


class Stage(Enum):
    """Provisioning stages, in execution order.

    The value is the name of the orchestrator method implementing the stage.
    """

    CREATE_NETWORK = "create_network"
    CONFIGURE_NAT = "configure_nat"
    CONFIGURE_DHCPD = "configure_dhcpd"
    CREATE_TEMPLATE_ZONE = "create_template_zone"


class ProvisionStatus(Enum):
    """Terminal state of a provisioning run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class CommandSpec:
    """A shell command plus its idempotence guard."""

    command: str
    check_command: Optional[str] = None
    guard_path: Optional[str] = None
    live_stream: bool = False


@dataclass(frozen=True)
class CommandResult:
    """Outcome of running (or skipping) a command."""

    command: str
    exit_code: int = 0
    output: str = ""
    skipped: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class FileSpec:
    """Target path and the exact content it must hold."""

    path: str
    content: str
    mode: Optional[int] = None


@dataclass(frozen=True)
class ServiceSpec:
    """An SMF service instance that must be enabled."""

    fmri: str


@dataclass(frozen=True)
class PropertySpec:
    """An SMF property value to converge."""

    fmri: str
    name: str
    value: str
    type: str = "astring"

    @classmethod
    def parse(cls, identifier: str, value: str, type: str = "astring") -> "PropertySpec":
        """Build from the combined ``fmri#group/property`` form.

        >>> PropertySpec.parse("svc:/network/dhcp/server:ipv4#config/listen_ifnames", "vnic0").name
        'config/listen_ifnames'
        """
        fmri, sep, name = identifier.partition("#")
        if not sep or not fmri or not name:
            raise ValueError(f"Property identifier must look like 'fmri#group/name', got {identifier!r}")
        return cls(fmri=fmri, name=name, value=value, type=type)

    @property
    def identifier(self) -> str:
        return f"{self.fmri}#{self.name}"


@dataclass(frozen=True)
class ProvisioningStep:
    """Atomic unit of convergence work.

    ``is_satisfied`` returning True means the effect is already present and
    ``apply`` must not run.
    """

    name: str
    apply: Callable[[], None]
    is_satisfied: Optional[Callable[[], bool]] = None

    def needs_apply(self) -> bool:
        return self.is_satisfied is None or not self.is_satisfied()

    def converge(self) -> bool:
        """Apply the step if needed. Returns True when it mutated the host."""
        if not self.needs_apply():
            return False
        self.apply()
        return True


@dataclass(frozen=True)
class NetworkTopology:
    """Private /24 network that feeds the template zone."""

    etherstub: str = "stub0"
    vnic: str = "vnic0"
    external_link: str = "net0"
    gateway: str = "192.168.0.1/24"
    pool_start: str = "192.168.0.100"
    pool_end: str = "192.168.0.120"

    def __post_init__(self) -> None:
        interface = ipaddress.IPv4Interface(self.gateway)
        for address in (self.pool_start, self.pool_end):
            if ipaddress.IPv4Address(address) not in interface.network:
                raise ValueError(f"DHCP pool address {address} is outside {interface.network}")
        if ipaddress.IPv4Address(self.pool_start) > ipaddress.IPv4Address(self.pool_end):
            raise ValueError(f"DHCP pool start {self.pool_start} is after end {self.pool_end}")

    @property
    def network(self) -> ipaddress.IPv4Network:
        return ipaddress.IPv4Interface(self.gateway).network

    @property
    def router(self) -> str:
        return str(ipaddress.IPv4Interface(self.gateway).ip)

    @property
    def subnet(self) -> str:
        return str(self.network.network_address)

    @property
    def netmask(self) -> str:
        return str(self.network.netmask)

    @property
    def broadcast(self) -> str:
        return str(self.network.broadcast_address)

    @property
    def address_object(self) -> str:
        """ipadm address object name for the gateway address."""
        return f"{self.vnic}/v4"


@dataclass(frozen=True)
class ZoneTemplate:
    """Zone configuration profile and system identity for the template zone."""

    name: str = "template"
    brand: str = "solaris"
    zonepath: str = "/zones/template"
    profile_path: str = "/root/template.profile"
    manifest_path: str = "/root/template.xml"
    hostname: str = "template"
    locale: str = "en_US.UTF-8"
    timezone: str = "UTC"
    name_service: str = "files"
    linkname: str = "net0"


@dataclass(frozen=True)
class StepOutcome:
    """What a single step did during a run."""

    stage: Stage
    step: str
    changed: bool


@dataclass
class ProvisionResult:
    """Result of a provisioning run."""

    status: ProvisionStatus
    outcomes: List[StepOutcome] = field(default_factory=list)
    failed_stage: Optional[Stage] = None
    error: Optional["KitchenError"] = None
    dry_run: bool = False

    @property
    def succeeded(self) -> bool:
        return self.status == ProvisionStatus.SUCCEEDED

    @property
    def changed(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.changed)

    @property
    def skipped(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.changed)


class KitchenError(Exception):
    """Base exception for kitchen provisioning errors."""

    pass


class CommandError(KitchenError):
    """Raised when an apply command exits non-zero."""

    def __init__(self, command: str, exit_code: int, output: str = ""):
        self.command = command
        self.exit_code = exit_code
        self.output = output
        message = f"Command {command!r} exited with status {exit_code}"
        if output.strip():
            message += f": {output.strip()}"
        super().__init__(message)


class FileWriteError(KitchenError):
    """Raised when a target file cannot be materialized."""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to write {path}: {cause}")


class ServiceError(KitchenError):
    """Raised when an SMF enable or property update fails."""

    def __init__(self, fmri: str, detail: str):
        self.fmri = fmri
        self.detail = detail
        super().__init__(f"Service {fmri}: {detail}")


class FactError(KitchenError):
    """Raised when live system facts cannot be resolved."""

    pass


class ConfigurationError(KitchenError):
    """Raised when the kitchen configuration is invalid."""

    pass
