"""
src/solaris_kitchen/kitchen_manager.py

Idempotent provisioning of the kitchen sandbox on a Solaris host:

1. create_network: etherstub, VNIC over it, gateway address on the VNIC
2. configure_nat: ipnat rules, IPv4 forwarding, ipfilter service
3. configure_dhcpd: dhcpd4.conf from live DNS facts, listen interface, DHCP service
4. create_template_zone: zone profile, sysconfig manifest, zone install

Every step detects existing state and skips itself, so re-running after a
failure resumes where the previous run stopped. The first failing stage
aborts the run; earlier stages are left in place.

Host network and service state is mutated without locking. Concurrent runs
against the same host are not supported.

Usage:
    from solaris_kitchen.kitchen_manager import KitchenProvisioner

    result = KitchenProvisioner().provision()
"""

import logging
from pathlib import Path
from typing import List, Optional

from .command_runner import CommandRunner
from .config import build_topology, build_zone_template, load_kitchen_config
from .facts import FactProvider
from .file_materializer import FileMaterializer
from .kitchen_models import (
    CommandSpec,
    FileSpec,
    KitchenError,
    NetworkTopology,
    PropertySpec,
    ProvisioningStep,
    ProvisionResult,
    ProvisionStatus,
    ServiceSpec,
    Stage,
    StepOutcome,
    ZoneTemplate,
)
from .service_controller import ServiceController
from .templates import (
    DHCPD_CONF_PATH,
    IPNAT_CONF_PATH,
    render_dhcpd_conf,
    render_ipnat_conf,
    render_sysconfig_manifest,
    render_zone_profile,
)

logger = logging.getLogger(__name__)

IPFILTER_SERVICE = "svc:/network/ipfilter:default"
DHCP_SERVICE = "svc:/network/dhcp/server:ipv4"
DHCP_LISTEN_PROPERTY = f"{DHCP_SERVICE}#config/listen_ifnames"


class KitchenProvisioner:
    """Provisions the kitchen network and template zone."""

    def __init__(
        self,
        topology: Optional[NetworkTopology] = None,
        zone: Optional[ZoneTemplate] = None,
        runner: Optional[CommandRunner] = None,
        materializer: Optional[FileMaterializer] = None,
        services: Optional[ServiceController] = None,
        facts: Optional[FactProvider] = None,
    ) -> None:
        self.topology = topology or NetworkTopology()
        self.zone = zone or ZoneTemplate()
        self.runner = runner or CommandRunner()
        self.materializer = materializer or FileMaterializer()
        self.services = services or ServiceController(self.runner)
        self.facts = facts or FactProvider()

        self._dry_run = False
        self._outcomes: List[StepOutcome] = []

    # === STEP BUILDERS ===

    def _command_step(self, spec: CommandSpec) -> ProvisioningStep:
        return ProvisioningStep(
            name=spec.command,
            apply=lambda: self.runner.execute(spec),
            is_satisfied=lambda: self.runner.is_satisfied(spec),
        )

    def _file_step(self, spec: FileSpec) -> ProvisioningStep:
        return ProvisioningStep(
            name=f"file {spec.path}",
            apply=lambda: self.materializer.replace(spec),
            is_satisfied=lambda: self.materializer.is_converged(spec),
        )

    def _enable_step(self, spec: ServiceSpec) -> ProvisioningStep:
        return ProvisioningStep(
            name=f"enable {spec.fmri}",
            apply=lambda: self.services.enable(spec.fmri),
            is_satisfied=lambda: self.services.is_enabled(spec.fmri),
        )

    def _property_step(self, spec: PropertySpec) -> ProvisioningStep:
        return ProvisioningStep(
            name=f"setprop {spec.identifier}={spec.value}",
            apply=lambda: self.services.set_property(spec),
        )

    def _converge(self, stage: Stage, steps: List[ProvisioningStep]) -> None:
        for step in steps:
            if self._dry_run:
                changed = step.needs_apply()
            else:
                changed = step.converge()

            if changed:
                verb = "would apply" if self._dry_run else "applied"
                logger.info(f"[{stage.value}] {verb}: {step.name}")
            else:
                logger.debug(f"[{stage.value}] up to date: {step.name}")
            self._outcomes.append(StepOutcome(stage=stage, step=step.name, changed=changed))

    # === STAGES ===

    def create_network(self) -> None:
        """Create the etherstub, the VNIC over it and the gateway address."""
        t = self.topology
        self._converge(Stage.CREATE_NETWORK, [
            self._command_step(CommandSpec(
                f"dladm create-etherstub {t.etherstub}",
                check_command=f"dladm show-etherstub {t.etherstub}",
            )),
            self._command_step(CommandSpec(
                f"dladm create-vnic -l {t.etherstub} {t.vnic}",
                check_command=f"dladm show-link {t.vnic}",
            )),
            self._command_step(CommandSpec(
                f"ipadm create-ip {t.vnic} && ipadm create-addr -T static -a {t.gateway} {t.address_object}",
                check_command=f"ipadm show-addr {t.vnic}",
            )),
        ])

    def configure_nat(self) -> None:
        """Write NAT rules, turn on IPv4 forwarding and enable ipfilter."""
        self._converge(Stage.CONFIGURE_NAT, [
            self._file_step(FileSpec(IPNAT_CONF_PATH, render_ipnat_conf(self.topology))),
            # No cheap check exists; setting forwarding=on again is harmless
            self._command_step(CommandSpec("ipadm set-prop -p forwarding=on ipv4")),
            self._enable_step(ServiceSpec(IPFILTER_SERVICE)),
        ])

    def configure_dhcpd(self) -> None:
        """Write dhcpd4.conf, bind the DHCP server to the VNIC and enable it."""
        content = render_dhcpd_conf(
            self.topology,
            domain=self.facts.domain_name(),
            name_servers=self.facts.name_servers(),
        )
        self._converge(Stage.CONFIGURE_DHCPD, [
            self._file_step(FileSpec(DHCPD_CONF_PATH, content)),
            self._property_step(PropertySpec.parse(DHCP_LISTEN_PROPERTY, self.topology.vnic)),
            self._enable_step(ServiceSpec(DHCP_SERVICE)),
        ])

    def create_template_zone(self) -> None:
        """Write the zone profile and manifest, then configure and install the zone."""
        z = self.zone
        install = (
            f"zonecfg -z {z.name} -f {z.profile_path}"
            f" && zoneadm -z {z.name} install -c {z.manifest_path}"
        )
        self._converge(Stage.CREATE_TEMPLATE_ZONE, [
            self._file_step(FileSpec(z.profile_path, render_zone_profile(z, self.topology))),
            self._file_step(FileSpec(z.manifest_path, render_sysconfig_manifest(z))),
            self._command_step(CommandSpec(
                install,
                guard_path=str(self.materializer.resolve(z.zonepath)),
                live_stream=True,
            )),
        ])

    # === ENTRY POINTS ===

    def provision(self, dry_run: bool = False) -> ProvisionResult:
        """
        Run all stages in order, stopping at the first failure.

        Args:
            dry_run: Only evaluate each step's guard and report what would change

        Returns:
            ProvisionResult with per-step outcomes, and the failing stage on error
        """
        logger.info(f"Provisioning kitchen (dry_run={dry_run})")
        self._dry_run = dry_run
        self._outcomes = []

        for stage in Stage:
            logger.info(f"Stage {stage.value}")
            try:
                getattr(self, stage.value)()
            except KitchenError as e:
                logger.error(f"Stage {stage.value} failed: {e}")
                return ProvisionResult(
                    status=ProvisionStatus.FAILED,
                    outcomes=list(self._outcomes),
                    failed_stage=stage,
                    error=e,
                    dry_run=dry_run,
                )

        result = ProvisionResult(
            status=ProvisionStatus.SUCCEEDED, outcomes=list(self._outcomes), dry_run=dry_run
        )
        logger.info(f"Kitchen provisioned: {result.changed} changed, {result.skipped} up to date")
        return result

    def plan(self) -> ProvisionResult:
        """Report which steps would change the host without applying them."""
        return self.provision(dry_run=True)


def provision(
    config_path: Optional[Path] = None,
    root: Optional[Path] = None,
    resolv_conf: Optional[Path] = None,
    domain: Optional[str] = None,
    dry_run: bool = False,
) -> ProvisionResult:
    """
    Provision the kitchen from configuration.

    This is the main idempotent entry point - safe to run multiple times.
    """
    config = load_kitchen_config(config_path)
    provisioner = KitchenProvisioner(
        topology=build_topology(config),
        zone=build_zone_template(config),
        materializer=FileMaterializer(root),
        facts=FactProvider(resolv_conf=resolv_conf, domain=domain),
    )
    return provisioner.provision(dry_run=dry_run)
