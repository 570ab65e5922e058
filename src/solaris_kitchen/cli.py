#!/usr/bin/env python3
"""
Kitchen CLI - provision the nested-zone test sandbox on this host.

    kitchen provision            # Converge network, NAT, DHCP and template zone
    kitchen provision --dry-run  # Show which steps would change the host
    kitchen render dhcpd         # Print a generated file
    kitchen facts                # Show the DNS facts used for dhcpd4.conf
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from solaris_kitchen.config import Config, build_topology, build_zone_template, load_kitchen_config
from solaris_kitchen.facts import FactProvider
from solaris_kitchen.kitchen_manager import provision as run_provision
from solaris_kitchen.kitchen_models import KitchenError, ProvisionResult
from solaris_kitchen.templates import (
    render_dhcpd_conf,
    render_ipnat_conf,
    render_sysconfig_manifest,
    render_zone_profile,
)

app = typer.Typer(
    name="kitchen",
    help="Kitchen sandbox provisioning for Solaris zones",
    add_completion=False,
)
console = Console()

logger = logging.getLogger(__name__)


class GeneratedFile(str, Enum):
    ipnat = "ipnat"
    dhcpd = "dhcpd"
    profile = "profile"
    manifest = "manifest"


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, Config.KITCHEN_LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)8s] %(name)s: %(message)s",
    )


def _default_config() -> Optional[Path]:
    return Path(Config.KITCHEN_CONFIG) if Config.KITCHEN_CONFIG else None


def _facts(resolv_conf: Optional[Path], domain: Optional[str]) -> FactProvider:
    return FactProvider(
        resolv_conf=resolv_conf or Path(Config.KITCHEN_RESOLV_CONF),
        domain=domain or Config.KITCHEN_DOMAIN,
    )


def _print_result(result: ProvisionResult) -> None:
    table = Table(title="Kitchen Provisioning" + (" (dry run)" if result.dry_run else ""))
    table.add_column("Stage", style="cyan")
    table.add_column("Step", style="blue")
    table.add_column("Action", style="yellow")

    for outcome in result.outcomes:
        if outcome.changed:
            action = "would apply" if result.dry_run else "applied"
        else:
            action = "up to date"
        table.add_row(outcome.stage.value, outcome.step, action)

    console.print(table)


@app.command("provision")
def provision_command(
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML file overriding the network or zone defaults"
    ),
    root: Optional[Path] = typer.Option(
        None, "--root", help="Write generated files beneath this directory"
    ),
    resolv_conf: Optional[Path] = typer.Option(
        None, "--resolv-conf", help="Resolver configuration to read name servers from"
    ),
    domain: Optional[str] = typer.Option(None, "--domain", help="Domain name handed out by DHCP"),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would be changed without making changes"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log skipped steps too"),
) -> None:
    """Converge the kitchen network, NAT, DHCP server and template zone."""
    _configure_logging(verbose)

    try:
        result = run_provision(
            config_path=config_file or _default_config(),
            root=root or Path(Config.KITCHEN_ROOT),
            resolv_conf=resolv_conf or Path(Config.KITCHEN_RESOLV_CONF),
            domain=domain or Config.KITCHEN_DOMAIN,
            dry_run=dry_run,
        )
    except (KitchenError, FileNotFoundError) as e:
        console.print(f"❌ Invalid configuration: {e}")
        raise typer.Exit(1)

    _print_result(result)

    if not result.succeeded:
        console.print(f"❌ Stage {result.failed_stage.value} failed: {result.error}")
        raise typer.Exit(1)

    if dry_run:
        console.print(f"🔍 {result.changed} steps would change, {result.skipped} up to date")
    else:
        console.print(f"✅ Kitchen ready: {result.changed} changed, {result.skipped} up to date")


@app.command("render")
def render_command(
    which: GeneratedFile = typer.Argument(..., help="Generated file to print"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML overrides file"),
    resolv_conf: Optional[Path] = typer.Option(None, "--resolv-conf", help="Resolver configuration"),
    domain: Optional[str] = typer.Option(None, "--domain", help="Domain name handed out by DHCP"),
) -> None:
    """Print the content a generated file would receive."""
    try:
        config = load_kitchen_config(config_file or _default_config())
        topology = build_topology(config)
        zone = build_zone_template(config)

        if which == GeneratedFile.ipnat:
            content = render_ipnat_conf(topology)
        elif which == GeneratedFile.dhcpd:
            facts = _facts(resolv_conf, domain)
            content = render_dhcpd_conf(topology, facts.domain_name(), facts.name_servers())
        elif which == GeneratedFile.profile:
            content = render_zone_profile(zone, topology)
        else:
            content = render_sysconfig_manifest(zone)
    except (KitchenError, FileNotFoundError) as e:
        console.print(f"❌ {e}")
        raise typer.Exit(1)

    typer.echo(content, nl=False)


@app.command("facts")
def facts_command(
    resolv_conf: Optional[Path] = typer.Option(None, "--resolv-conf", help="Resolver configuration"),
    domain: Optional[str] = typer.Option(None, "--domain", help="Domain name override"),
) -> None:
    """Show the live facts used to generate dhcpd4.conf."""
    facts = _facts(resolv_conf, domain)

    try:
        name_servers = facts.name_servers()
    except KitchenError as e:
        console.print(f"❌ {e}")
        raise typer.Exit(1)

    table = Table(title="Host Facts")
    table.add_column("Fact", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Domain", facts.domain_name())
    table.add_row("Name servers", " ".join(name_servers) or "(none)")
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
