"""Generated configuration file content for the kitchen network and zone."""

from typing import Sequence

from .kitchen_models import NetworkTopology, ZoneTemplate

IPNAT_CONF_PATH = "/etc/ipf/ipnat.conf"
DHCPD_CONF_PATH = "/etc/inet/dhcpd4.conf"

IPNAT_CONF = "map {external_link} {network} -> 0/32 portmap tcp/udp auto\n"

DHCPD_NAME_SERVERS = "option domain-name-servers {name_servers};\n"

DHCPD_CONF = """\
option domain-name "{domain}";
{name_servers_line}
default-lease-time 86400;

max-lease-time -1;

log-facility local7;

subnet {subnet} netmask {netmask} {{
    range {pool_start} {pool_end};
    option routers {router};
    option broadcast-address {broadcast};
}}
"""

ZONE_PROFILE = """\
create -b
set brand={brand}
set zonepath={zonepath}
set autoboot=false
set autoshutdown=shutdown
set ip-type=exclusive
add anet
set linkname={linkname}
set lower-link={lower_link}
set configure-allowed-address=true
set link-protection=mac-nospoof
set mac-address=auto
end
"""

SYSCONFIG_MANIFEST = """\
<?xml version='1.0' encoding='UTF-8'?>
<!DOCTYPE service_bundle SYSTEM "/usr/share/lib/xml/dtd/service_bundle.dtd.1">
<!-- Auto-generated by sysconfig -->
<service_bundle type="profile" name="sysconfig">
  <service version="1" type="service" name="system/identity">
    <instance enabled="true" name="node">
      <property_group type="application" name="config">
        <propval type="astring" name="nodename" value="{hostname}"/>
      </property_group>
    </instance>
  </service>
  <service version="1" type="service" name="network/physical">
    <instance enabled="true" name="default">
      <property_group type="application" name="netcfg">
        <propval type="astring" name="active_ncp" value="Automatic"/>
      </property_group>
    </instance>
  </service>
  <service version="1" type="service" name="system/name-service/switch">
    <property_group type="application" name="config">
      <propval type="astring" name="default" value="{name_service}"/>
    </property_group>
    <instance enabled="true" name="default"/>
  </service>
  <service version="1" type="service" name="system/name-service/cache">
    <instance enabled="true" name="default"/>
  </service>
  <service version="1" type="service" name="system/environment">
    <instance enabled="true" name="init">
      <property_group type="application" name="environment">
        <propval type="astring" name="LANG" value="{locale}"/>
      </property_group>
    </instance>
  </service>
  <service version="1" type="service" name="system/timezone">
    <instance enabled="true" name="default">
      <property_group type="application" name="timezone">
        <propval type="astring" name="localtime" value="{timezone}"/>
      </property_group>
    </instance>
  </service>
  <service version="1" type="service" name="system/config-user">
    <instance enabled="true" name="default">
      <property_group type="application" name="root_account">
        <propval type="astring" name="type" value="role"/>
        <propval type="astring" name="login" value="root"/>
        <propval type="astring" name="password" value=""/>
      </property_group>
    </instance>
  </service>
</service_bundle>
"""


def render_ipnat_conf(topology: NetworkTopology) -> str:
    return IPNAT_CONF.format(external_link=topology.external_link, network=topology.network)


def render_dhcpd_conf(topology: NetworkTopology, domain: str, name_servers: Sequence[str]) -> str:
    """Render dhcpd4.conf for the kitchen subnet.

    The domain-name-servers option is omitted when there are no resolvers.
    This departs from the historical output, which wrote
    ``option domain-name-servers ;`` and left dhcpd unable to start.
    """
    name_servers_line = ""
    if name_servers:
        name_servers_line = DHCPD_NAME_SERVERS.format(name_servers=" ".join(name_servers))

    return DHCPD_CONF.format(
        domain=domain,
        name_servers_line=name_servers_line,
        subnet=topology.subnet,
        netmask=topology.netmask,
        pool_start=topology.pool_start,
        pool_end=topology.pool_end,
        router=topology.router,
        broadcast=topology.broadcast,
    )


def render_zone_profile(zone: ZoneTemplate, topology: NetworkTopology) -> str:
    return ZONE_PROFILE.format(
        brand=zone.brand,
        zonepath=zone.zonepath,
        linkname=zone.linkname,
        lower_link=topology.etherstub,
    )


def render_sysconfig_manifest(zone: ZoneTemplate) -> str:
    return SYSCONFIG_MANIFEST.format(
        hostname=zone.hostname,
        name_service=zone.name_service,
        locale=zone.locale,
        timezone=zone.timezone,
    )
