"""Live system facts used to generate configuration content."""

import ipaddress
import logging
import socket
from pathlib import Path
from typing import List, Optional

from .kitchen_models import FactError

logger = logging.getLogger(__name__)

DEFAULT_DOMAIN = "local"
DEFAULT_RESOLV_CONF = Path("/etc/resolv.conf")


class FactProvider:
    """Resolves the host's domain name and DNS resolver addresses."""

    def __init__(self, resolv_conf: Optional[Path] = None, domain: Optional[str] = None):
        """
        Initialize the provider.

        Args:
            resolv_conf: Resolver configuration file to read
            domain: Explicit domain name, overriding the host's FQDN
        """
        self.resolv_conf = Path(resolv_conf) if resolv_conf else DEFAULT_RESOLV_CONF
        self._domain = domain

    def domain_name(self) -> str:
        """Return the host's domain name, or ``"local"`` when it has none."""
        if self._domain:
            return self._domain

        fqdn = socket.getfqdn()
        _, _, domain = fqdn.partition(".")
        if domain:
            logger.debug(f"Domain {domain!r} from FQDN {fqdn!r}")
            return domain

        logger.debug(f"FQDN {fqdn!r} has no domain, using {DEFAULT_DOMAIN!r}")
        return DEFAULT_DOMAIN

    def name_servers(self) -> List[str]:
        """
        Return configured DNS resolver addresses in file order.

        Raises:
            FactError: If the resolver configuration cannot be read
        """
        try:
            content = self.resolv_conf.read_text(errors="replace")
        except OSError as e:
            raise FactError(f"Failed to read resolver configuration {self.resolv_conf}: {e}") from e

        return parse_name_servers(content)


def parse_name_servers(content: str) -> List[str]:
    """Extract nameserver addresses from resolv.conf content.

    >>> parse_name_servers("# local\\nnameserver 10.0.0.1\\nsearch example.com\\nnameserver 10.0.0.2 ; backup\\n")
    ['10.0.0.1', '10.0.0.2']
    """
    servers: List[str] = []

    for line in content.splitlines():
        line = line.split("#", 1)[0].split(";", 1)[0].strip()
        if not line:
            continue

        keyword, *args = line.split()
        if keyword != "nameserver":
            continue

        for arg in args:
            try:
                address = str(ipaddress.ip_address(arg))
            except ValueError:
                logger.warning(f"Ignoring invalid nameserver address {arg!r}")
                continue
            if address not in servers:
                servers.append(address)

    return servers
