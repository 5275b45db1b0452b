"""
Lookup of well known service names for TCP/UDP ports.
"""
import logging
import socket
from typing import Optional

logger = logging.getLogger(__name__)

WELL_KNOWN_PORT_NAMES = {
    80: "http",
    443: "https",
    8080: "http",
    8443: "https",
    8778: "jolokia",
    9090: "http",
    9779: "prometheus",
}


def port_name(port: int, protocol: str = "tcp") -> Optional[str]:
    """
    Returns the service name for a port.

    For TCP the builtin table wins; other ports are looked up in the IANA
    service registry of the host.

    :param port: Port number.
    :param protocol: ``tcp`` or ``udp``.
    :return: The name, or None if the port has no registered service.
    """
    name = WELL_KNOWN_PORT_NAMES.get(port) if protocol.lower() == "tcp" else None
    if name:
        return name
    try:
        return socket.getservbyport(port, protocol.lower())
    except (OSError, OverflowError) as e:
        logger.warning("Cannot lookup port name for %d/%s: %s", port, protocol, e)
        return None
