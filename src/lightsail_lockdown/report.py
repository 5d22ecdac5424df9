# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Human-readable report of the firewall rules."""

from typing import Sequence

from lightsail_lockdown.configuration import CLEAR_TOKEN
from lightsail_lockdown.models import PortRule, PortState

UNCHANGED = "unchanged"


def describe_cidr(cidr: str | None) -> str:
    """Describe a desired CIDR for the report.

    Args:
        cidr: The desired CIDR of the configuration.

    Returns:
        The CIDR, "none" if the family is cleared or "unchanged" if it is left untouched.
    """
    if cidr is None:
        return UNCHANGED
    return cidr or CLEAR_TOKEN


def _format_list(values: Sequence[str]) -> str:
    return "[" + " ".join(values) + "]"


def format_port(port: PortState | PortRule) -> str:
    """Format one port range as a report line.

    Args:
        port: The current port state or the intended port rule.

    Returns:
        The line, e.g. "    80-80    tcp [203.0.113.0/24] [2001:db8::/32]".
    """
    line = (
        f" {port.from_port:5d}-{port.to_port:<5d} {port.protocol} "
        f"{_format_list(port.cidrs)} {_format_list(port.ipv6_cidrs)}"
    )
    if port.cidr_list_aliases:
        line += f" {_format_list(port.cidr_list_aliases)}"
    return line


def format_ports(ports: Sequence[PortState] | Sequence[PortRule]) -> list[str]:
    """Format port ranges as report lines.

    Args:
        ports: The port states or port rules.

    Returns:
        One line per port range, or a single line saying no port is open.
    """
    if not ports:
        return ["  (no open ports)"]
    return [format_port(port) for port in ports]
