# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Module containing the firewall port models exchanged with Lightsail."""

from dataclasses import dataclass
from typing import Any, Mapping

PROTOCOLS = ("tcp", "all", "udp", "icmp", "icmpv6")
# Protocols for which from_port and to_port are a real port range. For ICMP they hold the ICMP
# type and code instead.
RANGED_PROTOCOLS = ("tcp", "all", "udp")
MIN_PORT = -1
MAX_PORT = 65535

PortInfoDict = dict[str, Any]


def _str_tuple(values: Any) -> tuple[str, ...]:
    """Convert an optional list of strings from the API into a tuple."""
    if values is None:
        return ()
    if not isinstance(values, (list, tuple)) or not all(
        isinstance(value, str) for value in values
    ):
        raise ValueError(f"Expected a list of strings, got {values!r}")
    return tuple(values)


@dataclass(frozen=True)
class PortState:
    """Snapshot of one port range currently known to Lightsail.

    Attributes:
        from_port: The first port of the range (ICMP type for ICMP rules).
        to_port: The last port of the range (ICMP code for ICMP rules).
        protocol: The IP protocol of the range.
        cidrs: The IPv4 CIDRs allowed to connect.
        ipv6_cidrs: The IPv6 CIDRs allowed to connect.
        cidr_list_aliases: The Lightsail aliases allowed to connect, e.g. lightsail-connect.
        state: Whether the port range is open or closed.
    """

    from_port: int
    to_port: int
    protocol: str
    cidrs: tuple[str, ...] = ()
    ipv6_cidrs: tuple[str, ...] = ()
    cidr_list_aliases: tuple[str, ...] = ()
    state: str | None = None

    @classmethod
    def from_lightsail(cls, port_state: Mapping[str, Any]) -> "PortState":
        """Construct the object from an entry of the GetInstancePortStates response.

        Args:
            port_state: The InstancePortState dictionary returned by boto3.

        Raises:
            ValueError: If the entry is missing a field or has a field of the wrong type.

        Returns:
            The PortState.
        """
        try:
            from_port = port_state["fromPort"]
            to_port = port_state["toPort"]
            protocol = port_state["protocol"]
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Incomplete port state: {port_state!r}") from exc
        if not isinstance(from_port, int) or not isinstance(to_port, int):
            raise ValueError(f"Port numbers must be integers: {port_state!r}")
        if not isinstance(protocol, str):
            raise ValueError(f"Protocol must be a string: {port_state!r}")
        state = port_state.get("state")
        if state is not None and not isinstance(state, str):
            raise ValueError(f"State must be a string: {port_state!r}")
        return cls(
            from_port=from_port,
            to_port=to_port,
            protocol=protocol,
            cidrs=_str_tuple(port_state.get("cidrs")),
            ipv6_cidrs=_str_tuple(port_state.get("ipv6Cidrs")),
            cidr_list_aliases=_str_tuple(port_state.get("cidrListAliases")),
            state=state,
        )


@dataclass(frozen=True)
class PortRule:
    """A port range of the replacement rule set submitted to Lightsail.

    Attributes:
        from_port: The first port of the range.
        to_port: The last port of the range.
        protocol: The IP protocol of the range.
        cidrs: The IPv4 CIDRs to allow.
        ipv6_cidrs: The IPv6 CIDRs to allow.
        cidr_list_aliases: The Lightsail aliases to allow.
    """

    from_port: int
    to_port: int
    protocol: str
    cidrs: tuple[str, ...] = ()
    ipv6_cidrs: tuple[str, ...] = ()
    cidr_list_aliases: tuple[str, ...] = ()

    @property
    def has_sources(self) -> bool:
        """Whether any source is allowed to connect through the port range."""
        return bool(self.cidrs or self.ipv6_cidrs or self.cidr_list_aliases)

    def validate(self) -> None:
        """Check the rule is acceptable by the PutInstancePublicPorts API.

        Raises:
            ValueError: If the protocol or the port numbers are invalid.
        """
        if self.protocol not in PROTOCOLS:
            raise ValueError(f"Unsupported protocol {self.protocol!r}")
        for port in (self.from_port, self.to_port):
            if not MIN_PORT <= port <= MAX_PORT:
                raise ValueError(f"Port {port} out of range {MIN_PORT}-{MAX_PORT}")
        if self.protocol in RANGED_PROTOCOLS and self.from_port > self.to_port:
            raise ValueError(f"Invalid port range {self.from_port}-{self.to_port}")

    def to_port_info(self) -> PortInfoDict:
        """Convert the rule into a PortInfo dictionary for boto3.

        Empty source lists are left out of the dictionary.

        Returns:
            The PortInfo dictionary.
        """
        port_info: PortInfoDict = {
            "fromPort": self.from_port,
            "toPort": self.to_port,
            "protocol": self.protocol,
        }
        if self.cidrs:
            port_info["cidrs"] = list(self.cidrs)
        if self.ipv6_cidrs:
            port_info["ipv6Cidrs"] = list(self.ipv6_cidrs)
        if self.cidr_list_aliases:
            port_info["cidrListAliases"] = list(self.cidr_list_aliases)
        return port_info
