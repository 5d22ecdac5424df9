# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Reconcile the firewall of a Lightsail instance with the desired CIDRs.

Lightsail replaces the full rule set of an instance on every update, so a divergence on any port
range leads to the submission of the rules of every port range.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Protocol, Sequence

from lightsail_lockdown.configuration import LockdownConfiguration, canonicalize_cidr
from lightsail_lockdown.errors import ReconcileError
from lightsail_lockdown.models import PortRule, PortState
from lightsail_lockdown.report import describe_cidr, format_ports

logger = logging.getLogger(__name__)


class SupportsPortStates(Protocol):
    """Any service that supports reading and replacing the port rules of an instance."""

    def get_port_states(self, instance: str) -> Sequence[PortState]:
        """Get the current port states of the instance."""
        ...

    def put_port_rules(self, instance: str, rules: Sequence[PortRule]) -> None:
        """Replace all the port rules of the instance."""
        ...


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a reconciliation.

    Attributes:
        update_required: Whether the current rules diverge from the desired CIDRs.
        submitted: Whether the replacement rule set was sent to the cloud.
        current: The port states before the reconciliation.
        rules: The replacement rule set, empty if no update was attempted.
    """

    update_required: bool
    submitted: bool
    current: tuple[PortState, ...]
    rules: tuple[PortRule, ...] = ()


def _comparable(cidr: str) -> str:
    """Canonicalize a CIDR reported by the cloud, keeping it as is if it does not parse."""
    try:
        return canonicalize_cidr(cidr)
    except ValueError:
        logger.warning("Unable to parse CIDR %s reported by the cloud", cidr)
        return cidr


def blocks_diverge(active: Iterable[str], allowed: str | None) -> bool:
    """Check whether the CIDRs of an address family differ from the desired CIDR.

    Args:
        active: The CIDRs currently allowed for the address family.
        allowed: The desired CIDR. None leaves the family untouched, an empty string clears it.

    Returns:
        Whether the address family needs to be updated.
    """
    if allowed is None:
        return False
    current = {_comparable(cidr) for cidr in active}
    if allowed:
        return current != {allowed}
    return bool(current)


def port_state_diverges(port_state: PortState, config: LockdownConfiguration) -> bool:
    """Check whether a port range differs from the desired CIDRs.

    Args:
        port_state: The current port range.
        config: The desired configuration.

    Returns:
        Whether either address family of the port range needs to be updated.
    """
    return blocks_diverge(port_state.cidrs, config.allowed_cidr4) or blocks_diverge(
        port_state.ipv6_cidrs, config.allowed_cidr6
    )


def update_required(port_states: Iterable[PortState], config: LockdownConfiguration) -> bool:
    """Check whether any port range differs from the desired CIDRs.

    Args:
        port_states: The current port ranges of the instance.
        config: The desired configuration.

    Returns:
        Whether the rule set of the instance needs to be replaced.
    """
    diverging = [state for state in port_states if port_state_diverges(state, config)]
    for state in diverging:
        logger.info(
            "Port range %s-%s/%s diverges from the desired CIDRs",
            state.from_port,
            state.to_port,
            state.protocol,
        )
    return bool(diverging)


def _desired_blocks(active: tuple[str, ...], allowed: str | None) -> tuple[str, ...]:
    if allowed is None:
        return active
    if allowed:
        return (allowed,)
    return ()


def build_port_rules(
    port_states: Iterable[PortState], config: LockdownConfiguration
) -> tuple[PortRule, ...]:
    """Build the replacement rule set of the instance.

    Each port range keeps its ports and protocol. Per address family the CIDRs are replaced by
    the desired CIDR, removed, or preserved when the family is left untouched. Port ranges left
    without any source are dropped, which closes them.

    Args:
        port_states: The current port ranges of the instance.
        config: The desired configuration.

    Returns:
        The replacement rule set.
    """
    rules = []
    for state in port_states:
        rule = PortRule(
            from_port=state.from_port,
            to_port=state.to_port,
            protocol=state.protocol,
            cidrs=_desired_blocks(state.cidrs, config.allowed_cidr4),
            ipv6_cidrs=_desired_blocks(state.ipv6_cidrs, config.allowed_cidr6),
            cidr_list_aliases=state.cidr_list_aliases,
        )
        if not rule.has_sources:
            logger.info(
                "Closing port range %s-%s/%s, no source left",
                rule.from_port,
                rule.to_port,
                rule.protocol,
            )
            continue
        rules.append(rule)
    return tuple(rules)


def validate_port_rules(rules: Iterable[PortRule]) -> None:
    """Validate the replacement rule set before submission.

    Args:
        rules: The replacement rule set.

    Raises:
        ReconcileError: If a rule is not acceptable by Lightsail.
    """
    for rule in rules:
        try:
            rule.validate()
        except ValueError as exc:
            raise ReconcileError(f"Invalid port rule {rule}: {exc}") from exc


def reconcile(
    cloud: SupportsPortStates,
    config: LockdownConfiguration,
    echo: Callable[[str], None],
) -> ReconcileResult:
    """Bring the firewall of the instance in line with the desired CIDRs.

    Args:
        cloud: The cloud holding the instance.
        config: The desired configuration.
        echo: Function writing a line of the human-readable report.

    Returns:
        The outcome of the reconciliation.
    """
    current = tuple(cloud.get_port_states(config.instance))

    echo(f"Current firewall rules for {config.region}:{config.instance}:")
    for line in format_ports(current):
        echo(line)

    required = update_required(current, config)
    if not required and not config.force:
        echo("No update required.")
        return ReconcileResult(update_required=False, submitted=False, current=current)
    if not required:
        logger.info("No divergence found, forcing the update")

    echo(f"Updating firewall IPv4 CIDRs to match {describe_cidr(config.allowed_cidr4)}")
    echo(f"Updating firewall IPv6 CIDRs to match {describe_cidr(config.allowed_cidr6)}")

    rules = build_port_rules(current, config)
    validate_port_rules(rules)

    echo(f"New firewall rules for {config.region}:{config.instance}:")
    for line in format_ports(rules):
        echo(line)

    if config.dry_run:
        echo("Dry run: no update performed.")
        return ReconcileResult(
            update_required=required, submitted=False, current=current, rules=rules
        )

    cloud.put_port_rules(config.instance, rules)
    logger.info("Firewall of %s:%s updated", config.region, config.instance)
    return ReconcileResult(update_required=required, submitted=True, current=current, rules=rules)
