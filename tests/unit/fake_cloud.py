#  Copyright 2025 Canonical Ltd.
#  See LICENSE file for licensing details.

"""Fake cloud for testing the reconciliation."""

from typing import Sequence

from lightsail_lockdown.models import PortRule, PortState


class FakeCloud:
    """In-memory cloud holding the port states of one instance.

    Attributes:
        port_states: The current port states.
        submitted: The instance name and rule set of each submission, in order.
        queried: The instance names the port states were requested for.
    """

    def __init__(self, port_states: Sequence[PortState] = ()):
        """Construct the object.

        Args:
            port_states: The current port states.
        """
        self.port_states = tuple(port_states)
        self.submitted: list[tuple[str, tuple[PortRule, ...]]] = []
        self.queried: list[str] = []

    def get_port_states(self, instance: str) -> tuple[PortState, ...]:
        """Get the current port states.

        Args:
            instance: The instance name.

        Returns:
            The port states.
        """
        self.queried.append(instance)
        return self.port_states

    def put_port_rules(self, instance: str, rules: Sequence[PortRule]) -> None:
        """Record the rule set submission.

        Args:
            instance: The instance name.
            rules: The replacement rule set.
        """
        self.submitted.append((instance, tuple(rules)))
