# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Class for accessing the Lightsail API for managing instance firewalls."""
import functools
import logging
from typing import Any, Callable, ParamSpec, Sequence, TypeVar

import boto3
import botocore.exceptions

from lightsail_lockdown.errors import LightsailError
from lightsail_lockdown.models import PortRule, PortState

logger = logging.getLogger(__name__)

_SERVICE_NAME = "lightsail"

P = ParamSpec("P")
T = TypeVar("T")


def _catch_lightsail_errors(func: Callable[P, T]) -> Callable[P, T]:
    """Decorate a function to wrap boto3 exceptions in a custom exception.

    Args:
        func: The function to decorate.

    Returns:
        The decorated function.
    """

    @functools.wraps(func)
    def exception_handling_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        """Wrap the function with exception handling.

        Args:
            args: The positional arguments.
            kwargs: The keyword arguments.

        Raises:
            LightsailError: If any boto3 exception is caught.

        Returns:
            The return value of the decorated function.
        """
        try:
            return func(*args, **kwargs)
        except (
            botocore.exceptions.ClientError,
            botocore.exceptions.BotoCoreError,
        ) as exc:
            logger.error("Lightsail API call failure")
            raise LightsailError(f"Failed Lightsail API call: {exc}") from exc

    return exception_handling_wrapper


class LightsailCloud:
    """Client to interact with the firewall of Lightsail instances in one region."""

    def __init__(self, region: str, profile: str | None = None):
        """Create the object.

        The boto3 client is created on first use.

        Args:
            region: The AWS region of the instances.
            profile: The AWS credentials profile. Defaults to the boto3 credential chain.
        """
        self.region = region
        self._profile = profile

    @functools.cached_property
    def _client(self) -> Any:
        """The boto3 Lightsail client."""
        session = boto3.session.Session(profile_name=self._profile, region_name=self.region)
        return session.client(_SERVICE_NAME)

    @_catch_lightsail_errors
    def get_port_states(self, instance: str) -> tuple[PortState, ...]:
        """Get the current port states of an instance.

        Args:
            instance: The Lightsail instance name.

        Raises:
            LightsailError: If the response is malformed.

        Returns:
            The port states of the instance.
        """
        logger.info("Getting port states of %s:%s", self.region, instance)
        response = self._client.get_instance_port_states(instanceName=instance)
        port_states = response.get("portStates")
        if not isinstance(port_states, list):
            raise LightsailError(f"Missing port states in the response for instance {instance}")
        try:
            states = tuple(PortState.from_lightsail(port_state) for port_state in port_states)
        except ValueError as exc:
            raise LightsailError(f"Malformed port state for instance {instance}: {exc}") from exc
        logger.info("Found %s port ranges on %s", len(states), instance)
        return states

    @_catch_lightsail_errors
    def put_port_rules(self, instance: str, rules: Sequence[PortRule]) -> None:
        """Replace all the public port rules of an instance.

        Args:
            instance: The Lightsail instance name.
            rules: The complete rule set of the instance. Ports not listed are closed.
        """
        logger.info("Replacing %s port rules of %s:%s", len(rules), self.region, instance)
        response = self._client.put_instance_public_ports(
            instanceName=instance, portInfos=[rule.to_port_info() for rule in rules]
        )
        operation = response.get("operation") or {}
        logger.info(
            "Lightsail operation %s on %s finished with status %s",
            operation.get("id"),
            instance,
            operation.get("status"),
        )
