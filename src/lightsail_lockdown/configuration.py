# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Configuration for the lightsail-lockdown application."""

import ipaddress
import logging
from typing import Any, Optional, TextIO

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from lightsail_lockdown.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Input token asking to remove every CIDR of an address family.
CLEAR_TOKEN = "none"
# Value of a desired CIDR once the address family has been explicitly cleared.
CLEARED = ""


def canonicalize_cidr(value: str, version: int | None = None) -> str:
    """Normalize a CIDR string, masking the host bits.

    Args:
        value: The CIDR, e.g. 192.0.2.10/24 or 2001:DB8::/32.
        version: The IP version the CIDR must belong to, if any.

    Raises:
        ValueError: If the CIDR is malformed, has no prefix length or is of the wrong IP version.

    Returns:
        The canonical CIDR, e.g. 192.0.2.0/24 or 2001:db8::/32.
    """
    value = value.strip()
    if "/" not in value:
        raise ValueError(f"{value} is not a CIDR, the prefix length is missing")
    network = ipaddress.ip_network(value, strict=False)
    if version is not None and network.version != version:
        raise ValueError(f"{value} is not an IPv{version} CIDR")
    return str(network)


class LockdownConfiguration(BaseModel):
    """Desired firewall state of a single Lightsail instance.

    A desired CIDR is None when the address family should be left untouched, CLEARED when every
    CIDR of the family should be removed, or a canonical CIDR the family is restricted to.

    Attributes:
        model_config: Pydantic model configuration.
        region: The AWS region of the instance.
        instance: The Lightsail instance name.
        allowed_cidr4: The desired IPv4 CIDR.
        allowed_cidr6: The desired IPv6 CIDR.
        force: Whether to submit the rule set even if no divergence is found.
        dry_run: Whether to skip submitting the rule set to Lightsail.
        profile: The AWS credentials profile to use. Defaults to the boto3 credential chain.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    region: str = Field(min_length=1)
    instance: str = Field(min_length=1)
    allowed_cidr4: Optional[str] = None
    allowed_cidr6: Optional[str] = None
    force: bool = False
    dry_run: bool = False
    profile: Optional[str] = Field(None, min_length=1)

    @field_validator("allowed_cidr4", "allowed_cidr6", mode="before")
    @classmethod
    def parse_clear_token(cls, value: Any) -> Any:
        """Map the raw CIDR input to None, CLEARED or the CIDR string.

        A blank value leaves the address family untouched, the "none" token clears it.

        Args:
            value: The raw CIDR input.

        Returns:
            The CIDR input to validate.
        """
        if not isinstance(value, str):
            return value
        value = value.strip()
        if not value:
            return None
        if value.lower() == CLEAR_TOKEN:
            return CLEARED
        return value

    @field_validator("allowed_cidr4")
    @classmethod
    def check_cidr4(cls, value: Optional[str]) -> Optional[str]:
        """Canonicalize the desired IPv4 CIDR.

        Args:
            value: The IPv4 CIDR to check.

        Returns:
            The canonical IPv4 CIDR, or the value unchanged if no CIDR was given.
        """
        if not value:
            return value
        return canonicalize_cidr(value, version=4)

    @field_validator("allowed_cidr6")
    @classmethod
    def check_cidr6(cls, value: Optional[str]) -> Optional[str]:
        """Canonicalize the desired IPv6 CIDR.

        Args:
            value: The IPv6 CIDR to check.

        Returns:
            The canonical IPv6 CIDR, or the value unchanged if no CIDR was given.
        """
        if not value:
            return value
        return canonicalize_cidr(value, version=6)

    @model_validator(mode="after")
    def check_any_cidr(self) -> "LockdownConfiguration":
        """Validate at least one address family is configured.

        Raises:
            ValueError: If neither an IPv4 nor an IPv6 CIDR was given.

        Returns:
            The configuration.
        """
        if self.allowed_cidr4 is None and self.allowed_cidr6 is None:
            raise ValueError("No IPv4 or IPv6 CIDR specified")
        return self

    @staticmethod
    def from_yaml_file(file: TextIO, **overrides: Any) -> "LockdownConfiguration":
        """Initialize configuration from a YAML formatted file.

        Args:
            file: The file object to parse the configuration from.
            overrides: Values taking precedence over the ones in the file.

        Raises:
            ConfigurationError: If the file is not a valid UTF-8 YAML mapping.

        Returns:
            The configuration.
        """
        try:
            content = yaml.safe_load(file)
        except (yaml.YAMLError, UnicodeDecodeError) as exc:
            raise ConfigurationError(f"Invalid YAML configuration file: {exc}") from exc
        if content is None:
            content = {}
        if not isinstance(content, dict):
            raise ConfigurationError("The configuration file must contain a YAML mapping")
        return build_configuration({**content, **overrides})


def _format_validation_error(exc: ValidationError) -> str:
    """Join the pydantic errors into a single line message."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        message = error["msg"].removeprefix("Value error, ")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


def build_configuration(values: dict[str, Any]) -> LockdownConfiguration:
    """Validate the configuration values.

    Args:
        values: The raw configuration values.

    Raises:
        ConfigurationError: If the configuration is invalid.

    Returns:
        The immutable configuration.
    """
    try:
        config = LockdownConfiguration.model_validate(values)
    except ValidationError as exc:
        raise ConfigurationError(_format_validation_error(exc)) from exc
    logger.debug("Resolved configuration: %s", config)
    return config
