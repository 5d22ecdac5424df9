# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""The CLI entrypoint for lightsail-lockdown application."""

import importlib.metadata
import logging
import sys
from typing import TextIO

import click

from lightsail_lockdown.configuration import LockdownConfiguration, build_configuration
from lightsail_lockdown.errors import LockdownError
from lightsail_lockdown.lightsail import LightsailCloud
from lightsail_lockdown.reconciler import reconcile

version = importlib.metadata.version("lightsail-lockdown")

logger = logging.getLogger(__name__)


def _resolve_configuration(
    config_file: TextIO | None, options: dict[str, str | bool | None]
) -> LockdownConfiguration:
    """Merge the command line options over the configuration file.

    Options not given on the command line, and flags not set, do not override the file.

    Args:
        config_file: The configuration file, if any.
        options: The command line options.

    Returns:
        The configuration.
    """
    overrides = {
        key: value for key, value in options.items() if value is not None and value is not False
    }
    if config_file is not None:
        return LockdownConfiguration.from_yaml_file(config_file, **overrides)
    return build_configuration(overrides)


@click.command()
@click.option("-r", "--region", type=str, default=None, help="AWS region (required).")
@click.option(
    "-i", "--instance", type=str, default=None, help="Lightsail instance name (required)."
)
@click.option(
    "-4",
    "--cidr4",
    "allowed_cidr4",
    type=str,
    default=None,
    help='IPv4 CIDR to allow, or "none" to remove all IPv4 access.',
)
@click.option(
    "-6",
    "--cidr6",
    "allowed_cidr6",
    type=str,
    default=None,
    help='IPv6 CIDR to allow, or "none" to remove all IPv6 access.',
)
@click.option("-f", "--force", is_flag=True, default=False, help="Force update.")
@click.option(
    "-d",
    "--dry-run",
    is_flag=True,
    default=False,
    help="Dry-run: do everything but send the firewall update to the AWS API.",
)
@click.option(
    "-p",
    "--profile",
    type=str,
    default=None,
    help="AWS credentials profile. Defaults to the boto3 credential chain.",
)
@click.option(
    "--config-file",
    type=click.File(mode="r", encoding="utf-8"),
    default=None,
    help="YAML file with the configurations. Command line options take precedence.",
)
@click.option(
    "--log-level",
    type=click.Choice(
        [
            "CRITICAL",
            "FATAL",
            "ERROR",
            "WARNING",
            "INFO",
            "DEBUG",
        ]
    ),
    default="WARNING",
    help="The log level for the application.",
)
@click.version_option(version=version)
def main(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    region: str | None,
    instance: str | None,
    allowed_cidr4: str | None,
    allowed_cidr6: str | None,
    force: bool,
    dry_run: bool,
    profile: str | None,
    config_file: TextIO | None,
    log_level: str,
) -> None:
    """Restrict the public firewall of a Lightsail instance to the given CIDRs.

    Args:
        region: The AWS region.
        instance: The Lightsail instance name.
        allowed_cidr4: The IPv4 CIDR to allow, or "none".
        allowed_cidr6: The IPv6 CIDR to allow, or "none".
        force: Whether to update the firewall even if it matches the CIDRs.
        dry_run: Whether to skip sending the update.
        profile: The AWS credentials profile.
        config_file: The configuration file.
        log_level: The log level.
    """
    logging.basicConfig(
        level=log_level,
        stream=sys.stderr,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    logger.info("Starting lightsail-lockdown version: %s", version)

    try:
        config = _resolve_configuration(
            config_file,
            {
                "region": region,
                "instance": instance,
                "allowed_cidr4": allowed_cidr4,
                "allowed_cidr6": allowed_cidr6,
                "force": force,
                "dry_run": dry_run,
                "profile": profile,
            },
        )
        cloud = LightsailCloud(region=config.region, profile=config.profile)
        reconcile(cloud, config, echo=click.echo)
    except LockdownError as exc:
        logger.error("%s", exc)
        sys.exit(1)
