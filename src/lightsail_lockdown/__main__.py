# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Run the lightsail-lockdown CLI as a module."""

from lightsail_lockdown.cli import main

main()  # pylint: disable=no-value-for-parameter
