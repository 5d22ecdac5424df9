# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Reconcile the public firewall of a Lightsail instance with a desired CIDR."""
