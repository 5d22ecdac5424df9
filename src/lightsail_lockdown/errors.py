# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Errors used by the lightsail-lockdown application."""
from __future__ import annotations


class LockdownError(Exception):
    """Generic lockdown error as base exception."""


class ConfigurationError(LockdownError):
    """Represents an invalid or incomplete configuration."""


class CloudError(LockdownError):
    """Base class for cloud (as e.g. Lightsail) errors."""


class LightsailError(CloudError):
    """Represents a failed Lightsail API call or an unexpected Lightsail response."""


class ReconcileError(LockdownError):
    """Represents a replacement rule set that cannot be submitted."""
