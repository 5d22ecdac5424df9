#  Copyright 2025 Canonical Ltd.
#  See LICENSE file for licensing details.

"""Unit test setups and configurations."""

import pytest

from tests.unit.fake_cloud import FakeCloud


@pytest.fixture(name="fake_cloud")
def fake_cloud_fixture() -> FakeCloud:
    return FakeCloud()


@pytest.fixture(name="report")
def report_fixture() -> list[str]:
    """Lines written to the human-readable report."""
    return []
