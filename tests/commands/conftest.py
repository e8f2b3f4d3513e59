"""Fixtures for CLI command tests."""

from unittest.mock import patch

import pytest


@pytest.fixture
def cli_context(context):
    """Route every command's service lookups to the in-memory test context."""
    targets = [
        "famtrack.commands.requests.get_service_context",
        "famtrack.commands.screen_time.get_service_context",
    ]
    patchers = [patch(target, return_value=context) for target in targets]
    for patcher in patchers:
        patcher.start()
    yield context
    for patcher in patchers:
        patcher.stop()
