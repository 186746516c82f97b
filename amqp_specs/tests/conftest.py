"""Unit tests configuration file."""

import pytest

from amqp_specs import AMQProtocolDefinition


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


@pytest.fixture(scope="session")
def definition():
    return AMQProtocolDefinition.load()
