"""Pytest configuration and shared fixtures for the markweave test suite.

This module provides shared fixtures and test configuration used across the
entire test suite.
"""

import logging
import os
from typing import Generator

import pytest
from hypothesis import Phase, Verbosity, settings

from markweave import MarkdownOptions, reset_defaults
from markweave.logging_utils import GRAMMAR_LOGGERS

# Register custom Hypothesis profiles
settings.register_profile("ci", max_examples=200, deadline=None, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=50, deadline=None)
settings.register_profile(
    "debug",
    max_examples=10,
    deadline=None,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
)

# Load profile from environment or use default
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - full conversion pipeline tests")
    config.addinivalue_line("markers", "fuzzing: Property-based tests driven by hypothesis")
    config.addinivalue_line("markers", "slow: Slow tests that may take several seconds")
    config.addinivalue_line("markers", "cli: Tests related to command-line interface")


@pytest.fixture(autouse=True)
def clean_default_instance() -> Generator[None, None, None]:
    """Restore the module-level default instance after every test."""
    reset_defaults()
    yield
    reset_defaults()


@pytest.fixture
def restore_logging() -> Generator[None, None, None]:
    """Put root logger handlers and levels back after a test reconfigures them."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    root_level = root.level
    levels = {name: logging.getLogger(name).level for name in ("markweave", *GRAMMAR_LOGGERS)}
    try:
        yield
    finally:
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(root_level)
        for name, level in levels.items():
            logging.getLogger(name).setLevel(level)


@pytest.fixture
def gfm_options() -> MarkdownOptions:
    """Provide the default GFM options."""
    return MarkdownOptions()


@pytest.fixture
def commonmark_options() -> MarkdownOptions:
    """Provide options with GFM extensions switched off."""
    return MarkdownOptions(gfm=False)


@pytest.fixture
def pedantic_options() -> MarkdownOptions:
    """Provide markdown.pl compatible options."""
    return MarkdownOptions(pedantic=True)
