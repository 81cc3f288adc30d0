"""Testwarden - test-quality linter for Python test suites."""

import logging

__version__ = "0.1.0"

logging.getLogger("testwarden").addHandler(logging.NullHandler())
