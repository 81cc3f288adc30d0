"""Pylint checkers backed by the testwarden rule engine."""
