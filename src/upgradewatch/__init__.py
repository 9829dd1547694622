"""Condition polling and staged orchestration for cluster upgrade checks."""

__version__ = "0.1.0"
