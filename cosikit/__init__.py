"""Keyed locks, logging, config-map version records and IAM-style XML user operations."""

__version__ = "0.1.0"

__all__ = ["api", "errors", "keylock", "log_handlers", "logger", "poe", "utils", "version"]