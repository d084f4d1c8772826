"""Errors that abort a whole extraction run."""


class ConfigError(Exception):
    """Configuration file is missing or invalid."""


class DatabaseConnectionError(Exception):
    """The queue database could not be reached."""
