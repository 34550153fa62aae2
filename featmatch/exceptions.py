"""Exceptions raised by featmatch."""


class FeatMatchError(Exception):
    """Base class for featmatch errors."""


class PreconditionError(FeatMatchError, ValueError):
    """Invalid input detected before any matching work starts."""


class ConfigError(FeatMatchError):
    """Configuration file or override could not be applied."""
