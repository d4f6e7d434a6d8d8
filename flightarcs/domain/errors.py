"""
Error taxonomy.

Load-time errors (``DataSourceError``, ``ValidationError``,
``ConfigurationError``) abort startup.  ``NotFound`` raised while handling
a user interaction is recoverable: the controller swallows it and treats
the event as a no-op.  ``InvalidArgument`` signals a programming error in
geometry or classification calls.
"""


class FlightArcsError(Exception):
    """Base class for every error raised by this package."""


class DataSourceError(FlightArcsError):
    """Fetching or parsing capital data from a source failed."""


class ValidationError(FlightArcsError):
    """Capital data is malformed, empty, or contains duplicate names."""


class NotFound(FlightArcsError, LookupError):
    """A capital or distance category lookup missed."""


class InvalidArgument(FlightArcsError, ValueError):
    """A geometry or classification call received an out-of-domain argument."""


class ConfigurationError(FlightArcsError):
    """The distance-category table does not partition [0, inf)."""
