"""Exceptions raised across the exporter.

Errors below the scrape boundary are converted to "no observations" plus a
log line by the collection domain; only ``ConnectError`` on the top-level
server connection is surfaced to the scrape caller.
"""


class MetricsExporterError(Exception):
    """Base class for all exporter errors."""


class ConfigurationError(MetricsExporterError):
    """Required configuration is missing or invalid (fatal at startup)."""


class ConnectError(MetricsExporterError):
    """A database session could not be established."""

    def __init__(self, reason: str, *, database: str | None = None):
        """Create the error.

        Args:
            reason: Driver or transport message describing the failure.
            database: Target database of the failed session, if any.
        """
        self.reason = reason
        self.database = database
        super().__init__(reason)


class QueryError(MetricsExporterError):
    """A statement failed after the session was established."""

    def __init__(self, reason: str, *, query: str | None = None):
        """Create the error."""
        self.reason = reason
        self.query = query
        super().__init__(reason)


class DecodeError(MetricsExporterError):
    """Rows came back but their shape did not match the decoder."""


class EnumerationError(MetricsExporterError):
    """The database listing query failed."""


class ConnectionStateError(MetricsExporterError):
    """An operation was attempted on a handle that is not open."""
