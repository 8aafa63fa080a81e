"""Exception hierarchy for the chaos exporter."""
from typing import Optional


class ChaosExporterError(Exception):
    """Base class for all exporter errors."""


class ConfigurationError(ChaosExporterError):
    """Mandatory configuration is missing or the cluster config is unusable."""


class SourceError(ChaosExporterError):
    """
    Fetching chaos results failed.

    ``permanent`` marks failures that retrying cannot fix, such as an
    authorization failure against the cluster API.
    """

    def __init__(
        self,
        message: str,
        permanent: bool = False,
        status: Optional[int] = None
    ):
        super().__init__(message)
        self.permanent = permanent
        self.status = status


class SourceUnavailableError(ChaosExporterError):
    """The poll loop gave up on the metrics source."""

    def __init__(self, message: str, last_error: Optional[SourceError] = None):
        super().__init__(message)
        self.last_error = last_error
