"""Exception hierarchy for Portwatch.

Probe failures are not exceptions: they are reported through `ProbeResult`.
These types cover configuration and alert delivery problems only.
"""


class PortwatchError(Exception):
    """Base class for all Portwatch errors."""


class AlertTemplateError(PortwatchError):
    """The alert payload template cannot be loaded, rendered or parsed as JSON."""


class NotificationError(PortwatchError):
    """A webhook alert could not be delivered."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
