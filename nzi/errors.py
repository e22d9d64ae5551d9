"""
Exception types shared across the dashboard core.

Network failures are raised by the HTTP clients and recovered by the cache
layer; config IO failures are raised by the config store and recovered by
its callers. Validation problems are values, see nzi.config.validation.
"""


class NetworkError(Exception):
    """Base class for a failed remote fetch."""


class FetchTimeout(NetworkError):
    """A fetch attempt exceeded its time bound."""


class TransportFailure(NetworkError):
    """Connection, DNS or HTTP status failure."""


class MalformedResponse(NetworkError):
    """The remote answered but the payload could not be understood."""


class ConfigIOError(Exception):
    """Reading or writing the config file failed."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class UnknownLocation(NetworkError):
    """No coordinates are known for the requested city, so no request can be made."""
