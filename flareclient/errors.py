"""
This submodule contains the exception types raised by the Flare service client.

Every failure of a call to the evaluation service is surfaced as exactly one of these types, so
that callers can tell a transport problem (:class:`NetworkError`) apart from a request the
service rejected (:class:`ApiError`) and from a response that could not be understood
(:class:`ParseError`).
"""


class FlareError(Exception):
    """
    Base class for all errors raised by the Flare SDK.
    """


class NetworkError(FlareError):
    """
    The service could not be reached, or the connection failed while the request was in flight.
    """


class RequestTimeoutError(NetworkError):
    """
    The request did not complete within the configured connect or read timeout.
    """


class ApiError(FlareError):
    """
    The service answered with a non-2xx HTTP status.
    """

    def __init__(self, status: int, message: str):
        super(ApiError, self).__init__(message)
        self._status = status
        self._message = message

    @property
    def status(self) -> int:
        """The HTTP status code returned by the service."""
        return self._status

    @property
    def message(self) -> str:
        return self._message


class ParseError(FlareError):
    """
    The response body did not have the expected shape.
    """


class InvalidArgumentError(FlareError, ValueError):
    """
    The caller supplied an unusable flag key, or a context from which no scope could be resolved.
    """


class CancelledError(FlareError):
    """
    The operation was aborted because its cancellation signal was set.
    """
