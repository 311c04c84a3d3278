"""Exception hierarchy for Aries account data."""
from __future__ import annotations


class AriesError(Exception):
    """Base class for all errors raised by aries_lend."""


class NotFoundError(AriesError):
    """Profile, resource or table node does not exist."""


class MalformedDataError(AriesError):
    """External payload is missing a field or has the wrong shape."""


class ParseError(MalformedDataError):
    """Numeric or hex string could not be parsed."""


class ExternalFailure(AriesError):
    """A collaborator call (REST endpoint, view function) failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body
