from __future__ import annotations


class ExposureScanError(Exception):
    pass


class InvalidDomainError(ExposureScanError, ValueError):
    """Raised when a scan target is missing or is not a usable hostname."""


class ResponseTooLargeError(ExposureScanError):
    pass


class ServiceUnavailableError(ExposureScanError):
    """A third-party service answered, but not with a usable response."""
