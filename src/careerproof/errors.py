from __future__ import annotations


class CareerProofError(Exception):
    """Base class for failures surfaced to API and CLI callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputValidationError(CareerProofError):
    """Malformed or missing required input. Raised before any side effect."""

    status_code = 400


class NotFoundError(CareerProofError):
    status_code = 404


class StateError(CareerProofError):
    """Entity is in the wrong lifecycle state for the requested operation."""

    status_code = 409


class ConflictError(CareerProofError):
    """A unique key (run id, share token, email) already exists."""

    status_code = 409


class UpstreamError(CareerProofError):
    """GitHub or the text-generation provider failed."""

    status_code = 502


class ChannelClosedError(Exception):
    """The reading side of a progress channel went away."""
