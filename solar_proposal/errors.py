# solar_proposal/errors.py


class ProposalError(Exception):
    """Base class for errors raised by the proposal pipeline."""


class InvalidInput(ProposalError, ValueError):
    """Request data failed validation; the message is safe to show to users."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class RenderError(ProposalError):
    """The slide deck could not be updated or exported."""
