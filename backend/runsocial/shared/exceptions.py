"""
Domain exceptions.

Raised by the engine, mapped to HTTP status codes in runsocial.main.
"""


class RunSocialError(Exception):
    """Base error for all engine failures."""
    pass


class NotFoundError(RunSocialError):
    """Entity is absent, or not owned by the caller."""
    pass


class InvalidStateError(RunSocialError):
    """Operation is not allowed in the entity's current state."""
    pass


class ValidationError(RunSocialError):
    """Input field is outside its allowed range."""
    pass


class InvalidCursorError(ValidationError):
    """Pagination cursor does not reference a known item."""
    pass


class ConflictError(RunSocialError):
    """A concurrent writer won the race for the same state transition."""
    pass
