"""
core/errors.py -- Domain error taxonomy for Bookman.

Stores and the Authenticator raise these; route handlers let them propagate
and api/main.py maps each class to an HTTP status in one place. Keeping the
mapping out of this module keeps core/ free of HTTP concerns.

The message passed to the constructor is shown to the client verbatim, so
it must never contain secrets or stack traces.
"""


class BookmanError(Exception):
    """Base class for every expected, request-terminating failure."""

    code = "error"


class BadRequest(BookmanError):
    code = "bad_request"


class Unauthorized(BookmanError):
    code = "unauthorized"


class NotFound(BookmanError):
    code = "not_found"


class Conflict(BookmanError):
    code = "conflict"


class InternalError(BookmanError):
    code = "internal_error"
