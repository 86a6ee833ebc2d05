"""Error taxonomy shared by services and routes.

The HTTP-facing errors subclass werkzeug exceptions so the JSON error handler
registered by the application factory renders them with the right status code.
"""

from werkzeug.exceptions import BadRequest, Conflict, Forbidden, NotFound, Unauthorized


class AuthenticationError(Unauthorized):
    """Bad credentials or an invalid/expired session token (401)."""


class AuthorizationError(Forbidden):
    """Resolved identity is missing or lacks a required role (403)."""


class ValidationError(BadRequest):
    """Malformed input, unusable opaque token or disallowed account type (400)."""


class ConflictError(Conflict):
    """A unique value such as the email is already taken (409)."""


class NotFoundError(NotFound):
    """Requested record does not exist (404)."""


class EmailDeliveryError(Exception):
    """Outbound email could not be delivered."""
