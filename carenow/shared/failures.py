"""Failure types shared by every feature.

Repositories translate vendor errors (database, Firebase, Redis, HTTP) into one
of these, use cases return them inside a ``Result`` and the HTTP layer renders
them with their status code.
"""

from typing import Optional


class Failure(Exception):
    """Base class for all expected errors."""

    category = "server"
    default_status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code or self.default_status_code

    def __eq__(self, other):
        return (
            type(self) is type(other)
            and self.message == other.message
            and self.status_code == other.status_code
        )

    def __hash__(self):
        return hash((type(self), self.message, self.status_code))

    def __repr__(self):
        return f"{type(self).__name__}({self.message!r})"

    def to_dict(self) -> dict:
        return {"detail": self.message, "category": self.category}


class ServerFailure(Failure):
    """Backend or storage error."""

    category = "server"
    default_status_code = 500


class NetworkFailure(Failure):
    """An upstream HTTP service could not be reached."""

    category = "network"
    default_status_code = 503


class AuthFailure(Failure):
    """Authentication failed, or the caller lacks permission (pass 403)."""

    category = "auth"
    default_status_code = 401


class ValidationFailure(Failure):
    category = "validation"
    default_status_code = 400


class CacheFailure(Failure):
    category = "cache"
    default_status_code = 500


class DataFailure(Failure):
    """Record not found or malformed."""

    category = "data"
    default_status_code = 404


class PaymentFailure(Failure):
    category = "payment"
    default_status_code = 402


class LocationFailure(Failure):
    category = "location"
    default_status_code = 400


def forbidden(message: str) -> AuthFailure:
    return AuthFailure(message, status_code=403)
