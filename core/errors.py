# core/errors.py
from typing import Optional


class StorefrontError(Exception):
    """Base class for every failure the storefront surfaces."""

    user_message = "Something went wrong. Please try again."


class Unauthenticated(StorefrontError):
    """No credential is available for a remote operation."""

    user_message = "Please log in to continue."


class Malformed(StorefrontError):
    """Persisted or response data could not be understood."""

    user_message = "Received unexpected data from the store."


class MutationError(StorefrontError):
    """A remote call failed; subclasses carry the failure kind."""

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        super().__init__(message or self.user_message)
        self.status_code = status_code


class Unauthorized(MutationError):
    user_message = "Session expired. Please log in again."


class Forbidden(Unauthorized):
    user_message = "You do not have permission to do that."


class NotSeller(Forbidden):
    user_message = (
        "You are not the seller and do not have the permission to edit this product."
    )


class NotFound(MutationError):
    user_message = "This product is no longer available."


class NetworkError(MutationError):
    user_message = "Network error. Please try again."


class ServerError(MutationError):
    user_message = "The store is having trouble right now. Please try again later."


# Catalog and profile reads fail with the same kinds as mutations.
FetchError = MutationError
