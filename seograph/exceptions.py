"""
seograph Custom Exceptions

All module-specific exceptions inherit from SeoGraphError.
"""


class SeoGraphError(Exception):
    """Base exception for all seograph errors."""

    pass


# Domain Exceptions
class ValidationError(SeoGraphError):
    """Raised when a required field is missing or a value is invalid."""

    pass


class DuplicateEntityError(ValidationError):
    """Raised when creating an entity whose id is already taken."""

    pass


class NotFoundError(SeoGraphError):
    """Raised when a referenced entity, relationship or cluster does not exist."""

    pass


# Storage Exceptions
class StoreError(SeoGraphError):
    """Raised when a storage backend fails outside of domain validation."""

    pass
