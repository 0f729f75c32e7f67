"""
Error taxonomy for the controller selector.

Every failure the API reports derives from CatalogError and carries the
HTTP status it maps to.
"""


class CatalogError(Exception):
    """Base class for catalog failures reported to callers."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DuplicateModelError(CatalogError):
    """A model name already exists, or appears twice in one batch."""
    status_code = 500


class QueryError(CatalogError):
    """A filter query could not be built or executed."""
    status_code = 500


class StoreError(CatalogError):
    """The database rejected a write for a reason other than uniqueness."""
    status_code = 500


class InvalidRecordError(CatalogError):
    """A submitted record or record list failed validation."""
    status_code = 422


class SyncError(CatalogError):
    """Reading, parsing or writing the catalog file failed."""
    status_code = 500


class AuthorizationError(CatalogError):
    """Admin secret missing or wrong."""
    status_code = 403


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass
