"""Custom exceptions for menu import."""


class MenuImportError(Exception):
    """Base exception for menu import."""

    pass


class UnsupportedFileType(MenuImportError):
    """Raised when a file's declared type cannot be extracted."""

    pass


class FileTooLarge(MenuImportError):
    """Raised when an uploaded file exceeds the configured size limit."""

    pass


class JobNotFound(MenuImportError):
    """Raised when an import job does not exist (or not in the given store)."""

    pass


class JobNotReady(MenuImportError):
    """Raised when changes are applied to a job that is not READY."""

    pass


class StoreOwnershipMismatch(MenuImportError):
    """Raised when a store or job does not belong to the requesting merchant."""

    pass
