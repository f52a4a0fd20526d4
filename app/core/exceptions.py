"""
Custom exceptions for the application.
"""


class ServiceException(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, code: str = "SERVICE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class NotFoundError(ServiceException):
    """Exception raised when a document, section or version is not found."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, "NOT_FOUND")


class ValidationError(ServiceException):
    """Exception raised when validation fails."""

    def __init__(self, message: str = "Validation failed"):
        super().__init__(message, "VALIDATION_ERROR")


class NoVersionHistoryError(ServiceException):
    """Exception raised when an operation needs at least one stored version."""

    def __init__(self, message: str = "Document has no version history"):
        super().__init__(message, "NO_VERSION_HISTORY")


class NothingToUndoError(ServiceException):
    """Exception raised when undo is requested at the first version."""

    def __init__(self, message: str = "Cannot undo: no previous version"):
        super().__init__(message, "NOTHING_TO_UNDO")


class NothingToRedoError(ServiceException):
    """Exception raised when redo is requested with no reachable next version."""

    def __init__(self, message: str = "Cannot redo: no next version"):
        super().__init__(message, "NOTHING_TO_REDO")


class StorageError(ServiceException):
    """Exception raised when the persistence layer fails."""

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(message, "STORAGE_ERROR")


class CorruptPointerStateError(ServiceException):
    """
    Exception raised when a stored pointer state violates its invariants.

    Requires operator attention; it is never repaired automatically.
    """

    def __init__(self, message: str = "Version pointer state is corrupt"):
        super().__init__(message, "CORRUPT_POINTER_STATE")
