"""Custom exception classes for the file store."""

from typing import Any, Dict, List, Optional


class FileStoreException(Exception):
    """
    Base exception class for all file store errors.
    """
    pass


class ValidationError(FileStoreException):
    """
    Raised when an assembled or fetched file record fails schema validation.

    The structured list of field-level violations is kept on ``issues``.
    """

    def __init__(self, issues: List[Dict[str, Any]]):
        self.issues = issues
        fields = ", ".join(
            ".".join(str(part) for part in issue.get("loc", ())) or "<root>"
            for issue in issues
        )
        super().__init__(f"File record failed validation: {fields}")


class StorageError(FileStoreException):
    """
    Raised when a backend operation fails for a primary repository call.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class BackendError(FileStoreException):
    """
    Raised by a document backend when a query or write cannot be executed.
    """
    pass


class DuplicateKeyError(BackendError):
    """
    Raised when an insert violates a unique index.
    """
    pass


class IndexConflictError(BackendError):
    """
    Raised when an index with the same name but a different definition exists.
    """
    pass
