class DocumentStoreError(Exception):
    """Raised when a read or write against the document store fails."""


class WriteConflictError(DocumentStoreError):
    """Raised when a guarded insert finds a head that moved since it was read."""
