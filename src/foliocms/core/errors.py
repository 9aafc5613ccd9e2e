class FolioError(Exception):
    """Base error for all user-facing folio exceptions."""


class ConfigurationError(FolioError):
    """Raised when configuration is invalid or incomplete."""


class ProjectNotInitializedError(FolioError):
    """Raised when the .folio data directory or database is missing."""


class ValidationError(FolioError):
    """Raised when input is malformed before any I/O happens."""


class RecordNotFoundError(FolioError):
    """Raised when a content record cannot be found."""


class ObjectStoreError(FolioError):
    """Raised when an object storage operation fails."""


class UploadError(ObjectStoreError):
    """Raised when an asset upload fails; the save is aborted."""


class StorageDeletionWarning(ObjectStoreError):
    """Raised when a stored object cannot be removed.

    Callers that remove superseded assets after a committed write log this and
    carry on.
    """


class ReferenceResolutionFailure(FolioError):
    """Raised when a public URL does not point into the expected bucket."""


class RecordWriteError(FolioError):
    """Raised when a datastore insert, update or delete fails."""


class AuthenticationError(FolioError):
    """Raised when an admin credential is rejected."""


class UnknownResourceGroupError(FolioError):
    """Raised when a resource group key is not in the registry."""

    def __init__(self, unknown_keys: list[str]) -> None:
        self.unknown_keys = unknown_keys
        super().__init__(f"Unknown resource group(s): {', '.join(unknown_keys)}")


class DeletionProtocolError(FolioError):
    """Raised when a deletion protocol action is not allowed in the current state."""


class FunctionInvocationError(FolioError):
    """Raised when the purge function cannot be reached or answers garbage."""


class RemoteDeletionLogicError(FolioError):
    """Raised when the purge function itself reports a failure."""
