from __future__ import annotations

AUTHENTICATION_ERROR_CODES = frozenset(
    {"AccessDenied", "InvalidAccessKeyId", "SignatureDoesNotMatch"}
)
BUCKET_ERROR_CODES = frozenset({"NoSuchBucket"})
NOT_FOUND_ERROR_CODES = frozenset({"NoSuchKey", "NoSuchResource"})


class ObsStorageError(Exception):
    error_type = "UNKNOWN"


class ObsRemoteError(ObsStorageError):
    """A failed call against the OBS service.

    Built by the SDK binding from the response (or from a transport failure),
    so the error code is always available as a plain attribute.
    """

    error_type = "REMOTE"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status: int | None = None,
        request_id: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.request_id = request_id

    def __str__(self) -> str:
        if self.code and self.code not in self.message:
            return f"{self.code}: {self.message}"
        return self.message

    @property
    def is_authentication_error(self) -> bool:
        return self.code in AUTHENTICATION_ERROR_CODES

    @property
    def is_bucket_error(self) -> bool:
        return self.code in BUCKET_ERROR_CODES

    @property
    def is_not_found(self) -> bool:
        if self.code in NOT_FOUND_ERROR_CODES:
            return True
        if self.code is None and self.status == 404:
            return True
        return any(code in self.message for code in NOT_FOUND_ERROR_CODES)


class ObsConfigurationError(ObsStorageError, RuntimeError):
    error_type = "CONFIGURATION"


class AuthenticationFailed(ObsConfigurationError):
    error_type = "AUTHENTICATION"


class BucketUnavailable(ObsConfigurationError):
    error_type = "BUCKET"


class PaginationExhausted(ObsStorageError, RuntimeError):
    error_type = "PAGINATION_EXHAUSTED"


class RetryLogicError(ObsStorageError, RuntimeError):
    error_type = "INTERNAL"


class FilesystemError(ObsStorageError):
    """Base for the "unable to X" failures raised by filesystem adapters."""

    error_type = "FILESYSTEM"
    operation = "perform operation"

    def __init__(self, location: str, reason: object = "", destination: str | None = None):
        self.location = location
        self.destination = destination
        self.reason = str(reason) if reason else ""

        if destination is not None:
            message = f"Unable to {self.operation} from {location} to {destination}"
        else:
            message = f"Unable to {self.operation} at location: {location}"
        if self.reason:
            message = f"{message}. {self.reason}"
        super().__init__(message)


class UnableToCheckFileExistence(FilesystemError):
    operation = "check file existence"


class UnableToCheckDirectoryExistence(FilesystemError):
    operation = "check directory existence"


class UnableToWriteFile(FilesystemError):
    operation = "write file"


class UnableToReadFile(FilesystemError):
    operation = "read file"


class UnableToDeleteFile(FilesystemError):
    operation = "delete file"


class UnableToDeleteDirectory(FilesystemError):
    operation = "delete directory"


class UnableToCreateDirectory(FilesystemError):
    operation = "create directory"


class UnableToSetVisibility(FilesystemError):
    operation = "set visibility"


class UnableToRetrieveMetadata(FilesystemError):
    operation = "retrieve metadata"

    def __init__(self, location: str, reason: object = "", metadata_type: str = ""):
        self.metadata_type = metadata_type
        if metadata_type:
            self.operation = f"retrieve the {metadata_type}"
        super().__init__(location, reason)


class UnableToMoveFile(FilesystemError):
    operation = "move file"


class UnableToCopyFile(FilesystemError):
    operation = "copy file"


class UnableToListContents(FilesystemError):
    operation = "list contents"


class UnableToGenerateUrl(FilesystemError):
    operation = "retrieve URL"


class UnableToCreateSignedUrl(FilesystemError):
    operation = "create signed URL"


class UnableToCreatePostSignature(FilesystemError):
    operation = "create post signature"


class UnableToSetObjectTags(FilesystemError):
    operation = "set object tags"


class UnableToGetObjectTags(FilesystemError):
    operation = "get object tags"


class UnableToDeleteObjectTags(FilesystemError):
    operation = "delete object tags"


class UnableToRestoreObject(FilesystemError):
    operation = "restore object"


def classify_error(error: Exception) -> str:
    if isinstance(error, ObsRemoteError):
        if error.is_authentication_error:
            return "AUTHENTICATION"
        if error.is_bucket_error:
            return "BUCKET"
        if error.is_not_found:
            return "NOT_FOUND"
        return "TRANSIENT"

    if hasattr(error, "error_type"):
        return getattr(error, "error_type")

    message = str(error).lower()

    if "timeout" in message or "timed out" in message:
        return "TRANSIENT"

    if "connection" in message or "network" in message:
        return "TRANSIENT"

    return "UNKNOWN"


NON_RETRYABLE_ERROR_TYPES = frozenset({"AUTHENTICATION", "BUCKET"})
