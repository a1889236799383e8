"""Huawei Cloud OBS filesystem adapter."""

from __future__ import annotations

import logging
import math
import time
from datetime import datetime
from pathlib import PurePosixPath
from typing import IO, Any, Callable, Iterator, Mapping, Optional, TypeVar

from obs_storage.config import ObsConfig
from obs_storage.core.errors import (
    ObsRemoteError,
    UnableToCheckDirectoryExistence,
    UnableToCheckFileExistence,
    UnableToCopyFile,
    UnableToCreateDirectory,
    UnableToCreatePostSignature,
    UnableToCreateSignedUrl,
    UnableToDeleteDirectory,
    UnableToDeleteFile,
    UnableToDeleteObjectTags,
    UnableToGenerateUrl,
    UnableToGetObjectTags,
    UnableToListContents,
    UnableToMoveFile,
    UnableToReadFile,
    UnableToRestoreObject,
    UnableToRetrieveMetadata,
    UnableToSetObjectTags,
    UnableToSetVisibility,
    UnableToWriteFile,
)
from obs_storage.core.logging import OperationLogger, setup_logger
from obs_storage.core.retry import RetryExecutor, RetryPolicy
from obs_storage.storage.acl import acl_to_visibility, visibility_to_acl
from obs_storage.storage.adapter import FilesystemAdapter, WriteConfig
from obs_storage.storage.auth import AuthenticationCache
from obs_storage.storage.keys import KeyMapper
from obs_storage.storage.models import (
    PRIVATE,
    PUBLIC,
    DirectoryAttributes,
    FileAttributes,
    ListingBudget,
    StorageEntry,
    parse_timestamp,
)
from obs_storage.storage.obs_client import ObsBucketClient
from obs_storage.storage.pagination import PaginationEngine
from obs_storage.storage.streams import spool_response

T = TypeVar("T")

DEFAULT_MIME_TYPE = "application/octet-stream"
DEFAULT_URL_EXPIRES = 3600
DELETE_BATCH_SIZE = 1000


class HuaweiObsAdapter(FilesystemAdapter):
    """Filesystem adapter backed by a Huawei OBS bucket."""

    def __init__(
        self,
        config: ObsConfig,
        client: Any = None,
        bucket_client: Optional[ObsBucketClient] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the OBS adapter.

        Args:
            config: Validated adapter configuration
            client: Optional pre-built ``obs.ObsClient`` replacing the one
                built from ``config``
            bucket_client: Optional ready bucket binding (takes precedence
                over ``client``)
            logger: Logger for operation/error records
        """
        self.config = config
        self.bucket = config.bucket

        if bucket_client is not None:
            self.client = bucket_client
        elif client is not None:
            self.client = ObsBucketClient(client, config.bucket, config.endpoint)
        else:
            self.client = ObsBucketClient.from_config(config)

        self.keys = KeyMapper(config.prefix)
        self.executor = RetryExecutor(
            RetryPolicy(
                max_attempts=config.retry_attempts,
                base_delay_seconds=config.retry_delay_seconds,
            )
        )
        self.auth = AuthenticationCache(
            probe=self.client.head_bucket,
            bucket=config.bucket,
            executor=self.executor,
            ttl_seconds=config.auth_cache_ttl_seconds,
        )
        self.pagination = PaginationEngine(self.client, self.keys, self.executor)
        if logger is None:
            logger = setup_logger("obs_storage", config) if config.logging_enabled else logging.getLogger(__name__)
        self.operation_logger = OperationLogger(
            logger,
            bucket=config.bucket,
            enabled=config.logging_enabled,
            log_operations=config.log_operations,
            log_errors=config.log_errors,
        )

    def __enter__(self) -> "HuaweiObsAdapter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def _run(
        self,
        operation: str,
        path: str,
        call: Callable[[], T],
        fail: Callable[[ObsRemoteError], Exception],
        **context,
    ) -> T:
        """Authenticate, run ``call`` with retries and translate remote failures."""
        started = time.perf_counter()
        try:
            self.auth.ensure_authenticated()
            result = self.executor.execute(call)
        except ObsRemoteError as exc:
            self.operation_logger.log_error(operation, path, exc)
            raise fail(exc) from exc

        self.operation_logger.log_operation(operation, path, time.perf_counter() - started, **context)
        return result

    def _budget(self, max_keys: int = 0, timeout: float = 0) -> ListingBudget:
        return ListingBudget(
            max_keys=max_keys,
            timeout_seconds=timeout,
            max_iterations=self.config.max_list_iterations,
            page_size=self.config.list_page_size,
        )

    # Existence checks

    def file_exists(self, path: str) -> bool:
        key = self.keys.to_storage_key(path)
        try:
            self.auth.ensure_authenticated()
            self.executor.execute(lambda: self.client.get_object_metadata(key))
        except ObsRemoteError as exc:
            if exc.is_not_found:
                return False
            self.operation_logger.log_error("fileExists", path, exc)
            raise UnableToCheckFileExistence(path, exc) from exc
        return True

    def directory_exists(self, path: str) -> bool:
        key = self.keys.to_directory_key(path)
        page = self._run(
            "directoryExists",
            path,
            lambda: self.client.list_objects(prefix=key, max_keys=1),
            lambda exc: UnableToCheckDirectoryExistence(path, exc),
        )
        return bool(page.contents) or bool(page.common_prefixes)

    # Writing

    def write(self, path: str, contents: bytes | str, config: WriteConfig = None) -> None:
        self._put("write", path, contents, config)

    def write_stream(self, path: str, contents: IO, config: WriteConfig = None) -> None:
        self._put("writeStream", path, contents, config)

    def _put(self, operation: str, path: str, contents, config: WriteConfig) -> None:
        options = config or {}
        key = self.keys.to_storage_key(path)
        acl = visibility_to_acl(options.get("visibility", PRIVATE))
        content_type = options.get("mimetype")

        self._run(
            operation,
            path,
            lambda: self.client.put_object(key, contents, acl=acl, content_type=content_type),
            lambda exc: UnableToWriteFile(path, exc),
        )

    def create_directory(self, path: str, config: WriteConfig = None) -> None:
        options = config or {}
        key = self.keys.to_directory_key(path)
        acl = visibility_to_acl(options["visibility"]) if "visibility" in options else None

        self._run(
            "createDirectory",
            path,
            lambda: self.client.put_object(key, b"", acl=acl),
            lambda exc: UnableToCreateDirectory(path, exc),
        )

    # Reading

    def read(self, path: str) -> bytes:
        key = self.keys.to_storage_key(path)
        return self._run(
            "read",
            path,
            lambda: self.client.get_object(key),
            lambda exc: UnableToReadFile(path, exc),
        )

    def read_stream(self, path: str) -> IO[bytes]:
        key = self.keys.to_storage_key(path)
        response = self._run(
            "readStream",
            path,
            lambda: self.client.open_object(key),
            lambda exc: UnableToReadFile(path, exc),
        )
        try:
            return spool_response(response)
        except OSError as exc:
            self.operation_logger.log_error("readStream", path, exc)
            raise UnableToReadFile(path, exc) from exc

    # Deleting

    def delete(self, path: str) -> None:
        key = self.keys.to_storage_key(path)
        self._run(
            "delete",
            path,
            lambda: self.client.delete_object(key),
            lambda exc: UnableToDeleteFile(path, exc),
        )

    def delete_directory(self, path: str) -> None:
        """
        Delete every object below ``path``.

        All keys are collected first and removed with batch delete requests of
        up to 1000 keys, so a listing failure leaves the directory untouched.
        A failure in a later batch leaves the earlier batches already deleted.
        The root of an unprefixed bucket is refused.

        Raises:
            UnableToDeleteDirectory: If listing or deleting fails
            PaginationExhausted: If the listing never terminates
        """
        started = time.perf_counter()
        key = self.keys.to_directory_key(path)
        if not key:
            raise UnableToDeleteDirectory(path, "refusing to delete the bucket root")

        try:
            self.auth.ensure_authenticated()
            keys = list(self.pagination.iter_keys(key, self._budget()))
            failures = []
            for start in range(0, len(keys), DELETE_BATCH_SIZE):
                batch = keys[start:start + DELETE_BATCH_SIZE]
                failures.extend(self.executor.execute(lambda: self.client.delete_objects(batch)))
        except ObsRemoteError as exc:
            self.operation_logger.log_error("deleteDirectory", path, exc)
            raise UnableToDeleteDirectory(path, exc) from exc

        if failures:
            failed = ", ".join(f"{failure.key} ({failure.code})" for failure in failures)
            raise UnableToDeleteDirectory(path, f"Failed to delete: {failed}")

        self.operation_logger.log_operation(
            "deleteDirectory", path, time.perf_counter() - started, entries=len(keys)
        )

    # Visibility and metadata

    def set_visibility(self, path: str, visibility: str) -> None:
        key = self.keys.to_storage_key(path)
        acl = visibility_to_acl(visibility)
        self._run(
            "setVisibility",
            path,
            lambda: self.client.set_object_acl(key, acl),
            lambda exc: UnableToSetVisibility(path, exc),
        )

    def visibility(self, path: str) -> FileAttributes:
        key = self.keys.to_storage_key(path)
        grants = self._run(
            "visibility",
            path,
            lambda: self.client.get_object_acl(key),
            lambda exc: UnableToRetrieveMetadata(path, exc, metadata_type="visibility"),
        )
        return FileAttributes(path, visibility=acl_to_visibility(grants))

    def mime_type(self, path: str) -> FileAttributes:
        metadata = self._metadata("mimeType", path, "mime type")
        return FileAttributes(path, mime_type=metadata.content_type or DEFAULT_MIME_TYPE)

    def last_modified(self, path: str) -> FileAttributes:
        metadata = self._metadata("lastModified", path, "last modified")
        return FileAttributes(path, last_modified=parse_timestamp(metadata.last_modified))

    def file_size(self, path: str) -> FileAttributes:
        metadata = self._metadata("fileSize", path, "file size")
        return FileAttributes(path, file_size=metadata.content_length or 0)

    def _metadata(self, operation: str, path: str, metadata_type: str):
        key = self.keys.to_storage_key(path)
        return self._run(
            operation,
            path,
            lambda: self.client.get_object_metadata(key),
            lambda exc: UnableToRetrieveMetadata(path, exc, metadata_type=metadata_type),
        )

    # Listing

    def list_contents(self, path: str, deep: bool) -> Iterator[StorageEntry]:
        return self._list(path, deep, self._budget())

    def list_contents_optimized(
        self,
        path: str,
        deep: bool,
        max_keys: int = 0,
        timeout: float = 60,
    ) -> Iterator[StorageEntry]:
        """
        Budgeted listing.

        Args:
            path: Logical directory path
            deep: True to descend into subdirectories
            max_keys: Stop after this many entries (0 for unlimited)
            timeout: Stop fetching pages after this many seconds (0 for unlimited)
        """
        return self._list(path, deep, self._budget(max_keys, timeout))

    def _list(self, path: str, deep: bool, budget: ListingBudget) -> Iterator[StorageEntry]:
        key = self.keys.to_directory_key(path)
        try:
            self.auth.ensure_authenticated()
        except ObsRemoteError as exc:
            self.operation_logger.log_error("listContents", path, exc)
            raise UnableToListContents(path, exc) from exc

        try:
            yield from self.pagination.iter_entries(key, deep, budget, location=path)
        except UnableToListContents as exc:
            self.operation_logger.log_error("listContents", path, exc.__cause__ or exc)
            raise

    def files(self, directory: str = "") -> list[str]:
        return [entry.path for entry in self.list_contents(directory, False) if entry.is_file]

    def directories(self, directory: str = "") -> list[str]:
        return [entry.path for entry in self.list_contents(directory, False) if entry.is_dir]

    def all_files(self) -> list[str]:
        return [entry.path for entry in self.list_contents("", True) if entry.is_file]

    def all_directories(self) -> list[str]:
        return _collect_directories(self.list_contents("", True))

    def all_files_optimized(self, max_keys: int = 0, timeout: float = 60) -> list[str]:
        entries = self.list_contents_optimized("", True, max_keys, timeout)
        return [entry.path for entry in entries if entry.is_file]

    def all_directories_optimized(self, max_keys: int = 0, timeout: float = 60) -> list[str]:
        return _collect_directories(self.list_contents_optimized("", True, max_keys, timeout))

    def get_storage_stats(self, max_files: int = 0, timeout: float = 60) -> dict:
        """
        Summarise the bucket (or configured prefix).

        Returns:
            Dict with total_files, total_directories, total_size_bytes,
            total_size_mb, file_types, processed_count,
            processing_time_seconds and has_more_files
        """
        started = time.perf_counter()
        total_files = 0
        total_directories = 0
        total_size = 0
        file_types: dict[str, int] = {}

        for entry in self.list_contents_optimized("", True, max_files, timeout):
            if entry.is_dir:
                total_directories += 1
                continue
            total_files += 1
            total_size += entry.file_size or 0
            extension = PurePosixPath(entry.path).suffix.lower().lstrip(".") or "no_extension"
            file_types[extension] = file_types.get(extension, 0) + 1

        processed = total_files + total_directories
        return {
            "total_files": total_files,
            "total_directories": total_directories,
            "total_size_bytes": total_size,
            "total_size_mb": round(total_size / (1024 * 1024), 2),
            "file_types": file_types,
            "processed_count": processed,
            "processing_time_seconds": round(time.perf_counter() - started, 3),
            "has_more_files": max_files > 0 and processed >= max_files,
        }

    # Moving and copying

    def move(self, source: str, destination: str, config: WriteConfig = None) -> None:
        source_key = self.keys.to_storage_key(source)
        destination_key = self.keys.to_storage_key(destination)
        acl = _acl_from(config)

        def _move() -> None:
            self.client.copy_object(source_key, destination_key, acl=acl)
            self.client.delete_object(source_key)

        self._run(
            "move",
            source,
            _move,
            lambda exc: UnableToMoveFile(source, exc, destination=destination),
        )

    def copy(self, source: str, destination: str, config: WriteConfig = None) -> None:
        source_key = self.keys.to_storage_key(source)
        destination_key = self.keys.to_storage_key(destination)
        acl = _acl_from(config)

        self._run(
            "copy",
            source,
            lambda: self.client.copy_object(source_key, destination_key, acl=acl),
            lambda exc: UnableToCopyFile(source, exc, destination=destination),
        )

    # URLs and signatures

    def url(self, path: str) -> str:
        """Direct URL for public objects, a one-hour signed URL otherwise."""
        key = self.keys.to_storage_key(path)

        def _url() -> str:
            if acl_to_visibility(self.client.get_object_acl(key)) == PUBLIC:
                return self.client.public_url(key)
            return self.client.create_signed_url("GET", key, DEFAULT_URL_EXPIRES)

        return self._run("url", path, _url, lambda exc: UnableToGenerateUrl(path, exc))

    def get_temporary_url(
        self,
        path: str,
        expiration: datetime | int,
        options: Optional[Mapping[str, Any]] = None,
    ) -> str:
        options = options or {}
        return self.create_signed_url(
            path,
            method=options.get("method", "GET"),
            expires=_seconds_until(expiration),
            headers=options.get("headers"),
        )

    def temporary_upload_url(
        self,
        path: str,
        expiration: datetime | int,
        options: Optional[Mapping[str, Any]] = None,
    ) -> str:
        options = options or {}
        return self.create_signed_url(
            path,
            method="PUT",
            expires=_seconds_until(expiration),
            headers=options.get("headers"),
        )

    def create_signed_url(
        self,
        path: str,
        method: str = "GET",
        expires: int = DEFAULT_URL_EXPIRES,
        headers: Optional[Mapping[str, str]] = None,
    ) -> str:
        key = self.keys.to_storage_key(path)
        return self._run(
            "createSignedUrl",
            path,
            lambda: self.client.create_signed_url(method, key, expires, headers),
            lambda exc: UnableToCreateSignedUrl(path, exc),
            method=method,
            expires=expires,
        )

    def create_post_signature(
        self,
        path: str,
        conditions: Optional[Mapping[str, str]] = None,
        expires: int = DEFAULT_URL_EXPIRES,
    ) -> dict:
        key = self.keys.to_storage_key(path)
        return self._run(
            "createPostSignature",
            path,
            lambda: self.client.create_post_signature(key, expires, conditions),
            lambda exc: UnableToCreatePostSignature(path, exc),
            expires=expires,
        )

    # Tagging and archive restore

    def set_object_tags(self, path: str, tags: Mapping[str, str]) -> None:
        key = self.keys.to_storage_key(path)
        self._run(
            "setObjectTags",
            path,
            lambda: self.client.set_object_tagging(key, tags),
            lambda exc: UnableToSetObjectTags(path, exc),
            tags_count=len(tags),
        )

    def get_object_tags(self, path: str) -> dict[str, str]:
        key = self.keys.to_storage_key(path)
        return self._run(
            "getObjectTags",
            path,
            lambda: self.client.get_object_tagging(key),
            lambda exc: UnableToGetObjectTags(path, exc),
        )

    def delete_object_tags(self, path: str) -> None:
        key = self.keys.to_storage_key(path)
        self._run(
            "deleteObjectTags",
            path,
            lambda: self.client.delete_object_tagging(key),
            lambda exc: UnableToDeleteObjectTags(path, exc),
        )

    def restore_object(self, path: str, days: int = 1) -> None:
        key = self.keys.to_storage_key(path)
        self._run(
            "restoreObject",
            path,
            lambda: self.client.restore_object(key, days),
            lambda exc: UnableToRestoreObject(path, exc),
            days=days,
        )

    # Credentials

    def refresh_credentials(
        self,
        access_key_id: str,
        secret_access_key: str,
        security_token: Optional[str] = None,
    ) -> None:
        """Swap in new (typically temporary) credentials and re-probe the bucket."""
        self.client.refresh(access_key_id, secret_access_key, security_token)
        self.refresh_authentication()

    def refresh_authentication(self) -> None:
        self.auth.invalidate()
        self.auth.ensure_authenticated()


def _acl_from(config: WriteConfig) -> Optional[str]:
    if config and "visibility" in config:
        return visibility_to_acl(config["visibility"])
    return None


def _seconds_until(expiration: datetime | int) -> int:
    if isinstance(expiration, datetime):
        now = datetime.now(tz=expiration.tzinfo)
        return max(math.ceil((expiration - now).total_seconds()), 1)
    return max(int(expiration), 1)


def _collect_directories(entries) -> list[str]:
    directories: dict[str, None] = {}
    for entry in entries:
        if isinstance(entry, DirectoryAttributes):
            directories.setdefault(entry.path, None)
            continue
        for parent in reversed(PurePosixPath(entry.path).parents):
            if str(parent) != "/":
                directories.setdefault(str(parent), None)
    return list(directories)
