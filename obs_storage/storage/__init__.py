"""Huawei OBS filesystem adapter and its building blocks."""

from obs_storage.storage.adapter import FilesystemAdapter
from obs_storage.storage.keys import KeyMapper
from obs_storage.storage.models import (
    PRIVATE,
    PUBLIC,
    DirectoryAttributes,
    FileAttributes,
    ListingBudget,
    PageCursor,
    StorageEntry,
)
from obs_storage.storage.obs_adapter import HuaweiObsAdapter
from obs_storage.storage.obs_client import ObsBucketClient

__all__ = [
    "FilesystemAdapter",
    "HuaweiObsAdapter",
    "ObsBucketClient",
    "KeyMapper",
    "FileAttributes",
    "DirectoryAttributes",
    "StorageEntry",
    "ListingBudget",
    "PageCursor",
    "PUBLIC",
    "PRIVATE",
]
