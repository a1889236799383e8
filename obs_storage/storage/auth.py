"""Cached liveness probe guarding every state-sensitive OBS call."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from obs_storage.core.errors import AuthenticationFailed, BucketUnavailable, ObsRemoteError
from obs_storage.core.retry import RetryExecutor

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0


class AuthenticationCache:
    """
    Remembers a successful bucket probe for ``ttl_seconds``.

    Failed probes are never cached: the next call probes again.
    """

    def __init__(
        self,
        probe: Callable[[], object],
        bucket: str,
        executor: RetryExecutor,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            probe: Zero-argument remote call (head-bucket) that raises
                ObsRemoteError on failure
            bucket: Bucket name, used in error messages
            executor: Retry executor wrapping the probe
            ttl_seconds: How long a successful probe stays valid
            clock: Source of the current time in seconds
        """
        self._probe = probe
        self.bucket = bucket
        self.executor = executor
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self.authenticated: Optional[bool] = None
        self.expires_at: Optional[float] = None

    @property
    def is_authenticated(self) -> bool:
        return (
            self.authenticated is True
            and self.expires_at is not None
            and self._clock() < self.expires_at
        )

    def ensure_authenticated(self) -> None:
        if self.is_authenticated:
            return

        self.executor.execute(self._check)

    def invalidate(self) -> None:
        self.authenticated = None
        self.expires_at = None

    def _check(self) -> None:
        try:
            self._probe()
        except ObsRemoteError as exc:
            self.authenticated = False
            self.expires_at = None

            if exc.is_authentication_error:
                raise AuthenticationFailed(
                    "Authentication failed. Please check your Huawei OBS credentials "
                    "(Access Key ID, Secret Access Key, and Security Token if using "
                    f"temporary credentials). Error: {exc}"
                ) from exc

            if exc.is_bucket_error:
                raise BucketUnavailable(
                    f"Bucket '{self.bucket}' does not exist or you don't have access to it. "
                    "Please check your bucket configuration."
                ) from exc

            raise

        self.authenticated = True
        self.expires_at = self._clock() + self.ttl_seconds
        logger.debug("Authenticated against bucket %s until %.0f", self.bucket, self.expires_at)
