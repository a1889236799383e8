"""Huawei OBS SDK binding.

``obs.ObsClient`` reports most failures by returning a result whose ``status``
is >= 300 instead of raising. Every call here goes through ``_call``, which
turns such results (and transport exceptions) into ObsRemoteError and hands
back the response body otherwise.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Optional
from urllib.parse import quote

from obs import (
    CopyObjectHeader,
    DeleteObjectsRequest,
    Object,
    ObsClient,
    PutObjectHeader,
    TagInfo,
)

from obs_storage.core.errors import ObsRemoteError
from obs_storage.storage.models import (
    DeleteFailure,
    Grant,
    ListPage,
    ObjectMetadata,
    ObjectSummary,
    PageCursor,
)

ERROR_CODE_HEADER = "x-obs-error-code"


def _header_value(headers: Any, name: str) -> Optional[str]:
    """Look up a response header; the SDK returns a list of (name, value) pairs."""
    if not headers:
        return None
    items = headers.items() if isinstance(headers, Mapping) else headers
    for item_name, value in items:
        if str(item_name).lower() == name:
            return value
    return None


def remote_error_from_response(response: Any) -> ObsRemoteError:
    code = getattr(response, "errorCode", None) or _header_value(
        getattr(response, "header", None), ERROR_CODE_HEADER
    )
    message = (
        getattr(response, "errorMessage", None)
        or getattr(response, "reason", None)
        or code
        or "OBS request failed"
    )
    return ObsRemoteError(
        str(message),
        code=code,
        status=getattr(response, "status", None),
        request_id=getattr(response, "requestId", None),
    )


class ObsBucketClient:
    """Bucket-scoped wrapper over ``obs.ObsClient`` returning typed records."""

    def __init__(self, client: Any, bucket: str, endpoint: str):
        """
        Args:
            client: ``obs.ObsClient`` instance (or a compatible double)
            bucket: Bucket every call is issued against
            endpoint: Endpoint URL, used to build public object URLs
        """
        self.client = client
        self.bucket = bucket
        self.endpoint = endpoint

    @classmethod
    def from_config(cls, config) -> "ObsBucketClient":
        return cls(ObsClient(**config.client_options()), config.bucket, config.endpoint)

    def _call(self, method: Callable[..., Any], *args, **kwargs) -> Any:
        try:
            response = method(*args, **kwargs)
        except ObsRemoteError:
            raise
        except Exception as exc:  # noqa: BLE001 - transport failures are transient
            raise ObsRemoteError(f"OBS request failed: {exc}") from exc

        if response is not None and (getattr(response, "status", None) or 0) >= 300:
            raise remote_error_from_response(response)
        return getattr(response, "body", None)

    def head_bucket(self) -> None:
        self._call(self.client.headBucket, self.bucket)

    def get_object(self, key: str) -> bytes:
        body = self._call(self.client.getObject, self.bucket, key, loadStreamInMemory=True)
        buffer = getattr(body, "buffer", None)
        if buffer is None:
            return b""
        if isinstance(buffer, str):
            return buffer.encode("utf-8")
        return bytes(buffer)

    def open_object(self, key: str):
        """Return the streaming response for ``key``; the caller must close it."""
        body = self._call(self.client.getObject, self.bucket, key)
        return body.response

    def put_object(
        self,
        key: str,
        content,
        acl: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> None:
        headers = PutObjectHeader(acl=acl, contentType=content_type)
        self._call(self.client.putContent, self.bucket, key, content, headers=headers)

    def delete_object(self, key: str) -> None:
        self._call(self.client.deleteObject, self.bucket, key)

    def list_objects(
        self,
        prefix: str = "",
        delimiter: Optional[str] = None,
        marker: Optional[PageCursor] = None,
        max_keys: int = 1000,
    ) -> ListPage:
        body = self._call(
            self.client.listObjects,
            self.bucket,
            prefix=prefix or None,
            marker=marker.token if marker is not None else None,
            max_keys=max_keys,
            delimiter=delimiter,
        )

        contents = [
            ObjectSummary(
                key=item.key,
                size=int(getattr(item, "size", 0) or 0),
                last_modified=getattr(item, "lastModified", None),
            )
            for item in (getattr(body, "contents", None) or [])
        ]
        common_prefixes = [
            item.prefix for item in (getattr(body, "commonPrefixs", None) or [])
        ]

        next_marker = getattr(body, "next_marker", None)
        if next_marker is None and getattr(body, "is_truncated", False):
            # Without a delimiter OBS may omit NextMarker; resume after the last key.
            last_keys = [item.key for item in contents] + common_prefixes
            next_marker = max(last_keys) if last_keys else None

        return ListPage(
            contents=contents,
            common_prefixes=common_prefixes,
            next_marker=PageCursor(next_marker) if next_marker is not None else None,
        )

    def delete_objects(self, keys: Iterable[str]) -> list[DeleteFailure]:
        request = DeleteObjectsRequest(quiet=True, objects=[Object(key=key) for key in keys])
        body = self._call(self.client.deleteObjects, self.bucket, request)
        return [
            DeleteFailure(
                key=item.key,
                code=getattr(item, "code", None),
                message=getattr(item, "message", None),
            )
            for item in (getattr(body, "error", None) or [])
        ]

    def copy_object(self, source_key: str, destination_key: str, acl: Optional[str] = None) -> None:
        headers = CopyObjectHeader(acl=acl) if acl else None
        self._call(
            self.client.copyObject,
            self.bucket,
            source_key,
            self.bucket,
            destination_key,
            headers=headers,
        )

    def get_object_acl(self, key: str) -> list[Grant]:
        body = self._call(self.client.getObjectAcl, self.bucket, key)
        grants = []
        for item in getattr(body, "grants", None) or []:
            grantee = getattr(item, "grantee", None)
            grants.append(
                Grant(
                    permission=getattr(item, "permission", ""),
                    grantee_id=getattr(grantee, "grantee_id", None),
                    group=getattr(grantee, "group", None),
                )
            )
        return grants

    def set_object_acl(self, key: str, acl: str) -> None:
        self._call(self.client.setObjectAcl, self.bucket, key, aclControl=acl)

    def get_object_metadata(self, key: str) -> ObjectMetadata:
        body = self._call(self.client.getObjectMetadata, self.bucket, key)
        content_length = getattr(body, "contentLength", None)
        return ObjectMetadata(
            content_type=getattr(body, "contentType", None),
            content_length=int(content_length) if content_length is not None else None,
            last_modified=getattr(body, "lastModified", None),
            etag=getattr(body, "etag", None),
        )

    def set_object_tagging(self, key: str, tags: Mapping[str, str]) -> None:
        tag_info = TagInfo()
        for name, value in tags.items():
            tag_info.addTag(name, value)
        self._call(self.client.setObjectTagging, self.bucket, key, tag_info)

    def get_object_tagging(self, key: str) -> dict[str, str]:
        body = self._call(self.client.getObjectTagging, self.bucket, key)
        return {tag.key: tag.value for tag in (getattr(body, "tagSet", None) or [])}

    def delete_object_tagging(self, key: str) -> None:
        self._call(self.client.deleteObjectTagging, self.bucket, key)

    def restore_object(self, key: str, days: int) -> None:
        self._call(self.client.restoreObject, self.bucket, key, days)

    def create_signed_url(
        self,
        method: str,
        key: str,
        expires: int,
        headers: Optional[Mapping[str, str]] = None,
    ) -> str:
        try:
            result = self.client.createSignedUrl(
                method.upper(),
                self.bucket,
                key,
                expires=expires,
                headers=dict(headers or {}),
            )
        except Exception as exc:  # noqa: BLE001 - signing happens locally in the SDK
            raise ObsRemoteError(f"Unable to sign URL: {exc}") from exc
        return result.signedUrl

    def create_post_signature(
        self,
        key: str,
        expires: int,
        form_params: Optional[Mapping[str, str]] = None,
    ) -> dict:
        try:
            result = self.client.createPostSignature(
                self.bucket,
                key,
                expires=expires,
                formParams=dict(form_params or {}),
            )
        except Exception as exc:  # noqa: BLE001 - signing happens locally in the SDK
            raise ObsRemoteError(f"Unable to create post signature: {exc}") from exc
        return dict(result)

    def public_url(self, key: str) -> str:
        return f"{self.endpoint.rstrip('/')}/{self.bucket}/{quote(key, safe='/')}"

    def refresh(
        self,
        access_key_id: str,
        secret_access_key: str,
        security_token: Optional[str] = None,
    ) -> None:
        self.client.refresh(access_key_id, secret_access_key, security_token)

    def close(self) -> None:
        self.client.close()
