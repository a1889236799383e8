import io
from collections import defaultdict

import pytest

from obs_storage.config import ObsConfig
from obs_storage.core.errors import ObsRemoteError
from obs_storage.storage.acl import ACL_PUBLIC_READ, public_read_grants
from obs_storage.storage.models import ListPage, ObjectMetadata, ObjectSummary, PageCursor


def not_found(key: str) -> ObsRemoteError:
    return ObsRemoteError("The specified key does not exist.", code="NoSuchKey", status=404)


class FakeBucketClient:
    """In-memory stand-in for ObsBucketClient.

    Records every call in ``calls``. ``fail(method, *errors)`` queues errors
    raised by the next calls to ``method``; ``pages`` scripts list_objects.
    """

    def __init__(self, bucket="test-bucket", endpoint="https://obs.example.com"):
        self.bucket = bucket
        self.endpoint = endpoint
        self.objects = {}
        self.calls = []
        self.errors = defaultdict(list)
        self.pages = None
        self.closed = False
        self.credentials = None

    def fail(self, method, *errors):
        self.errors[method].extend(errors)

    def _record(self, method, *args):
        self.calls.append((method, args))
        if self.errors[method]:
            raise self.errors[method].pop(0)

    def calls_to(self, method):
        return [args for name, args in self.calls if name == method]

    def _object(self, key):
        if key not in self.objects:
            raise not_found(key)
        return self.objects[key]

    def head_bucket(self):
        self._record("head_bucket")

    def put_object(self, key, content, acl=None, content_type=None):
        self._record("put_object", key, acl, content_type)
        if hasattr(content, "read"):
            content = content.read()
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.objects[key] = {
            "content": content,
            "acl": acl or "private",
            "content_type": content_type,
            "last_modified": "2024/01/02 03:04:05",
            "tags": {},
        }

    def get_object(self, key):
        self._record("get_object", key)
        return self._object(key)["content"]

    def open_object(self, key):
        self._record("open_object", key)
        return io.BytesIO(self._object(key)["content"])

    def delete_object(self, key):
        self._record("delete_object", key)
        self.objects.pop(key, None)

    def list_objects(self, prefix="", delimiter=None, marker=None, max_keys=1000):
        self._record("list_objects", prefix, delimiter, marker, max_keys)
        if self.pages is not None:
            return self.pages.pop(0)

        contents = []
        prefixes = []
        for key in sorted(self.objects):
            if not key.startswith(prefix):
                continue
            if marker is not None and key <= marker.token:
                continue
            rest = key[len(prefix):]
            if delimiter and delimiter in rest:
                common = prefix + rest[: rest.index(delimiter) + 1]
                if common not in prefixes:
                    prefixes.append(common)
                continue
            contents.append(
                ObjectSummary(
                    key=key,
                    size=len(self.objects[key]["content"]),
                    last_modified=self.objects[key]["last_modified"],
                )
            )
        return ListPage(contents=contents[:max_keys], common_prefixes=prefixes)

    def delete_objects(self, keys):
        keys = list(keys)
        self._record("delete_objects", keys)
        for key in keys:
            self.objects.pop(key, None)
        return []

    def copy_object(self, source_key, destination_key, acl=None):
        self._record("copy_object", source_key, destination_key, acl)
        source = dict(self._object(source_key))
        if acl:
            source["acl"] = acl
        self.objects[destination_key] = source

    def get_object_acl(self, key):
        self._record("get_object_acl", key)
        if self._object(key)["acl"] == ACL_PUBLIC_READ:
            return public_read_grants("owner")
        return public_read_grants("owner")[:1]

    def set_object_acl(self, key, acl):
        self._record("set_object_acl", key, acl)
        self._object(key)["acl"] = acl

    def get_object_metadata(self, key):
        self._record("get_object_metadata", key)
        item = self._object(key)
        return ObjectMetadata(
            content_type=item["content_type"],
            content_length=len(item["content"]),
            last_modified="Tue, 02 Jan 2024 03:04:05 GMT",
        )

    def set_object_tagging(self, key, tags):
        self._record("set_object_tagging", key, dict(tags))
        self._object(key)["tags"] = dict(tags)

    def get_object_tagging(self, key):
        self._record("get_object_tagging", key)
        return dict(self._object(key)["tags"])

    def delete_object_tagging(self, key):
        self._record("delete_object_tagging", key)
        self._object(key)["tags"] = {}

    def restore_object(self, key, days):
        self._record("restore_object", key, days)

    def create_signed_url(self, method, key, expires, headers=None):
        self._record("create_signed_url", method, key, expires, headers)
        return f"{self.public_url(key)}?method={method}&expires={expires}"

    def create_post_signature(self, key, expires, form_params=None):
        self._record("create_post_signature", key, expires, form_params)
        return {"policy": "cG9saWN5", "signature": "c2ln", "key": key}

    def public_url(self, key):
        return f"{self.endpoint}/{self.bucket}/{key}"

    def refresh(self, access_key_id, secret_access_key, security_token=None):
        self._record("refresh", access_key_id)
        self.credentials = (access_key_id, secret_access_key, security_token)

    def close(self):
        self.closed = True


def page(*keys, prefixes=(), marker=None):
    return ListPage(
        contents=[ObjectSummary(key=key, size=1, last_modified="2024/01/02 03:04:05") for key in keys],
        common_prefixes=list(prefixes),
        next_marker=PageCursor(marker) if marker is not None else None,
    )


def make_config(**overrides):
    values = {
        "access_key_id": "AK",
        "secret_access_key": "SK",
        "bucket": "test-bucket",
        "endpoint": "https://obs.example.com",
        "retry_delay_seconds": 0.0,
    }
    values.update(overrides)
    return ObsConfig(**values)


@pytest.fixture
def no_sleep(monkeypatch):
    delays = []
    monkeypatch.setattr("obs_storage.core.retry.time.sleep", delays.append)
    return delays


@pytest.fixture
def fake_client():
    return FakeBucketClient()


@pytest.fixture
def adapter(fake_client, no_sleep):
    from obs_storage.storage import HuaweiObsAdapter

    return HuaweiObsAdapter(make_config(), bucket_client=fake_client)
