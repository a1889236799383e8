import pytest

from obs_storage.core.errors import AuthenticationFailed, ObsRemoteError, RetryLogicError
from obs_storage.core.retry import RetryExecutor, RetryPolicy, calculate_backoff


def test_retry_success_after_failures(no_sleep):
    calls = {"count": 0}

    def target():
        calls["count"] += 1
        if calls["count"] < 3:
            raise ObsRemoteError("temporary", code="ServiceUnavailable", status=503)
        return "ok"

    executor = RetryExecutor(RetryPolicy(max_attempts=3, base_delay_seconds=0.5))

    assert executor.execute(target) == "ok"
    assert calls["count"] == 3
    assert no_sleep == [0.5, 1.0]


def test_retry_stops_after_max_attempts(no_sleep):
    calls = {"count": 0}

    def target():
        calls["count"] += 1
        raise ObsRemoteError("always failing")

    executor = RetryExecutor(RetryPolicy(max_attempts=2, base_delay_seconds=1))

    with pytest.raises(ObsRemoteError, match="always failing"):
        executor.execute(target)

    assert calls["count"] == 2
    assert no_sleep == [1]


def test_credential_error_is_not_retried(no_sleep):
    calls = {"count": 0}

    def target():
        calls["count"] += 1
        raise ObsRemoteError("denied", code="InvalidAccessKeyId", status=403)

    with pytest.raises(ObsRemoteError):
        RetryExecutor(RetryPolicy(max_attempts=5)).execute(target)

    assert calls["count"] == 1
    assert no_sleep == []


def test_bucket_error_is_not_retried(no_sleep):
    calls = {"count": 0}

    def target():
        calls["count"] += 1
        raise ObsRemoteError("missing", code="NoSuchBucket", status=404)

    with pytest.raises(ObsRemoteError):
        RetryExecutor(RetryPolicy(max_attempts=3)).execute(target)

    assert calls["count"] == 1
    assert no_sleep == []


def test_not_found_error_is_retried_until_attempts_run_out(no_sleep):
    calls = {"count": 0}

    def target():
        calls["count"] += 1
        raise ObsRemoteError("The specified key does not exist.", code="NoSuchKey", status=404)

    with pytest.raises(ObsRemoteError, match="NoSuchKey"):
        RetryExecutor(RetryPolicy(max_attempts=3, base_delay_seconds=1)).execute(target)

    assert calls["count"] == 3
    assert no_sleep == [1, 2]


def test_non_remote_errors_propagate_immediately(no_sleep):
    calls = {"count": 0}

    def target():
        calls["count"] += 1
        raise AuthenticationFailed("bad credentials")

    with pytest.raises(AuthenticationFailed):
        RetryExecutor(RetryPolicy(max_attempts=3)).execute(target)

    assert calls["count"] == 1


def test_zero_attempts_raise_internal_error():
    with pytest.raises(RetryLogicError, match="Unexpected error in retry logic"):
        RetryExecutor(RetryPolicy(max_attempts=0)).execute(lambda: "never")


def test_calculate_backoff_doubles():
    assert calculate_backoff(1, 1.0) == 1.0
    assert calculate_backoff(2, 1.0) == 2.0
    assert calculate_backoff(3, 0.5) == 2.0
