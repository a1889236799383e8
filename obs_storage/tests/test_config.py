import pytest

from conftest import make_config
from obs_storage.config import load_config


@pytest.fixture
def obs_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name, value in {
        "HUAWEI_OBS_ACCESS_KEY_ID": "AK",
        "HUAWEI_OBS_SECRET_ACCESS_KEY": "SK",
        "HUAWEI_OBS_BUCKET": "bucket",
        "HUAWEI_OBS_ENDPOINT": "https://obs.cn-north-4.myhuaweicloud.com",
    }.items():
        monkeypatch.setenv(name, value)
    return monkeypatch


def test_load_config_defaults(obs_env):
    config = load_config()

    assert config.bucket == "bucket"
    assert config.prefix is None
    assert config.retry_attempts == 3
    assert config.retry_delay_seconds == 1.0
    assert config.auth_cache_ttl_seconds == 300.0
    assert config.list_page_size == 1000
    assert config.max_list_iterations == 100
    assert config.logging_enabled is False
    assert config.log_errors is True


def test_load_config_reads_optional_settings(obs_env):
    obs_env.setenv("HUAWEI_OBS_PREFIX", "uploads")
    obs_env.setenv("HUAWEI_OBS_SECURITY_TOKEN", "token")
    obs_env.setenv("HUAWEI_OBS_RETRY_ATTEMPTS", "5")
    obs_env.setenv("HUAWEI_OBS_LOGGING_ENABLED", "true")
    obs_env.setenv("HUAWEI_OBS_TIMEOUT", "30")

    config = load_config()

    assert config.prefix == "uploads"
    assert config.retry_attempts == 5
    assert config.logging_enabled is True
    assert config.client_options() == {
        "access_key_id": "AK",
        "secret_access_key": "SK",
        "server": "https://obs.cn-north-4.myhuaweicloud.com",
        "security_token": "token",
        "timeout": 30,
    }


def test_missing_required_setting(obs_env):
    obs_env.delenv("HUAWEI_OBS_BUCKET")

    with pytest.raises(ValueError, match="HUAWEI_OBS_BUCKET is required"):
        load_config()


def test_validate_rejects_bad_values():
    with pytest.raises(ValueError, match="must start with"):
        make_config(endpoint="obs.example.com").validate()
    with pytest.raises(ValueError, match="RETRY_ATTEMPTS"):
        make_config(retry_attempts=0).validate()
    with pytest.raises(ValueError, match="LIST_PAGE_SIZE"):
        make_config(list_page_size=5000).validate()

    make_config().validate()


def test_create_adapter_uses_injected_client():
    from types import SimpleNamespace

    sdk = SimpleNamespace()
    adapter = make_config(prefix="uploads").create_adapter(client=sdk)

    assert adapter.client.client is sdk
    assert adapter.client.bucket == "test-bucket"
    assert adapter.keys.prefix == "uploads"
