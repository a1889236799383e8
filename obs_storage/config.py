import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _load_env_files() -> None:
    # Prefer the .env next to the package, then fall back to cwd-based resolution
    env_path = Path(__file__).resolve().parent / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)
    load_dotenv(override=False)


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("true", "1", "yes")


def _env_optional(name: str) -> str | None:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_optional_int(name: str) -> int | None:
    value = _env_optional(name)
    return int(value) if value is not None else None


@dataclass(frozen=True)
class ObsConfig:
    # Credentials and target bucket
    access_key_id: str
    secret_access_key: str
    bucket: str
    endpoint: str
    prefix: str | None = None
    security_token: str | None = None

    # Retry
    retry_attempts: int = 3
    retry_delay_seconds: float = 1.0

    # Authentication cache and listing safety limits
    auth_cache_ttl_seconds: float = 300.0
    list_page_size: int = 1000
    max_list_iterations: int = 100

    # SDK transport options (None leaves the SDK default in place)
    ssl_verify: bool | None = None
    signature: str | None = None
    path_style: bool | None = None
    region: str | None = None
    max_retry_count: int | None = None
    timeout: int | None = None
    is_cname: bool | None = None

    # Logging
    logging_enabled: bool = False
    log_operations: bool = False
    log_errors: bool = True
    log_level: str = "INFO"
    log_format: str = "json"
    log_file_path: str | None = None

    def validate(self) -> None:
        if not self.access_key_id:
            raise ValueError("HUAWEI_OBS_ACCESS_KEY_ID is required")

        if not self.secret_access_key:
            raise ValueError("HUAWEI_OBS_SECRET_ACCESS_KEY is required")

        if not self.bucket:
            raise ValueError("HUAWEI_OBS_BUCKET is required")

        if not self.endpoint:
            raise ValueError("HUAWEI_OBS_ENDPOINT is required")

        if not (self.endpoint.startswith("http://") or self.endpoint.startswith("https://")):
            raise ValueError("HUAWEI_OBS_ENDPOINT must start with 'http://' or 'https://'")

        if self.retry_attempts < 1 or self.retry_attempts > 10:
            raise ValueError("HUAWEI_OBS_RETRY_ATTEMPTS must be between 1 and 10")

        if self.retry_delay_seconds < 0:
            raise ValueError("HUAWEI_OBS_RETRY_DELAY must be >= 0")

        if self.auth_cache_ttl_seconds < 0:
            raise ValueError("HUAWEI_OBS_AUTH_CACHE_TTL must be >= 0")

        if self.list_page_size < 1 or self.list_page_size > 1000:
            raise ValueError("HUAWEI_OBS_LIST_PAGE_SIZE must be between 1 and 1000")

        if self.max_list_iterations < 1:
            raise ValueError("HUAWEI_OBS_MAX_LIST_ITERATIONS must be >= 1")

        if self.log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("LOG_LEVEL must be DEBUG, INFO, WARNING, ERROR, or CRITICAL")

        if self.log_format not in {"json", "text"}:
            raise ValueError("LOG_FORMAT must be 'json' or 'text'")

    def client_options(self) -> dict:
        """Keyword arguments for ``obs.ObsClient``."""
        options = {
            "access_key_id": self.access_key_id,
            "secret_access_key": self.secret_access_key,
            "server": self.endpoint,
        }
        if self.security_token is not None:
            options["security_token"] = self.security_token

        optional = {
            "ssl_verify": self.ssl_verify,
            "signature": self.signature,
            "path_style": self.path_style,
            "region": self.region,
            "max_retry_count": self.max_retry_count,
            "timeout": self.timeout,
            "is_cname": self.is_cname,
        }
        options.update({name: value for name, value in optional.items() if value is not None})
        return options

    def create_adapter(self, client=None):
        """
        Create a Huawei OBS filesystem adapter from this configuration.

        Args:
            client: Optional pre-built ``obs.ObsClient`` (or compatible) to use
                instead of constructing one from the credentials.

        Returns:
            HuaweiObsAdapter instance
        """
        from obs_storage.storage import HuaweiObsAdapter

        return HuaweiObsAdapter(self, client=client)


def load_config() -> ObsConfig:
    _load_env_files()

    config = ObsConfig(
        access_key_id=os.environ.get("HUAWEI_OBS_ACCESS_KEY_ID", "").strip(),
        secret_access_key=os.environ.get("HUAWEI_OBS_SECRET_ACCESS_KEY", "").strip(),
        bucket=os.environ.get("HUAWEI_OBS_BUCKET", "").strip(),
        endpoint=os.environ.get("HUAWEI_OBS_ENDPOINT", "").strip(),
        prefix=_env_optional("HUAWEI_OBS_PREFIX"),
        security_token=_env_optional("HUAWEI_OBS_SECURITY_TOKEN"),
        retry_attempts=int(os.environ.get("HUAWEI_OBS_RETRY_ATTEMPTS", "3")),
        retry_delay_seconds=float(os.environ.get("HUAWEI_OBS_RETRY_DELAY", "1")),
        auth_cache_ttl_seconds=float(os.environ.get("HUAWEI_OBS_AUTH_CACHE_TTL", "300")),
        list_page_size=int(os.environ.get("HUAWEI_OBS_LIST_PAGE_SIZE", "1000")),
        max_list_iterations=int(os.environ.get("HUAWEI_OBS_MAX_LIST_ITERATIONS", "100")),
        ssl_verify=_env_flag("HUAWEI_OBS_SSL_VERIFY", "true") if _env_optional("HUAWEI_OBS_SSL_VERIFY") else None,
        signature=_env_optional("HUAWEI_OBS_SIGNATURE"),
        path_style=_env_flag("HUAWEI_OBS_PATH_STYLE", "false") if _env_optional("HUAWEI_OBS_PATH_STYLE") else None,
        region=_env_optional("HUAWEI_OBS_REGION"),
        max_retry_count=_env_optional_int("HUAWEI_OBS_MAX_RETRY_COUNT"),
        timeout=_env_optional_int("HUAWEI_OBS_TIMEOUT"),
        is_cname=_env_flag("HUAWEI_OBS_IS_CNAME", "false") if _env_optional("HUAWEI_OBS_IS_CNAME") else None,
        logging_enabled=_env_flag("HUAWEI_OBS_LOGGING_ENABLED", "false"),
        log_operations=_env_flag("HUAWEI_OBS_LOG_OPERATIONS", "false"),
        log_errors=_env_flag("HUAWEI_OBS_LOG_ERRORS", "true"),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        log_format=os.environ.get("LOG_FORMAT", "json"),
        log_file_path=_env_optional("LOG_FILE_PATH"),
    )

    config.validate()
    return config
