"""Configuration loading from environment variables."""

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, field_validator

from fetchgate.ports.settings import RequestConfig

__all__ = ["Settings", "load_settings"]

load_dotenv()

logger = logging.getLogger(__name__)
_http_url_adapter = TypeAdapter(HttpUrl)


def _validate_optional_url(v: str, name: str) -> str:
    if not v:
        return v
    try:
        url = _http_url_adapter.validate_python(v)
        if url.scheme not in ("http", "https"):
            raise ValueError("Only http:// and https:// URLs allowed")
    except Exception as e:
        raise ValueError(f"Invalid {name}: {e}") from e
    return v


class Settings(BaseModel):
    """Runtime configuration for the request orchestrator and poller.

    Attributes:
        base_url: Prefix for relative request paths.
        timeout_sec: Default request timeout in seconds.
        res_mark: Name of the success broadcast channel.
        err_mark: Name of the error broadcast channel.
        poll_url: URL the poll batches are sent to.
        poll_interval_sec: Base tick of the polling scheduler.
        poll_method: Method name put in every poll batch envelope.
        compress_len_limit: JSON length above which payloads are compressed.
    """

    base_url: str = Field(default="", description="Prefix for relative request paths.")
    timeout_sec: float = Field(default=10, gt=0, description="Default request timeout.")
    res_mark: str = Field(default="onRes", min_length=1)
    err_mark: str = Field(default="onErr", min_length=1)
    poll_url: str = Field(default="", description="Target of the batched poll requests.")
    poll_interval_sec: float = Field(default=2, gt=0, description="Base poll tick in seconds.")
    poll_method: str = Field(default="poll", min_length=1)
    compress_len_limit: int = Field(default=2048, gt=0)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate that the base URL (if provided) is an HTTP(S) URL.

        Raises:
            ValueError: If URL is invalid.
        """
        return _validate_optional_url(v, "base URL")

    @field_validator("poll_url")
    @classmethod
    def validate_poll_url(cls, v: str) -> str:
        """Validate the poll URL; relative paths resolve against base_url.

        Raises:
            ValueError: If an absolute URL is invalid.
        """
        if v.startswith("/") and not v.startswith("//"):
            return v
        return _validate_optional_url(v, "poll URL")

    def to_request_config(self) -> RequestConfig:
        return RequestConfig(
            base_url=self.base_url,
            timeout=self.timeout_sec,
            res_mark=self.res_mark,
            err_mark=self.err_mark,
        )


_ENV_FIELDS = {
    "REQUEST_BASE_URL": "base_url",
    "REQUEST_TIMEOUT_SEC": "timeout_sec",
    "REQUEST_RES_MARK": "res_mark",
    "REQUEST_ERR_MARK": "err_mark",
    "POLL_URL": "poll_url",
    "POLL_INTERVAL_SEC": "poll_interval_sec",
    "POLL_METHOD": "poll_method",
    "COMPRESS_LEN_LIMIT": "compress_len_limit",
}

_NUMERIC_ENV = {
    "REQUEST_TIMEOUT_SEC": float,
    "POLL_INTERVAL_SEC": float,
    "COMPRESS_LEN_LIMIT": int,
}


def load_settings() -> Settings:
    """Load and validate settings from the environment (and a .env file).

    All variables are optional: REQUEST_BASE_URL, REQUEST_TIMEOUT_SEC,
    REQUEST_RES_MARK, REQUEST_ERR_MARK, POLL_URL, POLL_INTERVAL_SEC,
    POLL_METHOD, COMPRESS_LEN_LIMIT.

    Returns:
        Validated Settings object.

    Raises:
        RuntimeError: If a numeric variable cannot be parsed.
        ValueError: If a value fails validation.
    """
    values: dict[str, object] = {}
    for env_name, field_name in _ENV_FIELDS.items():
        raw = os.getenv(env_name)
        if raw is None or raw == "":
            continue
        convert = _NUMERIC_ENV.get(env_name)
        if convert is None:
            values[field_name] = raw
            continue
        try:
            values[field_name] = convert(raw)
        except ValueError as e:
            raise RuntimeError(f"{env_name} must be a {convert.__name__} (got: {raw})") from e

    settings = Settings(**values)

    logger.info(
        f"fetchgate configured: base_url={settings.base_url or '<unset>'}, "
        f"timeout={settings.timeout_sec}s, "
        f"poll_url={settings.poll_url or '<unset>'}, "
        f"poll_interval={settings.poll_interval_sec}s"
    )

    return settings
