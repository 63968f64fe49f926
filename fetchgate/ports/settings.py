"""Request configuration port definition (DTO)."""

from dataclasses import dataclass, field
from typing import Any

__all__ = ["RequestConfig"]


@dataclass
class RequestConfig:
    """Per-orchestrator request configuration.

    Decouples the orchestrator from concrete configuration sources, so it
    can be built from env settings or by hand in tests.

    Attributes:
        base_url: Prefix for relative request paths.
        common_headers: Headers sent with every request.
        transport_options: Extra options passed to every transport call.
        timeout: Default timeout in seconds (advisory to the transport).
        res_mark: Name of the success broadcast channel.
        err_mark: Name of the error broadcast channel.
    """

    base_url: str = ""
    common_headers: dict[str, str] = field(default_factory=dict)
    transport_options: dict[str, Any] = field(default_factory=dict)
    timeout: float = 10.0
    res_mark: str = "onRes"
    err_mark: str = "onErr"
