"""Pydantic configuration models for the exporter."""

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from typing import Optional, Tuple


class TargetConfig(BaseModel):
    """The NAS instance being monitored."""
    model_config = ConfigDict(frozen=True)

    nas_instance_id: str = Field(min_length=1)
    region: str = Field(default="jp-east-1", min_length=1)


class CredentialsConfig(BaseModel):
    """Static API credentials."""
    model_config = ConfigDict(frozen=True)

    access_key_id: str = Field(min_length=1)
    secret_access_key: SecretStr

    @field_validator('secret_access_key')
    @classmethod
    def secret_not_empty(cls, v: SecretStr) -> SecretStr:
        """Reject an empty secret (e.g. an unset ${ENV} placeholder)."""
        if not v.get_secret_value():
            raise ValueError('secret_access_key must not be empty')
        return v


class WebConfig(BaseModel):
    """HTTP exposition settings."""
    model_config = ConfigDict(frozen=True)

    listen_address: str = ":9123"
    telemetry_path: str = "/metrics"
    disable_exporter_metrics: bool = False
    max_requests: int = Field(default=40, ge=0)  # 0 disables the limit

    @field_validator('listen_address')
    @classmethod
    def validate_listen_address(cls, v: str) -> str:
        """Require host:port (host may be empty)."""
        host, sep, port = v.rpartition(':')
        if not sep or not port.isdigit() or not 0 <= int(port) <= 65535:
            raise ValueError('listen_address must look like "host:port" or ":port"')
        return v

    @field_validator('telemetry_path')
    @classmethod
    def validate_telemetry_path(cls, v: str) -> str:
        """Telemetry path must be absolute and not the landing page."""
        if not v.startswith('/') or v == '/':
            raise ValueError('telemetry_path must start with "/" and not be "/"')
        return v

    def bind_address(self) -> Tuple[str, int]:
        """
        Split listen_address into a bindable (host, port) pair.

        Returns:
            Tuple[str, int]: Host ("" means all interfaces) and port
        """
        host, _, port = self.listen_address.rpartition(':')
        return host.strip('[]'), int(port)


class FetchConfig(BaseModel):
    """Statistics query settings."""
    model_config = ConfigDict(frozen=True)

    window_seconds: int = Field(default=180, ge=1)
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    endpoint_url: Optional[str] = None  # May contain "{region}"

    @field_validator('endpoint_url')
    @classmethod
    def validate_endpoint_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate URL format."""
        if v is not None and not v.startswith(('http://', 'https://')):
            raise ValueError('endpoint_url must start with http:// or https://')
        return v


class ExporterConfig(BaseModel):
    """Root configuration model for the exporter."""
    model_config = ConfigDict(frozen=True)

    target: TargetConfig
    credentials: CredentialsConfig
    web: WebConfig = Field(default_factory=WebConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
