"""
Configuration for Zoho API services.

Each Zoho service (CRM, Desk, WorkDrive, ...) has its own OAuth client
credentials. They are read from environment variables at call time, so the
same code runs unchanged across environments:

    ZOHO_<SERVICE>_CLIENT_ID
    ZOHO_<SERVICE>_CLIENT_SECRET
    ZOHO_<SERVICE>_REFRESH_TOKEN   (optional)
    ZOHO_<SERVICE>_ORG_ID          (optional, Desk)
    ZOHO_<SERVICE>_REGION          (optional, defaults to "in")

For CRM the unprefixed ``ZOHO_CLIENT_ID`` / ``ZOHO_CLIENT_SECRET`` / ...
variables are accepted as a fallback.

Client-wide tunables (timeouts, retry defaults, token TTL) live in
:class:`ClientSettings`.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Mapping, Optional, Union

from pydantic import BaseModel, Field, field_validator

from . import regions
from .recovery.retry import RetryPolicy
from .regions import Region
from .runtime.errors import ConfigurationError


class Service(str, Enum):
    """Logical Zoho services with independent credentials."""
    CRM = "crm"
    DESK = "desk"
    WORKDRIVE = "workdrive"
    RECRUIT = "recruit"
    BOOKINGS = "bookings"
    PROJECTS = "projects"
    MEETING = "meeting"
    CLIQ = "cliq"


ServiceLike = Union[Service, str]

_FIELDS = ("client_id", "client_secret", "refresh_token", "org_id", "region")


class ServiceConfig(BaseModel):
    """OAuth credentials for one service."""
    client_id: str = Field(min_length=1)
    client_secret: str = Field(min_length=1)
    refresh_token: Optional[str] = None
    org_id: Optional[str] = None
    region: Optional[Region] = None

    model_config = {"frozen": True}

    @field_validator("region", mode="before")
    @classmethod
    def _check_region(cls, value):
        if value is None:
            return None
        if not regions.is_valid(value):
            raise ValueError(f"unknown region {value!r}")
        return Region(value)

    @property
    def effective_region(self) -> Region:
        return self.region or regions.DEFAULT_REGION


def to_service(service: ServiceLike) -> Service:
    """
    Normalize a service name.

    Raises:
        ConfigurationError: If the service is unknown
    """
    try:
        return Service(service)
    except ValueError:
        valid = ", ".join(s.value for s in Service)
        raise ConfigurationError(
            f"Invalid service {service!r}. Must be one of: {valid}",
            details={"service": str(service)},
        ) from None


def _env_value(environ: Mapping[str, str], name: str) -> Optional[str]:
    if name not in environ:
        return None
    value = environ[name]
    if value == "":
        raise ConfigurationError(
            f"Environment variable '{name}' is set but empty. "
            "Please provide a valid value for your Zoho API configuration.",
            details={"variable": name},
        )
    return value


def get_config(service: ServiceLike = Service.CRM,
               environ: Optional[Mapping[str, str]] = None) -> ServiceConfig:
    """
    Return the credentials for a service.

    Args:
        service: Logical service name
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        Validated service configuration

    Raises:
        ConfigurationError: If the service is unknown or credentials are missing
    """
    svc = to_service(service)
    environ = os.environ if environ is None else environ

    prefixes = [f"ZOHO_{svc.value.upper()}_"]
    if svc is Service.CRM:
        prefixes.append("ZOHO_")

    values: Dict[str, Optional[str]] = {}
    for prefix in prefixes:
        candidate = {f: _env_value(environ, f"{prefix}{f.upper()}") for f in _FIELDS}
        if candidate["client_id"] is not None or candidate["client_secret"] is not None:
            values = candidate
            break

    if not values.get("client_id") or not values.get("client_secret"):
        raise ConfigurationError(
            f"Configuration for Zoho {svc.value} is not defined. "
            f"Set ZOHO_{svc.value.upper()}_CLIENT_ID and ZOHO_{svc.value.upper()}_CLIENT_SECRET.",
            details={"service": svc.value},
        )

    try:
        return ServiceConfig(**values)
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration for Zoho {svc.value}: {e}",
                                 details={"service": svc.value}) from e


CredentialsSource = Callable[[ServiceLike], ServiceConfig]


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"Environment variable '{name}' must be an integer, got {raw!r}",
                                 details={"variable": name}) from None


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw in (None, ""):
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"Environment variable '{name}' must be a number, got {raw!r}",
                                 details={"variable": name}) from None


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw in (None, ""):
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ClientSettings:
    """Client-wide settings."""

    http_timeout: float = 30.0
    retry_enabled: bool = True
    max_retries: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int = 30_000
    jitter: bool = True
    token_ttl_seconds: int = 3500
    token_refresh_timeout: float = 60.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> ClientSettings:
        """Build settings from ``ZOHO_*`` environment variables."""
        environ = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            http_timeout=_env_float(environ, "ZOHO_HTTP_TIMEOUT", defaults.http_timeout),
            retry_enabled=_env_bool(environ, "ZOHO_RETRY_ENABLED", defaults.retry_enabled),
            max_retries=_env_int(environ, "ZOHO_RETRY_MAX_RETRIES", defaults.max_retries),
            base_delay_ms=_env_int(environ, "ZOHO_RETRY_BASE_DELAY_MS", defaults.base_delay_ms),
            max_delay_ms=_env_int(environ, "ZOHO_RETRY_MAX_DELAY_MS", defaults.max_delay_ms),
            jitter=_env_bool(environ, "ZOHO_RETRY_JITTER", defaults.jitter),
            token_ttl_seconds=_env_int(environ, "ZOHO_TOKEN_TTL_SECONDS", defaults.token_ttl_seconds),
            token_refresh_timeout=_env_float(environ, "ZOHO_TOKEN_REFRESH_TIMEOUT",
                                             defaults.token_refresh_timeout),
        )

    def retry_policy(self) -> RetryPolicy:
        """Build the default retry policy from these settings."""
        return RetryPolicy(
            enabled=self.retry_enabled,
            max_retries=self.max_retries,
            base_delay_ms=self.base_delay_ms,
            max_delay_ms=self.max_delay_ms,
            jitter=self.jitter,
        )


__all__ = [
    "Service",
    "ServiceConfig",
    "CredentialsSource",
    "ClientSettings",
    "to_service",
    "get_config",
]
