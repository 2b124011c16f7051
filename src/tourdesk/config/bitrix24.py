"""Bitrix24 REST configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger

from .env import optional_env_var, require_env_var
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

log = getLogger(__name__)

BITRIX24_TIMEOUT_SECONDS = 15.0
# Bitrix24 throttles REST traffic to roughly two requests per second per portal.
BITRIX24_RATE_LIMIT = RateLimit(max_calls=2, per_seconds=1.0)


@dataclass(frozen=True, slots=True)
class Bitrix24Config:
    """Holds the incoming-webhook REST configuration."""

    webhook_url: str
    resilience: ResilienceConfig
    tour_route_field: str | None = None


def bitrix24_resilience(base_url: str, *, name: str = "bitrix24") -> ResilienceConfig:
    if not base_url.endswith("/"):
        base_url = f"{base_url}/"
    return ResilienceConfig(
        name=name,
        base_url=base_url,
        timeout_seconds=BITRIX24_TIMEOUT_SECONDS,
        ratelimit=BITRIX24_RATE_LIMIT,
        retry=RetryPolicy(total=3),
    )


def portal_resilience(domain: str, *, protocol: str = "https") -> ResilienceConfig:
    """Resilience settings for OAuth calls against ``<protocol>://<domain>/rest/``."""

    return bitrix24_resilience(f"{protocol}://{domain}/rest/", name=f"bitrix24:{domain}")


def _build_config(webhook_url: str) -> Bitrix24Config:
    return Bitrix24Config(
        webhook_url=webhook_url,
        resilience=bitrix24_resilience(webhook_url),
        tour_route_field=optional_env_var("UF_CRM_TOUR_ROUTE"),
    )


def get_bitrix24_config() -> Bitrix24Config | None:
    """Return the webhook configuration, or ``None`` when the integration is disabled."""

    webhook_url = optional_env_var("BITRIX24_WEBHOOK_URL")
    if webhook_url is None:
        log.info("Bitrix24 integration disabled - BITRIX24_WEBHOOK_URL not set")
        return None
    return _build_config(webhook_url)


def require_bitrix24_config() -> Bitrix24Config:
    return _build_config(require_env_var("BITRIX24_WEBHOOK_URL"))
