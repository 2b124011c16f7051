from __future__ import annotations

import pytest

from tourdesk.config import ResolverConfig

_ENVIRONMENT_VARIABLES = (
    "BITRIX24_WEBHOOK_URL",
    "TOURDESK_DEMO_FALLBACK",
    "TOURDESK_DEV_ENTITY_ID",
    "TOURDESK_LANG",
    "TOURDESK_LOG_LEVEL",
    "TOURDESK_SDK_WAIT_SECONDS",
    "UF_CRM_TOUR_ROUTE",
)


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENVIRONMENT_VARIABLES:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fast_config() -> ResolverConfig:
    """Resolver settings with timings short enough for unit tests."""

    return ResolverConfig(
        retry_delay_seconds=0.0,
        sdk_wait_seconds=0.05,
        sdk_poll_interval_seconds=0.01,
    )
