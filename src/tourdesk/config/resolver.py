"""Host-context resolver settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import env_flag, env_float, optional_env_var
from .errors import ConfigurationError

DEFAULT_MAX_ATTEMPTS: Final[int] = 3
DEFAULT_RETRY_DELAY_SECONDS: Final[float] = 0.1
DEFAULT_SDK_WAIT_SECONDS: Final[float] = 10.0
DEFAULT_SDK_POLL_INTERVAL_SECONDS: Final[float] = 0.1
DEFAULT_ENTITY_TYPE_ID: Final[str] = "176"
DEFAULT_DEMO_PATH_PREFIX: Final[str] = "/demo"
SUPPORTED_LANGUAGES: Final[frozenset[str]] = frozenset({"en", "ru"})


@dataclass(frozen=True, slots=True)
class ResolverConfig:
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS
    sdk_wait_seconds: float = DEFAULT_SDK_WAIT_SECONDS
    sdk_poll_interval_seconds: float = DEFAULT_SDK_POLL_INTERVAL_SECONDS
    override_entity_id: str | None = None
    override_entity_type_id: str = DEFAULT_ENTITY_TYPE_ID
    demo_fallback: bool = False
    demo_path_prefix: str | None = DEFAULT_DEMO_PATH_PREFIX
    auto_resize: bool = True
    language: str = "en"

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        if self.sdk_poll_interval_seconds <= 0:
            raise ConfigurationError("sdk_poll_interval_seconds must be positive")
        if self.language not in SUPPORTED_LANGUAGES:
            raise ConfigurationError(f"Unsupported language: {self.language}")


def get_resolver_config() -> ResolverConfig:
    return ResolverConfig(
        sdk_wait_seconds=env_float("TOURDESK_SDK_WAIT_SECONDS", default=DEFAULT_SDK_WAIT_SECONDS),
        override_entity_id=optional_env_var("TOURDESK_DEV_ENTITY_ID"),
        demo_fallback=env_flag("TOURDESK_DEMO_FALLBACK"),
        language=(optional_env_var("TOURDESK_LANG") or "en").lower(),
    )
