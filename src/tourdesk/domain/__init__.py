"""Domain layer: host-context resolution for the embedded CRM application."""

from __future__ import annotations

from .environment import EmbeddingEnvironment
from .errors import (
    EntityNotResolvedError,
    HostCallError,
    HostContextError,
    ResolutionCancelledError,
    SdkUnavailableError,
    UrlParseError,
)
from .host_calls import call_host_method
from .host_context import (
    DEMO_ENTITY_ID,
    Diagnostics,
    HostAuth,
    HostContext,
    ResolutionOutcome,
    ViewState,
)
from .resolver import ContextResolver

__all__ = [
    "DEMO_ENTITY_ID",
    "ContextResolver",
    "Diagnostics",
    "EmbeddingEnvironment",
    "EntityNotResolvedError",
    "HostAuth",
    "HostCallError",
    "HostContext",
    "HostContextError",
    "ResolutionCancelledError",
    "ResolutionOutcome",
    "SdkUnavailableError",
    "UrlParseError",
    "ViewState",
    "call_host_method",
]
