"""In-memory description of the CRM record an embedded view is attached to.

A ``HostContext`` lives exactly as long as one embedded view. It starts empty and
not ready; the resolver fills in the identity at most once and flips ``ready``
exactly once, whether resolution succeeded or not.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Mapping

DEMO_ENTITY_ID: Final[str] = "DEMO-001"
DEMO_DOMAIN: Final[str] = "demo.bitrix24.ru"
DEMO_MEMBER_ID: Final[str] = "demo-member"


class ResolutionOutcome(StrEnum):
    RESOLVED = "resolved"
    DEMO = "demo"
    FAILED = "failed"


class ViewState(StrEnum):
    """What the embedding UI should render for a given context."""

    LOADING = "loading"
    ENTITY_NOT_FOUND = "entity_not_found"
    DEMO_NOTICE = "demo_notice"
    READY = "ready"


@dataclass(slots=True, frozen=True)
class HostAuth:
    access_token: str | None = None
    expires_in: int | None = None
    member_id: str | None = None
    domain: str | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> HostAuth:
        return cls(
            access_token=_optional_str(payload.get("access_token")),
            expires_in=_optional_int(payload.get("expires_in")),
            member_id=_optional_str(payload.get("member_id")),
            domain=_optional_str(payload.get("domain")),
        )


@dataclass(slots=True, frozen=True)
class Diagnostics:
    """Raw signals examined during resolution; for display only."""

    pathname: str
    referrer: str
    options: Mapping[str, object] = field(default_factory=dict)
    placement: str = ""
    window_name: str | None = None
    extraction_method: str | None = None
    attempts: int = 0

    def as_dict(self) -> dict[str, object]:
        return {
            "pathname": self.pathname,
            "referrer": self.referrer,
            "options": dict(self.options),
            "placement": self.placement,
            "window_name": self.window_name,
            "extraction_method": self.extraction_method,
            "attempts": self.attempts,
        }


@dataclass(slots=True)
class HostContext:
    entity_id: str | None = None
    entity_type_id: str | None = None
    domain: str | None = None
    auth: HostAuth = field(default_factory=HostAuth)
    ready: bool = False
    error: str | None = None
    diagnostics: Diagnostics | None = None
    outcome: ResolutionOutcome | None = None

    @property
    def member_id(self) -> str | None:
        return self.auth.member_id

    @property
    def view_state(self) -> ViewState:
        if not self.ready:
            return ViewState.LOADING
        if self.error and not self.entity_id:
            return ViewState.ENTITY_NOT_FOUND
        if self.error:
            return ViewState.DEMO_NOTICE
        return ViewState.READY

    def set_entity_id(self, value: str | None) -> bool:
        """Store the record id once; later calls are no-ops."""

        if self.entity_id is not None or not value:
            return False
        self.entity_id = value
        return True

    def set_entity_type_id(self, value: str | None) -> bool:
        if self.entity_type_id is not None or not value:
            return False
        self.entity_type_id = value
        return True

    def mark_ready(
        self,
        *,
        outcome: ResolutionOutcome,
        error: str | None = None,
    ) -> bool:
        if self.ready:
            return False
        self.outcome = outcome
        self.error = error
        self.ready = True
        return True

    def as_dict(self) -> dict[str, object]:
        return {
            "entity_id": self.entity_id,
            "entity_type_id": self.entity_type_id,
            "domain": self.domain,
            "member_id": self.auth.member_id,
            "expires_in": self.auth.expires_in,
            "ready": self.ready,
            "outcome": self.outcome.value if self.outcome else None,
            "view_state": self.view_state.value,
            "error": self.error,
            "diagnostics": self.diagnostics.as_dict() if self.diagnostics else None,
        }


def _optional_str(value: object) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _optional_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        return int(value)
    return None


__all__ = [
    "DEMO_DOMAIN",
    "DEMO_ENTITY_ID",
    "DEMO_MEMBER_ID",
    "Diagnostics",
    "HostAuth",
    "HostContext",
    "ResolutionOutcome",
    "ViewState",
]
