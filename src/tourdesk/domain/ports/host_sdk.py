"""Port describing the host platform's embedding SDK."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(slots=True, frozen=True)
class PlacementInfo:
    """What the host reports about where the application was embedded."""

    placement: str = ""
    options: Mapping[str, object] = field(default_factory=dict)
    entity_id: str | None = None
    entity_type_id: str | None = None


@runtime_checkable
class HostCallResult(Protocol):
    """Result object handed to ``call_method`` callbacks."""

    def error(self) -> str | None: ...

    def data(self) -> object: ...


HostCallback = Callable[[HostCallResult], None]


@runtime_checkable
class HostSdk(Protocol):
    """Capabilities the embedded application consumes from the host."""

    def init(self, callback: Callable[[], None]) -> None: ...

    def placement_info(self) -> PlacementInfo: ...

    def get_auth(self) -> Mapping[str, object]: ...

    def get_domain(self) -> str: ...

    def call_method(
        self,
        method: str,
        params: Mapping[str, object],
        callback: HostCallback,
    ) -> None: ...

    def resize_window(self, width: int, height: int) -> None: ...


type SdkProbe = Callable[[], HostSdk | None]


__all__ = ["HostCallResult", "HostCallback", "HostSdk", "PlacementInfo", "SdkProbe"]
