"""Reusable fakes for the host SDK port."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tourdesk.domain.ports import PlacementInfo

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from tourdesk.domain.ports import HostCallback


@dataclass(slots=True)
class FakeCallResult:
    payload: object = None
    error_code: str | None = None
    description: str | None = None

    def error(self) -> str | None:
        return self.error_code

    def data(self) -> object:
        return self.payload

    def error_description(self) -> str | None:
        return self.description


@dataclass
class FakeHostSdk:
    """In-memory host SDK.

    ``placements`` is consumed one entry per ``placement_info`` call; the last
    entry repeats once the sequence is exhausted. An entry that is an exception
    instance is raised instead of returned.
    """

    placements: Sequence[PlacementInfo | Exception] = field(
        default_factory=lambda: [PlacementInfo()]
    )
    auth: Mapping[str, object] = field(default_factory=dict)
    domain: str = ""
    fire_init: bool = True
    call_results: dict[str, FakeCallResult] = field(default_factory=dict)
    call_error: Exception | None = None
    resize_error: Exception | None = None
    placement_calls: int = 0
    calls: list[tuple[str, dict[str, object]]] = field(default_factory=list)
    resizes: list[tuple[int, int]] = field(default_factory=list)
    init_callback: Callable[[], None] | None = None

    def init(self, callback: Callable[[], None]) -> None:
        self.init_callback = callback
        if self.fire_init:
            callback()

    def placement_info(self) -> PlacementInfo:
        index = min(self.placement_calls, len(self.placements) - 1)
        self.placement_calls += 1
        entry = self.placements[index]
        if isinstance(entry, Exception):
            raise entry
        return entry

    def get_auth(self) -> Mapping[str, object]:
        return self.auth

    def get_domain(self) -> str:
        return self.domain

    def call_method(
        self,
        method: str,
        params: Mapping[str, object],
        callback: HostCallback,
    ) -> None:
        self.calls.append((method, dict(params)))
        if self.call_error is not None:
            raise self.call_error
        callback(self.call_results.get(method, FakeCallResult()))

    def resize_window(self, width: int, height: int) -> None:
        if self.resize_error is not None:
            raise self.resize_error
        self.resizes.append((width, height))


def placement(
    placement_code: str = "",
    *,
    entity_id: str | None = None,
    entity_type_id: str | None = None,
    **options: object,
) -> PlacementInfo:
    return PlacementInfo(
        placement=placement_code,
        options=options,
        entity_id=entity_id,
        entity_type_id=entity_type_id,
    )
