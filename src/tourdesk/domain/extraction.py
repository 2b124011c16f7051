"""Candidate-extraction strategies for the embedded record id.

Each strategy inspects one signal and returns a ``Candidate`` or ``None``.
Strategies are pure and independent; the resolver reduces them in priority order
with ``first_candidate``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final
from urllib.parse import SplitResult, urlsplit

from .environment import first_query_values
from .errors import UrlParseError

if TYPE_CHECKING:
    from .environment import EmbeddingEnvironment
    from .ports.host_sdk import PlacementInfo

log = getLogger(__name__)

OVERRIDE_QUERY_PARAM: Final[str] = "DEV_ENTITY_ID"
QUERY_ID_PARAMS: Final[tuple[str, ...]] = ("ENTITY_ID", "entityId", "ID", "id", "ITEM_ID", "itemId")
PLACEMENT_ID_FIELDS: Final[tuple[str, ...]] = (
    "ID",
    "ITEM_ID",
    "ELEMENT_ID",
    "ENTITY_ID",
    "id",
    "DEAL_ID",
)

_NUMERIC = re.compile(r"[0-9]+")
_DETAILS_SEGMENT = re.compile(r"/details/([0-9]+)")
_DYNAMIC_PLACEMENT = re.compile(r"CRM_DYNAMIC_([0-9]+)_DETAIL_TAB")


@dataclass(slots=True, frozen=True)
class Candidate:
    value: str
    method: str


type Strategy = Callable[[], Candidate | None]


def first_candidate(strategies: Iterable[Strategy]) -> Candidate | None:
    """Evaluate strategies lazily and return the first hit."""

    for strategy in strategies:
        candidate = strategy()
        if candidate is not None:
            return candidate
    return None


def is_numeric(value: str) -> bool:
    return bool(_NUMERIC.fullmatch(value))


def parse_url(value: str, *, absolute: bool = False) -> SplitResult:
    try:
        parts = urlsplit(value)
    except ValueError as exc:
        raise UrlParseError(value, str(exc)) from exc
    if absolute and not (parts.scheme and parts.netloc):
        raise UrlParseError(value, "not an absolute URL")
    return parts


def _segments(path: str) -> list[str]:
    return [segment for segment in path.split("/") if segment]


def entity_id_from_path(url: str) -> Candidate | None:
    """First purely numeric path segment, as the side slider puts it there."""

    try:
        path = parse_url(url).path
    except UrlParseError:
        log.debug("Current URL not parseable: %r", url)
        return None
    for segment in _segments(path):
        if is_numeric(segment):
            return Candidate(segment, f'path segment "{segment}"')
    return None


def entity_id_from_query(url: str) -> Candidate | None:
    try:
        query = parse_url(url).query
    except UrlParseError:
        log.debug("Current URL not parseable: %r", url)
        return None
    params = first_query_values(query)
    for name in QUERY_ID_PARAMS:
        value = params.get(name)
        if value and is_numeric(value):
            return Candidate(value, f'query parameter "{name}={value}"')
    return None


def entity_id_from_placement(info: PlacementInfo | None) -> Candidate | None:
    if info is None:
        return None
    for name in PLACEMENT_ID_FIELDS:
        value = info.options.get(name)
        if value:
            return Candidate(str(value), f"placement options {name}")
    if info.entity_id:
        return Candidate(str(info.entity_id), "placement entity_id")
    return None


def describe_window_name(name: str) -> None:
    """Log the window name.

    The host stores its own iframe identifier there, not the record id, so the
    value is never a candidate even when it looks numeric.
    """

    if name:
        log.debug("window.name=%r (diagnostic only)", name)


def entity_id_from_referrer(referrer: str) -> Candidate | None:
    if not referrer:
        return None
    try:
        path = parse_url(referrer, absolute=True).path
    except UrlParseError as exc:
        log.debug("Ignoring referrer: %s", exc)
        return None

    match = _DETAILS_SEGMENT.search(path)
    if match:
        return Candidate(match.group(1), "referrer /details/ segment")

    for segment in reversed(_segments(path)):
        if is_numeric(segment):
            return Candidate(segment, f'referrer path segment "{segment}"')
    return None


def entity_type_id_from_placement(info: PlacementInfo | None) -> str | None:
    if info is None:
        return None
    if info.placement:
        match = _DYNAMIC_PLACEMENT.search(info.placement)
        if match:
            return match.group(1)
    option_value = info.options.get("ENTITY_TYPE_ID")
    if option_value:
        return str(option_value)
    if info.entity_type_id:
        return str(info.entity_type_id)
    return None


def override_entity_id(environment: EmbeddingEnvironment, configured: str | None) -> str | None:
    """Development override: ``?DEV_ENTITY_ID=`` on the current URL, then configuration."""

    value = environment.query.get(OVERRIDE_QUERY_PARAM)
    if value:
        return value
    return configured or None


def entity_id_strategies(
    environment: EmbeddingEnvironment,
    placement: Callable[[], PlacementInfo | None],
) -> tuple[Strategy, ...]:
    """The extraction cascade in priority order for one attempt."""

    def window_name() -> None:
        describe_window_name(environment.window_name)

    return (
        lambda: entity_id_from_path(environment.url),
        lambda: entity_id_from_query(environment.url),
        lambda: entity_id_from_placement(placement()),
        window_name,
        lambda: entity_id_from_referrer(environment.referrer),
    )
