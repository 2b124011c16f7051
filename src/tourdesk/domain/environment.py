"""Browser-side signals available to an embedded view."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import parse_qsl, urlsplit


def first_query_values(query: str) -> dict[str, str]:
    """Map each query parameter name to its first value, like ``URLSearchParams.get``."""

    params: dict[str, str] = {}
    for name, value in parse_qsl(query, keep_blank_values=True):
        params.setdefault(name, value)
    return params


@dataclass(slots=True, frozen=True)
class EmbeddingEnvironment:
    """Current URL, referrer and window name of the embedded iframe.

    ``url`` may be absolute or relative to the application root, e.g.
    ``/303/?IFRAME=Y&IFRAME_TYPE=SIDE_SLIDER``. ``viewport`` is the inner window
    size used for the host's auto-resize hint.
    """

    url: str
    referrer: str = ""
    window_name: str = ""
    viewport: tuple[int, int] | None = None

    @property
    def pathname(self) -> str:
        try:
            return urlsplit(self.url).path
        except ValueError:
            return ""

    @property
    def query(self) -> dict[str, str]:
        try:
            return first_query_values(urlsplit(self.url).query)
        except ValueError:
            return {}
