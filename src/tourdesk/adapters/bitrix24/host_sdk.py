"""Server-side host SDK built from the placement request Bitrix24 sends."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from tourdesk.config.bitrix24 import portal_resilience
from tourdesk.domain.ports.host_sdk import HostCallback, PlacementInfo

from .client import Bitrix24APIError, Bitrix24Client, ClientFactory
from .schema import PlacementRequest

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class RestCallResult:
    """``call_method`` result with the accessor shape the host SDK uses."""

    payload: object = None
    error_code: str | None = None
    description: str | None = None

    def error(self) -> str | None:
        return self.error_code

    def data(self) -> object:
        return self.payload

    def error_description(self) -> str | None:
        return self.description


class RequestHostSdk:
    """``HostSdk`` backed by a received placement request.

    Everything the browser SDK would report is already in the request form, so
    ``init`` fires immediately. ``call_method`` performs the REST call with the
    request's OAuth token on the running event loop and hands the outcome to the
    callback.
    """

    def __init__(
        self,
        request: PlacementRequest,
        *,
        client: Bitrix24Client | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._request = request
        self._client = client or self._portal_client(request, client_factory)
        self._pending: set[asyncio.Task[None]] = set()
        self.resize_hint: tuple[int, int] | None = None

    @classmethod
    def from_form(
        cls,
        form: Mapping[str, object],
        *,
        client_factory: ClientFactory | None = None,
    ) -> RequestHostSdk:
        return cls(PlacementRequest.model_validate(dict(form)), client_factory=client_factory)

    @staticmethod
    def _portal_client(
        request: PlacementRequest,
        client_factory: ClientFactory | None,
    ) -> Bitrix24Client | None:
        if not request.domain:
            return None
        return Bitrix24Client(
            portal_resilience(request.domain, protocol=request.scheme),
            auth_token=request.auth_id,
            client_factory=client_factory,
        )

    @property
    def request(self) -> PlacementRequest:
        return self._request

    def init(self, callback: Callable[[], None]) -> None:
        callback()

    def placement_info(self) -> PlacementInfo:
        return PlacementInfo(
            placement=self._request.placement,
            options=dict(self._request.placement_options),
        )

    def get_auth(self) -> Mapping[str, object]:
        return {
            "access_token": self._request.auth_id,
            "expires_in": self._request.auth_expires,
            "member_id": self._request.member_id,
            "domain": self._request.domain,
        }

    def get_domain(self) -> str:
        return self._request.domain or ""

    def call_method(
        self,
        method: str,
        params: Mapping[str, object],
        callback: HostCallback,
    ) -> None:
        client = self._client
        if client is None:
            callback(RestCallResult(error_code="NO_PORTAL", description="request carries no DOMAIN"))
            return
        task = asyncio.get_running_loop().create_task(
            self._dispatch(client, method, dict(params), callback)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _dispatch(
        self,
        client: Bitrix24Client,
        method: str,
        params: dict[str, object],
        callback: HostCallback,
    ) -> None:
        try:
            result = await client.call(method, params)
        except Bitrix24APIError as exc:
            callback(RestCallResult(error_code=exc.code or "REQUEST_FAILED", description=str(exc)))
            return
        except Exception as exc:
            log.exception("Host call %s failed", method)
            callback(RestCallResult(error_code="REQUEST_FAILED", description=str(exc)))
            return
        callback(RestCallResult(payload=result))

    def resize_window(self, width: int, height: int) -> None:
        # The iframe lives in the browser; keep the hint for the rendered page.
        log.debug("resize_window(%s, %s)", width, height)
        self.resize_hint = (width, height)
