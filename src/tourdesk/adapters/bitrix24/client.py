"""HTTP client for the Bitrix24 REST API."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from tourdesk.adapters.http_resilience import ResilientClient

from .schema import RestResponse
from .translator import contact_fields, contact_update_fields, decode_tour_route, encode_tour_route

if TYPE_CHECKING:
    from collections.abc import Callable

    from tourdesk.config.bitrix24 import Bitrix24Config
    from tourdesk.config.http_resilience import ResilienceConfig
    from tourdesk.domain.tourists import Tourist

log = getLogger(__name__)

type ClientFactory = Callable[[ResilienceConfig], ResilientClient]


class Bitrix24APIError(RuntimeError):
    """Raised when a Bitrix24 REST call fails or returns an error payload."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        method: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.method = method


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class Bitrix24Client:
    """Low-level REST client.

    Works against an incoming-webhook URL (the token is part of the URL) or
    against ``https://<portal>/rest/`` with an OAuth ``auth_token`` taken from a
    placement request.
    """

    def __init__(
        self,
        resilience: ResilienceConfig,
        *,
        auth_token: str | None = None,
        tour_route_field: str | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._resilience = resilience
        self._auth_token = auth_token
        self._tour_route_field = tour_route_field
        self._client_factory = client_factory or _default_client_factory

    @classmethod
    def from_config(
        cls,
        config: Bitrix24Config,
        *,
        client_factory: ClientFactory | None = None,
    ) -> Bitrix24Client:
        return cls(
            config.resilience,
            tour_route_field=config.tour_route_field,
            client_factory=client_factory,
        )

    def call_sync(self, method: str, params: Mapping[str, object] | None = None) -> object:
        return asyncio.run(self.call(method, params))

    async def call(self, method: str, params: Mapping[str, object] | None = None) -> object:
        payload: dict[str, object] = dict(params or {})
        if self._auth_token:
            payload["auth"] = self._auth_token

        async with self._client_factory(self._resilience) as client:
            try:
                response = await client.post(method, json=payload)
            except httpx.HTTPError as exc:
                log.error("Bitrix24 API call failed (%s): %s", method, exc)
                raise Bitrix24APIError(f"Bitrix24 API call failed: {exc}", method=method) from exc
        return self._parse_response(method, response)

    def _parse_response(self, method: str, response: httpx.Response) -> object:
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get("error"):
            parsed = self._validate(method, body)
            message = parsed.error_description or parsed.error or "unknown error"
            log.error("Bitrix24 error on %s: %s", method, message)
            raise Bitrix24APIError(f"Bitrix24 error: {message}", code=parsed.error, method=method)

        if response.is_error:
            log.error("Bitrix24 API call failed (%s): HTTP %s", method, response.status_code)
            raise Bitrix24APIError(
                f"Bitrix24 API error: {response.status_code} {response.reason_phrase}",
                method=method,
            )

        if not isinstance(body, dict):
            raise Bitrix24APIError("Unexpected Bitrix24 response payload", method=method)

        return self._validate(method, body).result

    def _validate(self, method: str, body: dict[str, object]) -> RestResponse:
        try:
            return RestResponse.model_validate(body)
        except ValidationError as exc:
            log.error("Malformed Bitrix24 response on %s: %s", method, exc)
            raise Bitrix24APIError("Unexpected Bitrix24 response payload", method=method) from exc

    async def create_contact(self, tourist: Tourist) -> str:
        contact_id = await self.call("crm.contact.add", {"fields": contact_fields(tourist)})
        return str(contact_id)

    async def update_contact(self, contact_id: str, changes: Mapping[str, str | None]) -> None:
        await self.call(
            "crm.contact.update",
            {"id": contact_id, "fields": contact_update_fields(changes)},
        )

    async def update_contact_user_fields(
        self,
        contact_id: str,
        user_fields: Mapping[str, object],
    ) -> None:
        await self.call("crm.contact.update", {"id": contact_id, "fields": dict(user_fields)})

    async def get_contact(self, contact_id: str) -> Mapping[str, object]:
        return _as_mapping(await self.call("crm.contact.get", {"id": contact_id}))

    async def delete_contact(self, contact_id: str) -> None:
        await self.call("crm.contact.delete", {"id": contact_id})

    async def link_contact_to_entity(
        self,
        entity_id: str,
        entity_type_id: str,
        contact_id: str,
    ) -> None:
        await self.call(
            "crm.item.contact.add",
            {
                "entityTypeId": int(entity_type_id),
                "id": int(entity_id),
                "fields": {"CONTACT_ID": int(contact_id)},
            },
        )

    async def get_entity(self, entity_id: str, entity_type_id: str) -> Mapping[str, object]:
        result = await self.call(
            "crm.item.get",
            {"entityTypeId": int(entity_type_id), "id": int(entity_id)},
        )
        return _unwrap_item(result)

    async def update_entity_user_fields(
        self,
        entity_id: str,
        entity_type_id: str,
        route: object,
    ) -> None:
        if not self._tour_route_field:
            log.warning("UF_CRM_TOUR_ROUTE not configured; tour route not stored")
            return
        await self.call(
            "crm.item.update",
            {
                "entityTypeId": int(entity_type_id),
                "id": int(entity_id),
                "fields": {self._tour_route_field: encode_tour_route(route)},
            },
        )

    async def get_entity_user_fields(self, entity_id: str, entity_type_id: str) -> object | None:
        item = await self.get_entity(entity_id, entity_type_id)
        return decode_tour_route(item, self._tour_route_field)

    async def get_deal(self, deal_id: str) -> Mapping[str, object]:
        return _as_mapping(await self.call("crm.deal.get", {"id": deal_id}))

    async def list_deals(self, filter_: Mapping[str, object] | None = None) -> list[object]:
        result = await self.call(
            "crm.deal.list",
            {"filter": dict(filter_ or {}), "select": ["*", "UF_*"]},
        )
        return list(result) if isinstance(result, list) else []


def _as_mapping(value: object) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        return value
    raise Bitrix24APIError("Unexpected Bitrix24 result shape")


def _unwrap_item(value: object) -> Mapping[str, object]:
    mapping = _as_mapping(value)
    item = mapping.get("item")
    return item if isinstance(item, Mapping) else mapping
