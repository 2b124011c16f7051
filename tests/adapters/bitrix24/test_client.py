from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from tourdesk.adapters.bitrix24 import Bitrix24APIError, Bitrix24Client
from tourdesk.config import Bitrix24Config
from tourdesk.domain.tourists import Tourist
from tests.support.bitrix24 import (
    WEBHOOK_URL,
    RecordingTransport,
    result_handler,
    webhook_resilience,
)


def _client(transport: RecordingTransport, **kwargs: object) -> Bitrix24Client:
    return Bitrix24Client(
        webhook_resilience(),
        client_factory=transport.client_factory,
        **kwargs,  # type: ignore[arg-type]
    )


def test_call_posts_json_to_method_path() -> None:
    transport = RecordingTransport(result_handler({"ok": True}))

    result = _client(transport).call_sync("crm.item.get", {"entityTypeId": 176, "id": 5})

    assert result == {"ok": True}
    request = transport.requests[0]
    assert request.method == "POST"
    assert str(request.url) == f"{WEBHOOK_URL}crm.item.get"
    assert transport.payload() == {"entityTypeId": 176, "id": 5}


def test_oauth_token_is_sent_as_auth_parameter() -> None:
    transport = RecordingTransport(result_handler([]))

    _client(transport, auth_token="oauth-token").call_sync("placement.get")

    assert transport.payload() == {"auth": "oauth-token"}


def test_error_payload_raises_with_description() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={"error": "NOT_FOUND", "error_description": "Not found"},
        )

    transport = RecordingTransport(handler)

    with pytest.raises(Bitrix24APIError) as excinfo:
        _client(transport).call_sync("crm.contact.get", {"id": 1})

    assert str(excinfo.value) == "Bitrix24 error: Not found"
    assert excinfo.value.code == "NOT_FOUND"
    assert excinfo.value.method == "crm.contact.get"


def test_http_error_without_payload() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="Forbidden")

    transport = RecordingTransport(handler)

    with pytest.raises(Bitrix24APIError, match="Bitrix24 API error: 403 Forbidden"):
        _client(transport).call_sync("crm.deal.list")


def test_unexpected_body_is_rejected() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["not", "a", "dict"])

    transport = RecordingTransport(handler)

    with pytest.raises(Bitrix24APIError, match="Unexpected"):
        _client(transport).call_sync("crm.deal.list")


def test_malformed_envelope_is_rejected() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"result": [], "total": "many"})

    transport = RecordingTransport(handler)

    with pytest.raises(Bitrix24APIError, match="Unexpected") as excinfo:
        _client(transport).call_sync("crm.deal.list")

    assert excinfo.value.method == "crm.deal.list"


def test_transport_failure_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = RecordingTransport(handler)

    with pytest.raises(Bitrix24APIError, match="call failed"):
        _client(transport).call_sync("crm.deal.list")


def test_create_contact_and_link() -> None:
    responses = iter([{"result": 901}, {"result": True}])

    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=next(responses))

    transport = RecordingTransport(handler)
    client = _client(transport)

    async def scenario() -> str:
        contact_id = await client.create_contact(
            Tourist(name="Ivan Petrov", email="ivan@example.com")
        )
        await client.link_contact_to_entity("303", "176", contact_id)
        return contact_id

    contact_id = asyncio.run(scenario())

    assert contact_id == "901"
    assert transport.methods == ["crm.contact.add", "crm.item.contact.add"]
    assert transport.payload(0)["fields"] == {
        "NAME": "Ivan",
        "LAST_NAME": "Petrov",
        "EMAIL": [{"VALUE": "ivan@example.com", "VALUE_TYPE": "WORK"}],
        "PHONE": [],
    }
    assert transport.payload(1) == {
        "entityTypeId": 176,
        "id": 303,
        "fields": {"CONTACT_ID": 901},
    }


def test_update_contact_sends_only_changes() -> None:
    transport = RecordingTransport(result_handler(True))

    asyncio.run(_client(transport).update_contact("12", {"phone": None}))

    assert transport.payload() == {"id": "12", "fields": {"PHONE": []}}


def test_get_entity_unwraps_item() -> None:
    transport = RecordingTransport(result_handler({"item": {"id": 303, "title": "Altai"}}))

    item = asyncio.run(_client(transport).get_entity("303", "176"))

    assert item == {"id": 303, "title": "Altai"}


def test_tour_route_round_trips_through_user_field() -> None:
    route = [{"city": "Казань", "days": 2}]
    stored: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        method = request.url.path.rsplit("/", 1)[-1]
        if method == "crm.item.update":
            stored.update(json.loads(request.content)["fields"])
            return httpx.Response(200, json={"result": {"item": {"id": 303}}})
        return httpx.Response(200, json={"result": {"item": {"id": 303, **stored}}})

    transport = RecordingTransport(handler)
    client = _client(transport, tour_route_field="UF_CRM_TOUR_ROUTE")

    async def scenario() -> object:
        await client.update_entity_user_fields("303", "176", route)
        return await client.get_entity_user_fields("303", "176")

    assert asyncio.run(scenario()) == route
    assert isinstance(stored["UF_CRM_TOUR_ROUTE"], str)


def test_tour_route_skipped_without_configured_field() -> None:
    transport = RecordingTransport(result_handler(True))

    asyncio.run(_client(transport).update_entity_user_fields("303", "176", []))

    assert transport.requests == []


def test_list_deals_selects_user_fields() -> None:
    transport = RecordingTransport(result_handler([{"ID": "1"}]))

    deals = asyncio.run(_client(transport).list_deals({"STAGE_ID": "NEW"}))

    assert deals == [{"ID": "1"}]
    assert transport.payload() == {"filter": {"STAGE_ID": "NEW"}, "select": ["*", "UF_*"]}


def test_from_config_uses_webhook_resilience() -> None:
    transport = RecordingTransport(result_handler({"ID": "7"}))
    config = Bitrix24Config(webhook_url=WEBHOOK_URL, resilience=webhook_resilience())

    client = Bitrix24Client.from_config(config, client_factory=transport.client_factory)
    deal = asyncio.run(client.get_deal("7"))

    assert deal == {"ID": "7"}
    assert str(transport.requests[0].url) == f"{WEBHOOK_URL}crm.deal.get"
