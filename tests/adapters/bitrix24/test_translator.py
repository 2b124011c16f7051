from __future__ import annotations

from tourdesk.adapters.bitrix24 import contact_fields, contact_update_fields
from tourdesk.adapters.bitrix24.translator import decode_tour_route, encode_tour_route
from tourdesk.domain.tourists import Tourist


def test_contact_fields_split_name_and_multifields() -> None:
    fields = contact_fields(Tourist(name="Olga", phone="+79990001122"))

    assert fields == {
        "NAME": "Olga",
        "LAST_NAME": "",
        "EMAIL": [],
        "PHONE": [{"VALUE": "+79990001122", "VALUE_TYPE": "WORK"}],
    }


def test_update_fields_only_include_given_keys() -> None:
    assert contact_update_fields({"name": "Olga Ivanova"}) == {
        "NAME": "Olga",
        "LAST_NAME": "Ivanova",
    }
    assert contact_update_fields({"email": "olga@example.com"}) == {
        "EMAIL": [{"VALUE": "olga@example.com", "VALUE_TYPE": "WORK"}],
    }


def test_update_fields_clear_removed_contacts() -> None:
    assert contact_update_fields({"email": None, "phone": None}) == {"EMAIL": [], "PHONE": []}


def test_tour_route_encoding_keeps_unicode() -> None:
    encoded = encode_tour_route([{"city": "Сочи"}])

    assert "Сочи" in encoded
    assert decode_tour_route({"UF_CRM_TOUR_ROUTE": encoded}, "UF_CRM_TOUR_ROUTE") == [
        {"city": "Сочи"}
    ]


def test_tour_route_decoding_tolerates_bad_values() -> None:
    assert decode_tour_route({"UF": "{broken"}, "UF") is None
    assert decode_tour_route({"UF": ""}, "UF") is None
    assert decode_tour_route({"UF": "[]"}, None) is None
