from __future__ import annotations

import pytest
from pydantic import ValidationError

from tourdesk.adapters.bitrix24 import PlacementRequest, RestResponse


def test_placement_request_parses_form_fields() -> None:
    request = PlacementRequest.model_validate(
        {
            "PLACEMENT": "CRM_DYNAMIC_176_DETAIL_TAB",
            "PLACEMENT_OPTIONS": '{"ID":"303","ENTITY_TYPE_ID":"176"}',
            "AUTH_ID": "token",
            "AUTH_EXPIRES": "3600",
            "DOMAIN": "portal.bitrix24.ru",
            "PROTOCOL": "1",
            "unknown": "ignored",
        }
    )

    assert request.placement == "CRM_DYNAMIC_176_DETAIL_TAB"
    assert request.placement_options == {"ID": "303", "ENTITY_TYPE_ID": "176"}
    assert request.auth_expires == 3600
    assert request.scheme == "https"


def test_blank_fields_become_none() -> None:
    request = PlacementRequest.model_validate(
        {"AUTH_ID": "  ", "DOMAIN": "", "PLACEMENT_OPTIONS": "", "PROTOCOL": ""}
    )

    assert request.auth_id is None
    assert request.domain is None
    assert request.placement_options == {}
    assert request.protocol is None


def test_options_may_already_be_a_mapping() -> None:
    request = PlacementRequest.model_validate({"PLACEMENT_OPTIONS": {"ID": 5}})

    assert request.placement_options == {"ID": 5}


def test_invalid_options_json_is_rejected() -> None:
    with pytest.raises(ValidationError, match="PLACEMENT_OPTIONS"):
        PlacementRequest.model_validate({"PLACEMENT_OPTIONS": "{not json"})


def test_protocol_zero_means_plain_http() -> None:
    assert PlacementRequest.model_validate({"PROTOCOL": "0"}).scheme == "http"


def test_rest_response_fields() -> None:
    response = RestResponse.model_validate({"result": [1, 2], "total": 2, "next": 50, "time": {}})

    assert response.result == [1, 2]
    assert response.total == 2
    assert response.next == 50
    assert response.is_error is False
