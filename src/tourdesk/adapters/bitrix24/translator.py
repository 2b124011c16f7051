"""Translate booking records into Bitrix24 CRM field payloads."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from tourdesk.domain.tourists import Tourist

log = getLogger(__name__)

_WORK = "WORK"


def _multifield(value: str | None) -> list[dict[str, str]]:
    return [{"VALUE": value, "VALUE_TYPE": _WORK}] if value else []


def contact_fields(tourist: Tourist) -> dict[str, object]:
    return {
        "NAME": tourist.first_name,
        "LAST_NAME": tourist.last_name,
        "EMAIL": _multifield(tourist.email),
        "PHONE": _multifield(tourist.phone),
    }


def contact_update_fields(changes: Mapping[str, str | None]) -> dict[str, object]:
    """Partial update payload.

    Only keys present in ``changes`` are sent. ``email``/``phone`` mapped to
    ``None`` clear the multi-field on the contact.
    """

    fields: dict[str, object] = {}
    name = changes.get("name")
    if name:
        parts = name.split()
        fields["NAME"] = parts[0] if parts else name
        fields["LAST_NAME"] = " ".join(parts[1:])
    if "email" in changes:
        fields["EMAIL"] = _multifield(changes["email"])
    if "phone" in changes:
        fields["PHONE"] = _multifield(changes["phone"])
    return fields


def encode_tour_route(route: object) -> str:
    return json.dumps(route, ensure_ascii=False)


def decode_tour_route(item: Mapping[str, object], field: str | None) -> object | None:
    if not field:
        return None
    raw = item.get(field)
    if not raw or not isinstance(raw, str):
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        log.warning("Stored tour route in %s is not valid JSON", field)
        return None
