"""Public interface for the Bitrix24 adapter."""

from __future__ import annotations

from .client import Bitrix24APIError, Bitrix24Client
from .host_sdk import RequestHostSdk, RestCallResult
from .schema import PlacementRequest, RestResponse
from .translator import contact_fields, contact_update_fields

__all__ = [
    "Bitrix24APIError",
    "Bitrix24Client",
    "PlacementRequest",
    "RequestHostSdk",
    "RestCallResult",
    "RestResponse",
    "contact_fields",
    "contact_update_fields",
]
