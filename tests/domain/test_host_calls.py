from __future__ import annotations

import asyncio
import threading
from typing import TYPE_CHECKING

import pytest

from tourdesk.domain import HostCallError, call_host_method
from tests.support.host_sdk import FakeCallResult, FakeHostSdk

if TYPE_CHECKING:
    from collections.abc import Mapping

    from tourdesk.domain.ports import HostCallback


def test_returns_result_data() -> None:
    sdk = FakeHostSdk(call_results={"crm.item.get": FakeCallResult(payload={"item": {"id": 5}})})

    result = asyncio.run(call_host_method(sdk, "crm.item.get", {"entityTypeId": 176, "id": 5}))

    assert result == {"item": {"id": 5}}
    assert sdk.calls == [("crm.item.get", {"entityTypeId": 176, "id": 5})]


def test_missing_sdk_raises() -> None:
    with pytest.raises(HostCallError) as excinfo:
        asyncio.run(call_host_method(None, "placement.get"))

    assert excinfo.value.method == "placement.get"


def test_error_result_raises_with_description() -> None:
    sdk = FakeHostSdk(
        call_results={
            "crm.item.get": FakeCallResult(error_code="NOT_FOUND", description="Item not found")
        }
    )

    with pytest.raises(HostCallError) as excinfo:
        asyncio.run(call_host_method(sdk, "crm.item.get", {"id": 1}))

    assert excinfo.value.message == "NOT_FOUND: Item not found"


def test_synchronous_sdk_failure_is_wrapped() -> None:
    sdk = FakeHostSdk(call_error=RuntimeError("bridge down"))

    with pytest.raises(HostCallError, match="bridge down"):
        asyncio.run(call_host_method(sdk, "placement.get"))


def test_callback_from_another_thread() -> None:
    class ThreadedSdk(FakeHostSdk):
        def call_method(
            self,
            method: str,
            params: Mapping[str, object],
            callback: HostCallback,
        ) -> None:
            worker = threading.Thread(target=callback, args=(FakeCallResult(payload=[1, 2]),))
            worker.start()

    result = asyncio.run(call_host_method(ThreadedSdk(), "placement.get"))

    assert result == [1, 2]


def test_second_callback_is_ignored() -> None:
    class ChattySdk(FakeHostSdk):
        def call_method(
            self,
            method: str,
            params: Mapping[str, object],
            callback: HostCallback,
        ) -> None:
            callback(FakeCallResult(payload="first"))
            callback(FakeCallResult(error_code="LATE"))

    result = asyncio.run(call_host_method(ChattySdk(), "placement.get"))

    assert result == "first"
