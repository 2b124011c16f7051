"""Awaitable wrapper around the host SDK's callback-style ``call_method``."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import HostCallError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .ports.host_sdk import HostCallResult, HostSdk

log = getLogger(__name__)


async def call_host_method(
    sdk: HostSdk | None,
    method: str,
    params: Mapping[str, object] | None = None,
) -> object:
    """Invoke ``method`` once and return the result's data payload.

    Raises ``HostCallError`` when no SDK is available, when the SDK rejects the
    call outright, or when the result reports an error. Retrying is left to the
    caller.
    """

    if sdk is None:
        raise HostCallError(method, "host SDK not loaded")

    loop = asyncio.get_running_loop()
    future: asyncio.Future[object] = loop.create_future()

    def on_result(result: HostCallResult) -> None:
        loop.call_soon_threadsafe(_settle, future, method, result)

    try:
        sdk.call_method(method, dict(params or {}), on_result)
    except Exception as exc:
        raise HostCallError(method, str(exc)) from exc

    return await future


def _settle(future: asyncio.Future[object], method: str, result: HostCallResult) -> None:
    if future.done():
        return
    error = result.error()
    if error:
        description = _error_description(result)
        text = f"{error}: {description}" if description else str(error)
        log.warning("Host call %s failed: %s", method, text)
        future.set_exception(HostCallError(method, text))
        return
    future.set_result(result.data())


def _error_description(result: HostCallResult) -> str | None:
    describe = getattr(result, "error_description", None)
    if describe is None:
        return None
    description = describe()
    return str(description) if description else None
