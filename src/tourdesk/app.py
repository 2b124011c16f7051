"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from tourdesk.adapters.bitrix24 import Bitrix24Client, RequestHostSdk
from tourdesk.config import get_resolver_config, require_bitrix24_config
from tourdesk.domain import (
    ContextResolver,
    EntityNotResolvedError,
    HostCallError,
    call_host_method,
)
from tourdesk.domain.extraction import is_numeric

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from tourdesk.adapters.bitrix24.client import ClientFactory
    from tourdesk.config import ResolverConfig
    from tourdesk.domain import EmbeddingEnvironment, HostContext
    from tourdesk.domain.ports import HostSdk
    from tourdesk.domain.tourists import Tourist

log = getLogger(__name__)


def build_request_host_sdk(
    form: Mapping[str, object],
    *,
    client_factory: ClientFactory | None = None,
) -> RequestHostSdk:
    """Host SDK for a placement handler request (the form Bitrix24 POSTs)."""

    return RequestHostSdk.from_form(form, client_factory=client_factory)


async def resolve_host_context_async(
    environment: EmbeddingEnvironment,
    *,
    sdk: HostSdk | None = None,
    config: ResolverConfig | None = None,
    listeners: Iterable[Callable[[HostContext], None]] = (),
) -> HostContext:
    effective_config = config or get_resolver_config()
    resolver = ContextResolver(
        environment,
        sdk_probe=(lambda: sdk) if sdk is not None else None,
        config=effective_config,
    )
    for listener in listeners:
        resolver.subscribe(listener)
    context = await resolver.resolve()
    log.info(
        "Host context ready: entity_id=%s, entity_type_id=%s, outcome=%s",
        context.entity_id,
        context.entity_type_id,
        context.outcome,
    )
    return context


def resolve_host_context(
    environment: EmbeddingEnvironment,
    *,
    sdk: HostSdk | None = None,
    config: ResolverConfig | None = None,
    listeners: Iterable[Callable[[HostContext], None]] = (),
) -> HostContext:
    return asyncio.run(
        resolve_host_context_async(environment, sdk=sdk, config=config, listeners=listeners)
    )


def _require_identity(context: HostContext) -> tuple[str, str]:
    if not context.ready or not context.entity_id or not context.entity_type_id:
        raise EntityNotResolvedError(context.diagnostics.attempts if context.diagnostics else 0)
    return context.entity_id, context.entity_type_id


async def fetch_placed_entity(context: HostContext, sdk: HostSdk | None) -> Mapping[str, object]:
    """Load the Smart Process record the embedded view is attached to."""

    entity_id, entity_type_id = _require_identity(context)
    if not is_numeric(entity_id):
        raise HostCallError("crm.item.get", f"cannot load non-numeric record id {entity_id!r}")
    result = await call_host_method(
        sdk,
        "crm.item.get",
        {"entityTypeId": int(entity_type_id), "id": int(entity_id)},
    )
    if isinstance(result, dict):
        item = result.get("item")
        return item if isinstance(item, dict) else result
    raise HostCallError("crm.item.get", "unexpected result shape")


async def sync_tourist_contact(
    tourist: Tourist,
    context: HostContext,
    *,
    client: Bitrix24Client,
) -> str:
    """Create a CRM contact for ``tourist`` and attach it to the placed record."""

    entity_id, entity_type_id = _require_identity(context)
    contact_id = await client.create_contact(tourist)
    await client.link_contact_to_entity(entity_id, entity_type_id, contact_id)
    log.info("Linked contact %s to %s/%s", contact_id, entity_type_id, entity_id)
    return contact_id


def call_webhook_method(
    method: str,
    params: Mapping[str, object] | None = None,
    *,
    client: Bitrix24Client | None = None,
) -> object:
    """Call a REST method through the configured incoming webhook."""

    active_client = client or Bitrix24Client.from_config(require_bitrix24_config())
    return active_client.call_sync(method, params)
