"""Resolve which Smart Process record an embedded view is attached to.

The host platform does not hand the record id to the iframe in one reliable place,
so the resolver probes every signal it can see in priority order:

1. a development override (``?DEV_ENTITY_ID=`` or configuration), which bypasses
   the host entirely;
2. the first numeric segment of the iframe path (side-slider mode);
3. recognised query parameters;
4. the placement options reported by the host SDK;
5. the window name, logged but never trusted;
6. the referrer URL of the parent page.

Steps 2-6 run inside the host's init callback and are retried a bounded number
of times, since the host may populate its placement data late. Every failure ends
up in ``HostContext.error``; nothing is raised to the embedding UI.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from tourdesk.config.resolver import ResolverConfig

from .errors import EntityNotResolvedError, ResolutionCancelledError, SdkUnavailableError
from .extraction import (
    Candidate,
    entity_id_strategies,
    entity_type_id_from_placement,
    first_candidate,
    override_entity_id,
)
from .host_context import (
    DEMO_DOMAIN,
    DEMO_ENTITY_ID,
    DEMO_MEMBER_ID,
    Diagnostics,
    HostAuth,
    HostContext,
    ResolutionOutcome,
)
from .messages import message

if TYPE_CHECKING:
    from .environment import EmbeddingEnvironment
    from .ports.host_sdk import HostSdk, PlacementInfo, SdkProbe

log = getLogger(__name__)

Listener = Callable[[HostContext], None]


class ContextResolver:
    """Produces one ``HostContext`` for the lifetime of an embedded view."""

    def __init__(
        self,
        environment: EmbeddingEnvironment,
        *,
        sdk_probe: SdkProbe | None = None,
        config: ResolverConfig | None = None,
    ) -> None:
        self._environment = environment
        self._sdk_probe = sdk_probe
        self._config = config or ResolverConfig()
        self._context = HostContext()
        self._listeners: list[Listener] = []
        self._closed = asyncio.Event()
        self._lock = asyncio.Lock()

    @property
    def context(self) -> HostContext:
        return self._context

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` once the context is ready; returns an unsubscribe callable."""

        if self._context.ready:
            listener(self._context)
            return lambda: None
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Abort any pending wait; the context will not become ready afterwards."""

        self._closed.set()
        self._listeners.clear()

    async def resolve(self) -> HostContext:
        async with self._lock:
            if not self._context.ready and not self.closed:
                try:
                    await self._run()
                except ResolutionCancelledError:
                    log.info("Host context resolution cancelled")
        return self._context

    async def _run(self) -> None:
        if self._is_demo_path():
            self._apply_demo_identity()
            self._finish(ResolutionOutcome.DEMO)
            return

        override = override_entity_id(self._environment, self._config.override_entity_id)
        if override:
            log.info("Using development entity id override %s", override)
            self._context.set_entity_id(override)
            self._context.set_entity_type_id(self._config.override_entity_type_id)
            self._context.diagnostics = self._diagnostics(None, "override", attempts=0)
            self._finish(ResolutionOutcome.RESOLVED)
            return

        try:
            sdk = await self._wait_for_sdk()
            await self._wait_for_init(sdk)
        except SdkUnavailableError as exc:
            log.error("%s", exc)
            self._finish(ResolutionOutcome.FAILED, error=self._message("sdk_unavailable"))
            return
        except ResolutionCancelledError:
            raise
        except Exception:
            log.exception("Host SDK initialisation failed")
            self._finish(ResolutionOutcome.FAILED, error=self._message("init_failed"))
            return

        try:
            await self._run_cascade(sdk)
        except EntityNotResolvedError as exc:
            self._handle_unresolved(exc)
        self._resize(sdk)

    async def _run_cascade(self, sdk: HostSdk) -> None:
        attempts = self._config.max_attempts
        candidate: Candidate | None = None
        info: PlacementInfo | None = None
        attempt = 0
        for attempt in range(1, attempts + 1):
            self._ensure_open()
            info = self._query_placement(sdk)
            self._context.set_entity_type_id(entity_type_id_from_placement(info))
            current = info
            candidate = first_candidate(
                entity_id_strategies(self._environment, lambda: current)
            )
            if candidate is not None:
                break
            if attempt < attempts:
                log.warning(
                    "Entity id not found (attempt %s/%s), retrying in %.2fs",
                    attempt,
                    attempts,
                    self._config.retry_delay_seconds,
                )
                await self._pause(self._config.retry_delay_seconds)

        self._apply_auth(sdk)
        self._context.diagnostics = self._diagnostics(
            info,
            candidate.method if candidate else None,
            attempts=attempt,
        )
        if candidate is None:
            raise EntityNotResolvedError(attempt)

        log.info("Resolved entity id %s via %s", candidate.value, candidate.method)
        self._context.set_entity_id(candidate.value)
        self._finish(ResolutionOutcome.RESOLVED)

    def _handle_unresolved(self, exc: EntityNotResolvedError) -> None:
        if self._config.demo_fallback:
            log.warning("%s; falling back to demo identity", exc)
            self._context.set_entity_id(DEMO_ENTITY_ID)
            self._finish(
                ResolutionOutcome.DEMO,
                error=self._message(
                    "demo_notice", attempts=exc.attempts, entity_id=DEMO_ENTITY_ID
                ),
            )
            return
        log.error("%s", exc)
        self._finish(
            ResolutionOutcome.FAILED,
            error=self._message("entity_not_resolved", attempts=exc.attempts),
        )

    async def _wait_for_sdk(self) -> HostSdk:
        probe = self._sdk_probe
        if probe is None:
            raise SdkUnavailableError(0.0)

        loop = asyncio.get_running_loop()
        wait = self._config.sdk_wait_seconds
        deadline = loop.time() + wait
        while True:
            sdk = _probe_sdk(probe)
            if sdk is not None:
                return sdk
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise SdkUnavailableError(wait)
            await self._pause(min(self._config.sdk_poll_interval_seconds, remaining))

    async def _wait_for_init(self, sdk: HostSdk) -> None:
        loop = asyncio.get_running_loop()
        initialised: asyncio.Future[None] = loop.create_future()

        def on_init() -> None:
            loop.call_soon_threadsafe(_resolve_once, initialised)

        sdk.init(on_init)
        closed = asyncio.ensure_future(self._closed.wait())
        timeout = max(self._config.sdk_wait_seconds, self._config.sdk_poll_interval_seconds)
        try:
            done, _ = await asyncio.wait(
                {initialised, closed},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            closed.cancel()
        if initialised in done:
            return
        initialised.cancel()
        if closed in done:
            raise ResolutionCancelledError("resolver closed while waiting for host init")
        raise SdkUnavailableError(timeout)

    def _query_placement(self, sdk: HostSdk) -> PlacementInfo | None:
        try:
            return sdk.placement_info()
        except Exception:  # noqa: BLE001
            log.warning("placement_info() failed; skipping placement strategy", exc_info=True)
            return None

    def _apply_auth(self, sdk: HostSdk) -> None:
        try:
            auth = HostAuth.from_mapping(sdk.get_auth())
        except Exception:  # noqa: BLE001
            log.warning("get_auth() failed", exc_info=True)
            auth = HostAuth()
        domain = auth.domain
        if not domain:
            try:
                domain = sdk.get_domain() or None
            except Exception:  # noqa: BLE001
                log.warning("get_domain() failed", exc_info=True)
        self._context.auth = auth
        self._context.domain = domain

    def _resize(self, sdk: HostSdk) -> None:
        viewport = self._environment.viewport
        if not self._config.auto_resize or viewport is None or not self._context.ready:
            return
        try:
            sdk.resize_window(*viewport)
        except Exception:  # noqa: BLE001
            log.debug("resize_window() failed", exc_info=True)

    def _is_demo_path(self) -> bool:
        prefix = self._config.demo_path_prefix
        return bool(prefix) and self._environment.pathname.startswith(prefix)

    def _apply_demo_identity(self) -> None:
        self._context.set_entity_id(DEMO_ENTITY_ID)
        self._context.set_entity_type_id(self._config.override_entity_type_id)
        self._context.domain = DEMO_DOMAIN
        self._context.auth = HostAuth(member_id=DEMO_MEMBER_ID, domain=DEMO_DOMAIN)
        self._context.diagnostics = self._diagnostics(None, "demo path", attempts=0)

    def _diagnostics(
        self,
        info: PlacementInfo | None,
        method: str | None,
        *,
        attempts: int,
    ) -> Diagnostics:
        return Diagnostics(
            pathname=self._environment.pathname,
            referrer=self._environment.referrer,
            options=dict(info.options) if info else {},
            placement=info.placement if info else "",
            window_name=self._environment.window_name or None,
            extraction_method=method,
            attempts=attempts,
        )

    def _message(self, key: str, **values: object) -> str:
        return message(key, self._config.language, **values)

    def _finish(self, outcome: ResolutionOutcome, *, error: str | None = None) -> None:
        self._ensure_open()
        if not self._context.mark_ready(outcome=outcome, error=error):
            return
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            try:
                listener(self._context)
            except Exception:
                log.exception("Host context listener failed")

    def _ensure_open(self) -> None:
        if self.closed:
            raise ResolutionCancelledError("resolver closed")

    async def _pause(self, seconds: float) -> None:
        self._ensure_open()
        if seconds <= 0:
            await asyncio.sleep(0)
            self._ensure_open()
            return
        try:
            await asyncio.wait_for(self._closed.wait(), timeout=seconds)
        except TimeoutError:
            return
        raise ResolutionCancelledError("resolver closed")


def _resolve_once(future: asyncio.Future[None]) -> None:
    if not future.done():
        future.set_result(None)


def _probe_sdk(probe: SdkProbe) -> HostSdk | None:
    try:
        return probe()
    except Exception:  # noqa: BLE001
        log.warning("Host SDK probe failed", exc_info=True)
        return None
