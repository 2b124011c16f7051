# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from tourdesk.app import build_request_host_sdk, call_webhook_method, resolve_host_context
from tourdesk.config import configure_logging, get_resolver_config
from tourdesk.domain import EmbeddingEnvironment, ViewState, call_host_method
from tourdesk.domain.messages import render_not_found_notice

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bitrix24 embedding tools for tourdesk")
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve = subparsers.add_parser(
        "resolve",
        help="Work out which CRM record an embedded view is attached to",
    )
    resolve.add_argument("--url", required=True, help="Iframe URL, absolute or path-relative")
    resolve.add_argument("--referrer", default="", help="document.referrer of the iframe")
    resolve.add_argument("--window-name", default="", help="window.name of the iframe")
    resolve.add_argument(
        "--placement",
        default="",
        help="PLACEMENT code, e.g. CRM_DYNAMIC_176_DETAIL_TAB",
    )
    resolve.add_argument("--options", default=None, help="PLACEMENT_OPTIONS as a JSON object")
    resolve.add_argument("--entity-id", default=None, help="Shorthand for PLACEMENT_OPTIONS ID")
    resolve.add_argument(
        "--entity-type-id",
        default=None,
        help="Shorthand for PLACEMENT_OPTIONS ENTITY_TYPE_ID",
    )
    resolve.add_argument("--domain", default=None, help="Portal domain (DOMAIN)")
    resolve.add_argument("--auth-id", default=None, help="OAuth access token (AUTH_ID)")
    resolve.add_argument("--member-id", default=None, help="Portal member id")
    resolve.add_argument(
        "--no-sdk",
        action="store_true",
        help="Resolve as if the host SDK never loaded",
    )
    resolve.add_argument(
        "--demo-fallback",
        action="store_true",
        help="Fall back to the demo record instead of failing",
    )

    call = subparsers.add_parser("call", help="Call a REST method through the webhook")
    call.add_argument("method", help="REST method name, e.g. crm.item.get")
    call.add_argument("--params", default=None, help="Method parameters as a JSON object")

    placements = subparsers.add_parser("placements", help="Inspect registered placements")
    placements.add_argument("--domain", required=True, help="Portal domain")
    placements.add_argument("--auth-id", required=True, help="OAuth access token")
    placements_sub = placements.add_subparsers(dest="placements_command", required=True)
    placements_sub.add_parser("list", help="List registered placements")
    unbind = placements_sub.add_parser("unbind", help="Remove a placement registration")
    unbind.add_argument("placement", help="Placement code to unbind")
    unbind.add_argument("--handler", default=None, help="Only unbind this handler URL")

    return parser.parse_args(list(argv))


def _parse_json_object(value: str | None, flag: str) -> dict[str, object]:
    if value is None:
        return {}
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{flag} is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ValueError(f"{flag} must be a JSON object")
    return parsed


def _print_json(payload: object) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _run_resolve(args: argparse.Namespace) -> int:
    options = _parse_json_object(args.options, "--options")
    if args.entity_id:
        options.setdefault("ID", args.entity_id)
    if args.entity_type_id:
        options.setdefault("ENTITY_TYPE_ID", args.entity_type_id)
    config = get_resolver_config()
    if args.demo_fallback:
        config = replace(config, demo_fallback=True)

    sdk = None
    if not args.no_sdk:
        sdk = build_request_host_sdk(
            {
                "PLACEMENT": args.placement,
                "PLACEMENT_OPTIONS": options,
                "DOMAIN": args.domain,
                "AUTH_ID": args.auth_id,
                "member_id": args.member_id,
            }
        )

    environment = EmbeddingEnvironment(
        url=args.url,
        referrer=args.referrer,
        window_name=args.window_name,
    )
    context = resolve_host_context(environment, sdk=sdk, config=config)
    _print_json(context.as_dict())
    if context.view_state is ViewState.ENTITY_NOT_FOUND:
        print(render_not_found_notice(context, config.language), file=sys.stderr)
        return 1
    return 0


def _run_placements(args: argparse.Namespace) -> int:
    sdk = build_request_host_sdk({"DOMAIN": args.domain, "AUTH_ID": args.auth_id})
    if args.placements_command == "list":
        result = asyncio.run(call_host_method(sdk, "placement.get"))
        count = len(result) if isinstance(result, list) else 0
        log.info("Found %s registered placement(s)", count)
    else:
        params: dict[str, object] = {"PLACEMENT": args.placement}
        if args.handler:
            params["HANDLER"] = args.handler
        result = asyncio.run(call_host_method(sdk, "placement.unbind", params))
        log.info("Placement %s unbound", args.placement)
    _print_json(result)
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        params = (
            _parse_json_object(parsed_args.params, "--params")
            if parsed_args.command == "call"
            else {}
        )
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "resolve":
            status = _run_resolve(parsed_args)
        elif parsed_args.command == "call":
            _print_json(call_webhook_method(parsed_args.method, params))
            status = 0
        elif parsed_args.command == "placements":
            status = _run_placements(parsed_args)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)

    if status:
        sys.exit(status)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
