from __future__ import annotations

from tourdesk.domain import Diagnostics, HostContext, ResolutionOutcome
from tourdesk.domain.messages import message, render_not_found_notice


def test_unknown_language_falls_back_to_english() -> None:
    assert message("init_failed", "de") == message("init_failed", "en")


def test_attempts_are_interpolated() -> None:
    assert "after 3 attempt(s)" in message("entity_not_resolved", attempts=3)


def test_notice_lists_technical_details() -> None:
    context = HostContext(entity_type_id="176")
    context.diagnostics = Diagnostics(
        pathname="/app/",
        referrer="",
        placement="CRM_DYNAMIC_176_DETAIL_TAB",
    )
    context.mark_ready(outcome=ResolutionOutcome.FAILED, error="record missing")

    notice = render_not_found_notice(context)

    assert notice.startswith("Open the full record card")
    assert "placement: CRM_DYNAMIC_176_DETAIL_TAB" in notice
    assert "entityTypeId: 176" in notice
    assert notice.endswith("record missing")


def test_notice_marks_unknown_values_in_russian() -> None:
    context = HostContext()
    context.mark_ready(outcome=ResolutionOutcome.FAILED)

    notice = render_not_found_notice(context, "ru")

    assert "placement: не определён" in notice
    assert "entityTypeId: не определён" in notice
