"""User-facing texts shown when the embedded view cannot find its record."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from .host_context import HostContext

_CATALOG: Final[dict[str, dict[str, str]]] = {
    "en": {
        "sdk_unavailable": (
            "The Bitrix24 SDK could not be loaded. Open the application from within Bitrix24."
        ),
        "init_failed": "Bitrix24 initialisation failed.",
        "entity_not_resolved": (
            "Smart Process record id not found after {attempts} attempt(s).\n"
            "Likely causes:\n"
            "- the tab was opened in a preview side panel instead of the full record card;\n"
            "- the placement is registered for a different record type;\n"
            "- the application lacks permission to read the record.\n"
            "What to do:\n"
            "1. Close the preview and open the record card in full.\n"
            "2. Check the placement configuration in the application settings.\n"
            "3. Inspect the browser console for details."
        ),
        "demo_notice": (
            "Smart Process record id not found after {attempts} attempt(s); "
            "showing demo data for record {entity_id}."
        ),
        "not_found_title": "Open the full record card",
        "not_found_body": (
            "The tab is open in a temporary preview. In this mode Bitrix24 does not pass "
            "the record id, so the group cannot be shown."
        ),
        "not_found_steps": (
            "1. Close this side preview.\n"
            "2. Open the record card in full.\n"
            "3. Switch to this tab again."
        ),
        "technical_details": "Technical details",
        "undetermined": "undetermined",
    },
    "ru": {
        "sdk_unavailable": (
            "Bitrix24 SDK не может быть загружен. Откройте приложение из Bitrix24."
        ),
        "init_failed": "Ошибка инициализации Bitrix24.",
        "entity_not_resolved": (
            "ID элемента Smart Process не найден после {attempts} попыток.\n"
            "Возможные причины:\n"
            "- вкладка открыта в предпросмотре, а не в полной карточке;\n"
            "- placement зарегистрирован для другого типа элемента;\n"
            "- у приложения нет прав на чтение элемента.\n"
            "Что сделать:\n"
            "1. Закройте предпросмотр и откройте карточку полностью.\n"
            "2. Проверьте настройки placement в приложении.\n"
            "3. Посмотрите подробности в консоли браузера."
        ),
        "demo_notice": (
            "ID элемента Smart Process не найден после {attempts} попыток; "
            "показаны демо-данные для элемента {entity_id}."
        ),
        "not_found_title": "Нужно открыть карточку события полностью",
        "not_found_body": (
            "Сейчас вкладка открыта во временном предпросмотре. В этом режиме Bitrix24 "
            "не передаёт ID события, поэтому мы не можем показать состав группы."
        ),
        "not_found_steps": (
            "1. Закройте этот боковой предпросмотр.\n"
            "2. Откройте карточку события полностью.\n"
            "3. Перейдите на вкладку снова."
        ),
        "technical_details": "Техническая информация",
        "undetermined": "не определён",
    },
}


def message(key: str, language: str = "en", **values: object) -> str:
    texts = _CATALOG.get(language, _CATALOG["en"])
    return texts[key].format(**values)


def render_not_found_notice(context: HostContext, language: str = "en") -> str:
    """Plain-text rendering of the "record not found" screen."""

    undetermined = message("undetermined", language)
    placement = context.diagnostics.placement if context.diagnostics else ""
    lines = [
        message("not_found_title", language),
        "",
        message("not_found_body", language),
        "",
        message("not_found_steps", language),
        "",
        f"{message('technical_details', language)}:",
        f"  placement: {placement or undetermined}",
        f"  entityTypeId: {context.entity_type_id or undetermined}",
    ]
    if context.error:
        lines.extend(["", context.error])
    return "\n".join(lines)
