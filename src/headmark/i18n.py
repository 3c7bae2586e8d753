"""
Translation tables for user-visible notices.

A `Translator` is constructed explicitly and passed to whatever produces notices,
so each caller (and each test) controls its own language.

Keys are dotted paths into nested tables: `t("notices.backlinksUpdated", count=3)`.
Missing keys fall back to English, then to the key itself. `{name}` placeholders are
replaced from keyword arguments.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

TranslationTable = Mapping[str, Any]

EN: TranslationTable = {
    "notices": {
        "numbered": "Numbered {count} header(s) in {document}",
        "unnumbered": "Removed numbering from {count} header(s) in {document}",
        "unchanged": "No header changes in {document}",
        "disabled": "Header numbering is off for {document}",
        "backlinksUpdated": "Updated {count} link(s) to renamed headers",
        "backlinksRolledBack": "Backlink update failed, changes rolled back: {error}",
        "rollbackFailed": "Critical error: failed to roll back changes to {documents}: {error}",
        "bulkCompleted": "Removed or updated numbering in {count} document(s)",
        "bulkNothingFound": "No header numbering changes were needed",
        "bulkProgress": "Processing {current}/{total}",
    },
    "commands": {
        "globalOn": "Header numbering enabled",
        "globalOff": "Header numbering disabled",
        "documentOn": "Header numbering enabled for {document}",
        "documentOff": "Header numbering disabled for {document}",
        "directivesAdded": "Added numbering directives to {document}",
        "directivesReset": "Reset numbering directives in {document}",
        "directivesRemoved": "Removed numbering directives from {document}",
        "directivesMissing": "No numbering directives in {document}",
    },
    "analysis": {
        "empty": "{document}: no headers",
        "summary": "{document}: {count} header(s), levels H{min}-H{max}, used {levels}",
    },
}

ZH: TranslationTable = {
    "notices": {
        "numbered": "已为 {document} 中的 {count} 个标题编号",
        "unnumbered": "已移除 {document} 中 {count} 个标题的编号",
        "unchanged": "{document} 中的标题无需更改",
        "disabled": "{document} 的标题编号已关闭",
        "backlinksUpdated": "已更新 {count} 个指向重命名标题的链接",
        "backlinksRolledBack": "反向链接更新失败，已回滚更改：{error}",
        "rollbackFailed": "严重错误：无法回滚对 {documents} 的更改：{error}",
        "bulkCompleted": "已处理 {count} 个文档的标题编号",
        "bulkNothingFound": "没有需要更改的标题编号",
        "bulkProgress": "正在处理 {current}/{total}",
    },
    "commands": {
        "globalOn": "标题编号已开启",
        "globalOff": "标题编号已关闭",
        "documentOn": "已为 {document} 开启标题编号",
        "documentOff": "已为 {document} 关闭标题编号",
        "directivesAdded": "已向 {document} 添加编号配置",
        "directivesReset": "已重置 {document} 的编号配置",
        "directivesRemoved": "已从 {document} 移除编号配置",
    },
}

TRANSLATIONS: dict[str, TranslationTable] = {"en": EN, "zh": ZH}

DEFAULT_LANGUAGE = "en"

_PLACEHOLDER_PATTERN = re.compile(r"\{(\w+)\}")


def _lookup(table: TranslationTable, keys: list[str]) -> str | None:
    value: Any = table
    for key in keys:
        if not isinstance(value, Mapping) or key not in value:
            return None
        value = value[key]  # pyright: ignore[reportUnknownVariableType]
    return value if isinstance(value, str) else None


class Translator:
    """Looks up notice text in the current language."""

    def __init__(
        self,
        language: str = DEFAULT_LANGUAGE,
        tables: Mapping[str, TranslationTable] = TRANSLATIONS,
    ) -> None:
        self._tables: Mapping[str, TranslationTable] = tables
        self.language: str = DEFAULT_LANGUAGE
        self.set_language(language)

    def set_language(self, language: str) -> None:
        """Switch language. Unknown languages are ignored."""
        if language in self._tables:
            self.language = language

    def t(self, key: str, **placeholders: object) -> str:
        keys = key.split(".")
        text = _lookup(self._tables[self.language], keys)
        if text is None and DEFAULT_LANGUAGE in self._tables:
            text = _lookup(self._tables[DEFAULT_LANGUAGE], keys)
        if text is None:
            return key

        def substitute(match: re.Match[str]) -> str:
            name = match.group(1)
            return str(placeholders[name]) if name in placeholders else match.group(0)

        return _PLACEHOLDER_PATTERN.sub(substitute, text)
