from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


def _text(value: object) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class SiteMapPair:
    """One child -> parent edge of the settings site map."""

    parent_class: str = ""
    parent_title: str = ""
    child_class: str = ""
    child_title: str = ""
    highlightable_menu_key: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, object]) -> SiteMapPair:
        return cls(
            parent_class=_text(row.get("parent_class")),
            parent_title=_text(row.get("parent_title")),
            child_class=_text(row.get("child_class")),
            child_title=_text(row.get("child_title")),
            highlightable_menu_key=_text(row.get("highlightable_menu_key")),
        )


@dataclass(frozen=True)
class ScreenDescriptor:
    """The fields of a search index row that menu key resolution looks at.

    `updated_title` and `data_key` only show up in diagnostics.
    """

    class_name: str = ""
    screen_title: str = ""
    package_name: str = ""
    authority: str = ""
    intent_target_package: str = ""
    updated_title: str = ""
    data_key: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, object]) -> ScreenDescriptor:
        return cls(
            class_name=_text(row.get("class_name")),
            screen_title=_text(row.get("screen_title")),
            package_name=_text(row.get("package_name")),
            authority=_text(row.get("authority")),
            intent_target_package=_text(row.get("intent_target_package")),
            updated_title=_text(row.get("updated_title")),
            data_key=_text(row.get("data_key")),
        )
