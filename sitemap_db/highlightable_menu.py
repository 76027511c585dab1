"""Which top-level settings entry to highlight for a search result."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .models import ScreenDescriptor
from .site_map import SiteMapManager

logger = logging.getLogger(__name__)

MENU_KEY_NETWORK = "top_level_network"
MENU_KEY_APPS = "top_level_apps"
MENU_KEY_ACCESSIBILITY = "top_level_accessibility"
MENU_KEY_PRIVACY = "top_level_privacy"
MENU_KEY_SYSTEM = "top_level_system"


def _frozen(mapping: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class MenuKeyOverrides:
    """Static fallbacks for screens the site map can't place.

    `package_to_menu_key` keys double as class-name prefixes; declaration
    order decides which prefix wins.
    """

    authority_to_menu_key: Mapping[str, str] = field(default_factory=dict)
    package_to_menu_key: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "authority_to_menu_key", _frozen(self.authority_to_menu_key))
        object.__setattr__(self, "package_to_menu_key", _frozen(self.package_to_menu_key))


DEFAULT_OVERRIDES = MenuKeyOverrides(
    authority_to_menu_key={
        "com.android.permissioncontroller.role": MENU_KEY_APPS,  # Default apps
    },
    package_to_menu_key={
        "com.android.settings.network": MENU_KEY_NETWORK,  # Settings Network page
        "com.android.permissioncontroller": MENU_KEY_PRIVACY,  # Permission manager
    },
)


def is_feature_enabled(settings: object) -> bool:
    enabled = bool(getattr(settings, "SITEMAP_HIGHLIGHT_ENABLED", False))
    logger.info("Menu highlighting enabled: %s", enabled)
    return enabled


class HighlightableMenu:
    def __init__(self, site_map: SiteMapManager, overrides: MenuKeyOverrides = DEFAULT_OVERRIDES):
        self.site_map = site_map
        self.overrides = overrides

    def get_menu_key(self, row: ScreenDescriptor) -> str:
        """Resolve the menu key for an index row, or "" when nothing matches.

        Order: site map top-level pair, authority map, package map (package,
        then intent target package), then package map keys as class prefixes.
        """
        # look up in the site map
        pair = self.site_map.get_top_level_pair(row.class_name, row.screen_title)
        if pair is not None and pair.highlightable_menu_key:
            return pair.highlightable_menu_key

        authorities = self.overrides.authority_to_menu_key
        packages = self.overrides.package_to_menu_key

        menu_key = authorities.get(row.authority, "") if row.authority else ""
        if menu_key:
            logger.debug("Matched authority, title: %s, menu key: %s", row.updated_title, menu_key)
            return menu_key

        menu_key = packages.get(row.package_name, "") if row.package_name else ""
        if menu_key:
            logger.debug("Matched package, title: %s, menu key: %s", row.updated_title, menu_key)
            return menu_key

        menu_key = packages.get(row.intent_target_package, "") if row.intent_target_package else ""
        if menu_key:
            logger.debug("Matched target package, title: %s, menu key: %s", row.updated_title, menu_key)
            return menu_key

        if row.class_name:
            for prefix, value in packages.items():
                if row.class_name.startswith(prefix) and value:
                    logger.debug("Matched class prefix, title: %s, menu key: %s", row.updated_title, value)
                    return value

        logger.debug(
            "Cannot get menu key for: %s, data key: %s, top-level: %s, package: %s",
            row.updated_title,
            row.data_key,
            pair.parent_title if pair is not None else row.screen_title,
            row.package_name,
        )
        return ""
