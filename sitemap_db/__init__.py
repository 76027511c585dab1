"""Settings site map cache: breadcrumbs and highlighted top-level menu keys."""

from .errors import SiteMapError, SourceUnavailable
from .highlightable_menu import DEFAULT_OVERRIDES, HighlightableMenu, MenuKeyOverrides
from .models import ScreenDescriptor, SiteMapPair
from .site_map import LoadState, SiteMapManager, get_site_map_manager
from .sources import RelationSource, SqliteRelationSource, StaticRelationSource

__all__ = [
    "DEFAULT_OVERRIDES",
    "HighlightableMenu",
    "LoadState",
    "MenuKeyOverrides",
    "RelationSource",
    "ScreenDescriptor",
    "SiteMapError",
    "SiteMapManager",
    "SiteMapPair",
    "SourceUnavailable",
    "SqliteRelationSource",
    "StaticRelationSource",
    "get_site_map_manager",
]
