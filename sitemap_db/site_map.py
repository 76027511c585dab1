"""Cached settings site map: breadcrumbs and top-level lookups.

The site map is a forest of child -> parent screen edges read once from the
search index. Two walks run over it:

- `build_breadcrumb` climbs to the root collecting titles.
- `get_top_level_pair` climbs until an edge carries a highlightable menu key.

Both take the store lock and load lazily, so the first call does blocking I/O.
Call them from a worker thread when latency matters.
"""
from __future__ import annotations

import enum
import logging
import threading
import time
from pathlib import Path

from .errors import SourceUnavailable
from .models import SiteMapPair
from .sources import RelationSource, SqliteRelationSource

logger = logging.getLogger(__name__)

TOP_LEVEL_SETTINGS = "com.android.settings.homepage.TopLevelSettings"


class LoadState(enum.Enum):
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"


class SiteMapManager:
    def __init__(self, source: RelationSource):
        self.source = source
        self._pairs: list[SiteMapPair] = []
        self._state = LoadState.EMPTY
        # Re-entrant: the walks call load() and the lookups while holding it.
        self._lock = threading.RLock()

    @staticmethod
    def is_top_level_settings(clazz: str | None) -> bool:
        """Check whether the specified class is the top level settings class."""
        return clazz == TOP_LEVEL_SETTINGS

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def initialized(self) -> bool:
        return self._state is LoadState.READY

    @property
    def pairs(self) -> tuple[SiteMapPair, ...]:
        with self._lock:
            self.load()
            return tuple(self._pairs)

    def load(self) -> None:
        """Populate the pair list from the relation source, once.

        A failed fetch leaves the store EMPTY with no pairs, and the error
        propagates as SourceUnavailable.
        """
        with self._lock:
            if self._state is LoadState.READY:
                return

            # Re-init after the table changed: drop the old pairs first.
            self._pairs.clear()
            self._state = LoadState.LOADING
            start = time.perf_counter()
            try:
                rows = self.source.fetch_rows()
                pairs = [SiteMapPair.from_row(r) for r in rows]
            except SourceUnavailable:
                self._state = LoadState.EMPTY
                raise
            except Exception as e:
                self._state = LoadState.EMPTY
                raise SourceUnavailable(f"site map fetch failed from {self.source!r}: {e}") from e

            self._pairs = pairs
            self._state = LoadState.READY
            logger.debug(
                "Site map loaded: %d pairs in %.1f ms",
                len(pairs),
                (time.perf_counter() - start) * 1000.0,
            )

    def force_uninitialized(self) -> None:
        """Mark the cache stale; the next access reloads from the source."""
        with self._lock:
            self._state = LoadState.EMPTY

    def set_initialized(self, initialized: bool) -> None:
        with self._lock:
            self._state = LoadState.READY if initialized else LoadState.EMPTY

    def find_parent(self, clazz: str | None, title: str | None) -> SiteMapPair | None:
        """First pair whose child matches both class and title."""
        clazz = clazz or ""
        title = title or ""
        with self._lock:
            self.load()
            for pair in self._pairs:
                if pair.child_class == clazz and pair.child_title == title:
                    return pair
            return None

    def find_parent_by_title(self, title: str | None) -> SiteMapPair | None:
        """First pair whose child title matches, ignoring class."""
        if not title:
            return None
        with self._lock:
            self.load()
            for pair in self._pairs:
                if pair.child_title == title:
                    return pair
            return None

    def build_breadcrumb(self, clazz: str | None, screen_title: str | None) -> list[str]:
        """Given a fragment class name and its screen title, build a breadcrumb
        from the settings root down to this screen.

        Not every screen has a full path up to root: some page along the way
        may not be indexed, or the screen is only reachable through search.
        """
        with self._lock:
            self.load()
            breadcrumbs: list[str] = []
            if screen_title:
                breadcrumbs.append(screen_title)

            current_class = clazz or ""
            current_title = screen_title or ""
            seen: set[tuple[str, str]] = set()
            while True:
                seen.add((current_class, current_title))
                pair = self.find_parent(current_class, current_title)
                if pair is None:
                    return breadcrumbs
                if (pair.parent_class, pair.parent_title) in seen:
                    logger.warning(
                        "Site map cycle at %s / %r while building breadcrumb for %s",
                        pair.parent_class,
                        pair.parent_title,
                        clazz,
                    )
                    return breadcrumbs
                if pair.parent_title:
                    breadcrumbs.insert(0, pair.parent_title)
                current_class = pair.parent_class
                current_title = pair.parent_title

    def get_top_level_pair(self, clazz: str | None, screen_title: str | None) -> SiteMapPair | None:
        """Nearest ancestor pair (from the screen itself upwards) with a menu key.

        Falls back to a title-only parent lookup when class + title misses, and
        returns the last pair reached when no ancestor carries a key.
        """
        with self._lock:
            self.load()
            clazz = clazz or ""
            screen_title = screen_title or ""

            current_pair: SiteMapPair | None = None
            if clazz:
                for pair in self._pairs:
                    if pair.child_class == clazz:
                        current_pair = pair
                        if not screen_title:
                            screen_title = pair.child_title
                        break

            current_class = clazz
            current_title = screen_title
            seen: set[tuple[str, str]] = set()
            while True:
                seen.add((current_class, current_title))
                pair = self.find_parent(current_class, current_title)
                if pair is None:
                    pair = self.find_parent_by_title(current_title)
                    if pair is None:
                        return current_pair
                if pair.highlightable_menu_key:
                    return pair
                current_pair = pair
                current_class = pair.parent_class
                current_title = pair.parent_title
                if (current_class, current_title) in seen:
                    logger.warning(
                        "Site map cycle at %s / %r while resolving top level for %s",
                        current_class,
                        current_title,
                        clazz,
                    )
                    return current_pair


_MANAGERS: dict[Path, SiteMapManager] = {}
_MANAGERS_LOCK = threading.Lock()


def get_site_map_manager(settings) -> SiteMapManager:
    """Process-wide manager for the configured database (one per DB path)."""
    db_path = Path(settings.SITEMAP_DB_PATH).resolve()
    with _MANAGERS_LOCK:
        manager = _MANAGERS.get(db_path)
        if manager is None:
            timeout = float(getattr(settings, "SITEMAP_DB_TIMEOUT_SEC", 5.0))
            manager = SiteMapManager(SqliteRelationSource(db_path, timeout=timeout))
            _MANAGERS[db_path] = manager
        return manager


def reset_site_map_managers() -> None:
    with _MANAGERS_LOCK:
        _MANAGERS.clear()
