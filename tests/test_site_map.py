"""Unit tests for SiteMapManager."""
from __future__ import annotations

import threading
import time

import pytest

from sitemap_db.errors import SourceUnavailable
from sitemap_db.models import SiteMapPair
from sitemap_db.site_map import LoadState, SiteMapManager
from sitemap_db.sources import StaticRelationSource


def _row(child_class, child_title, parent_class, parent_title, menu_key=""):
    return {
        "parent_class": parent_class,
        "parent_title": parent_title,
        "child_class": child_class,
        "child_title": child_title,
        "highlightable_menu_key": menu_key,
    }


def _manager(*rows):
    return SiteMapManager(StaticRelationSource(rows))


def test_load_is_idempotent():
    source = StaticRelationSource([_row("B", "Screen B", "A", "Screen A")])
    manager = SiteMapManager(source)

    manager.load()
    first = manager.pairs
    manager.load()

    assert source.fetch_count == 1
    assert manager.pairs == first
    assert manager.state is LoadState.READY


def test_lazy_load_on_first_lookup():
    source = StaticRelationSource([_row("B", "Screen B", "A", "Screen A")])
    manager = SiteMapManager(source)
    assert not manager.initialized

    pair = manager.find_parent("B", "Screen B")

    assert pair == SiteMapPair("A", "Screen A", "B", "Screen B", "")
    assert manager.initialized
    assert source.fetch_count == 1


def test_force_uninitialized_reloads_latest_rows():
    source = StaticRelationSource([_row("B", "Screen B", "A", "Screen A")])
    manager = SiteMapManager(source)
    manager.load()

    source.rows = [_row("C", "Screen C", "A", "Screen A"), _row("D", "Screen D", "A", "Screen A")]
    manager.force_uninitialized()
    assert manager.state is LoadState.EMPTY

    manager.load()

    assert source.fetch_count == 2
    assert [p.child_class for p in manager.pairs] == ["C", "D"]
    assert manager.find_parent("B", "Screen B") is None


def test_set_initialized_false_matches_force_uninitialized():
    source = StaticRelationSource([_row("B", "Screen B", "A", "Screen A")])
    manager = SiteMapManager(source)
    manager.load()

    manager.set_initialized(False)
    manager.load()

    assert source.fetch_count == 2
    assert len(manager.pairs) == 1


def test_none_columns_become_empty_strings():
    manager = _manager(
        {
            "parent_class": "A",
            "parent_title": None,
            "child_class": "B",
            "child_title": "Screen B",
            "highlightable_menu_key": None,
        }
    )

    pair = manager.find_parent("B", "Screen B")

    assert pair is not None
    assert pair.parent_title == ""
    assert pair.highlightable_menu_key == ""


def test_find_parent_first_match_wins():
    manager = _manager(
        _row("B", "Screen B", "A1", "First"),
        _row("B", "Screen B", "A2", "Second"),
    )

    assert manager.find_parent("B", "Screen B").parent_class == "A1"


def test_find_parent_requires_class_and_title():
    manager = _manager(_row("B", "Screen B", "A", "Screen A"))

    assert manager.find_parent("B", "Other") is None
    assert manager.find_parent("Other", "Screen B") is None


def test_find_parent_by_title_ignores_class():
    manager = _manager(
        _row("X", "Shared", "P1", "Parent 1"),
        _row("Y", "Shared", "P2", "Parent 2"),
    )

    assert manager.find_parent_by_title("Shared").parent_class == "P1"
    assert manager.find_parent_by_title("") is None
    assert manager.find_parent_by_title(None) is None


def test_is_top_level_settings():
    assert SiteMapManager.is_top_level_settings("com.android.settings.homepage.TopLevelSettings")
    assert not SiteMapManager.is_top_level_settings("com.android.settings.network.ApnSettings")
    assert not SiteMapManager.is_top_level_settings(None)


# Breadcrumbs


def test_breadcrumb_partial_chain():
    manager = _manager(_row("B", "Screen B", "A", "Screen A"))

    assert manager.build_breadcrumb("B", "Screen B") == ["Screen A", "Screen B"]


def test_breadcrumb_empty_store_returns_title_only():
    manager = _manager()

    assert manager.build_breadcrumb("X", "Title X") == ["Title X"]


def test_breadcrumb_full_chain_to_root():
    manager = _manager(
        _row("C", "Screen C", "B", "Screen B"),
        _row("B", "Screen B", "A", "Screen A"),
        _row("A", "Screen A", "Root", "Settings"),
    )

    assert manager.build_breadcrumb("C", "Screen C") == [
        "Settings",
        "Screen A",
        "Screen B",
        "Screen C",
    ]


def test_breadcrumb_skips_empty_titles():
    manager = _manager(
        _row("B", "Screen B", "A", ""),
        _row("A", "", "Root", "Settings"),
    )

    assert manager.build_breadcrumb("B", "Screen B") == ["Settings", "Screen B"]


def test_breadcrumb_without_screen_title():
    manager = _manager(_row("B", "", "A", "Screen A"))

    assert manager.build_breadcrumb("B", "") == ["Screen A"]


def test_breadcrumb_does_not_use_title_fallback():
    # Parent is indexed under another class; breadcrumbs stop instead.
    manager = _manager(_row("Other", "Screen B", "A", "Screen A"))

    assert manager.build_breadcrumb("B", "Screen B") == ["Screen B"]


def test_breadcrumb_stops_on_cycle():
    manager = _manager(
        _row("B", "Screen B", "A", "Screen A"),
        _row("A", "Screen A", "B", "Screen B"),
    )

    assert manager.build_breadcrumb("B", "Screen B") == ["Screen A", "Screen B"]


def test_breadcrumb_self_loop_terminates():
    manager = _manager(_row("A", "Screen A", "A", "Screen A"))

    assert manager.build_breadcrumb("A", "Screen A") == ["Screen A"]


# Top-level pairs


def test_top_level_stops_at_first_menu_key():
    manager = _manager(
        _row("B", "Screen B", "A", "Screen A"),
        _row("A", "Screen A", "Root", "Settings", "top_level_apps"),
        _row("Root", "Settings", "Home", "Home", "top_level_system"),
    )

    pair = manager.get_top_level_pair("B", "Screen B")

    assert pair is not None
    assert pair.child_class == "A"
    assert pair.highlightable_menu_key == "top_level_apps"


def test_top_level_returns_direct_pair_with_key():
    manager = _manager(_row("B", "Screen B", "A", "Screen A", "top_level_network"))

    pair = manager.get_top_level_pair("B", "Screen B")

    assert pair.child_class == "B"
    assert pair.highlightable_menu_key == "top_level_network"


def test_top_level_without_keys_returns_last_pair():
    manager = _manager(
        _row("B", "Screen B", "A", "Screen A"),
        _row("A", "Screen A", "Root", "Settings"),
    )

    pair = manager.get_top_level_pair("B", "Screen B")

    assert pair.child_class == "A"
    assert pair.parent_class == "Root"
    assert pair.highlightable_menu_key == ""


def test_top_level_unknown_screen_returns_none():
    manager = _manager(_row("B", "Screen B", "A", "Screen A", "top_level_apps"))

    assert manager.get_top_level_pair("Z", "Nowhere") is None
    assert manager.get_top_level_pair("", "") is None


def test_top_level_adopts_child_title_when_missing():
    manager = _manager(
        _row("B", "Screen B", "A", "Screen A"),
        _row("A", "Screen A", "Root", "Settings", "top_level_privacy"),
    )

    pair = manager.get_top_level_pair("B", "")

    assert pair.highlightable_menu_key == "top_level_privacy"


def test_top_level_falls_back_to_title_lookup():
    # "Screen B" is indexed under a different class than the one we ask about.
    manager = _manager(
        _row("OtherB", "Screen B", "A", "Screen A"),
        _row("A", "Screen A", "Root", "Settings", "top_level_accessibility"),
    )

    pair = manager.get_top_level_pair("B", "Screen B")

    assert pair.child_class == "A"
    assert pair.highlightable_menu_key == "top_level_accessibility"


def test_top_level_keeps_class_match_when_no_parent_found():
    manager = _manager(_row("B", "Screen B", "A", "Screen A"))

    pair = manager.get_top_level_pair("B", "Different title")

    # The class-only match is returned as the tentative pair.
    assert pair.child_class == "B"


def test_top_level_stops_on_cycle():
    manager = _manager(
        _row("B", "Screen B", "A", "Screen A"),
        _row("A", "Screen A", "B", "Screen B"),
    )

    pair = manager.get_top_level_pair("B", "Screen B")

    assert pair is not None
    assert pair.highlightable_menu_key == ""


# Errors + concurrency


class _FlakySource:
    def __init__(self, rows):
        self.rows = rows
        self.fail = True
        self.calls = 0

    def fetch_rows(self):
        self.calls += 1
        if self.fail:
            raise OSError("disk gone")
        return list(self.rows)


def test_failed_load_propagates_and_retries():
    source = _FlakySource([_row("B", "Screen B", "A", "Screen A")])
    manager = SiteMapManager(source)

    with pytest.raises(SourceUnavailable) as exc_info:
        manager.build_breadcrumb("B", "Screen B")
    assert isinstance(exc_info.value.__cause__, OSError)
    assert manager.state is LoadState.EMPTY

    source.fail = False
    assert manager.build_breadcrumb("B", "Screen B") == ["Screen A", "Screen B"]
    assert source.calls == 2


def test_failed_reload_drops_stale_pairs():
    source = _FlakySource([_row("B", "Screen B", "A", "Screen A")])
    source.fail = False
    manager = SiteMapManager(source)
    manager.load()

    source.fail = True
    manager.force_uninitialized()
    with pytest.raises(SourceUnavailable):
        manager.load()

    assert not manager.initialized
    source.fail = False
    assert len(manager.pairs) == 1


class _SlowSource(StaticRelationSource):
    def fetch_rows(self):
        time.sleep(0.05)
        return super().fetch_rows()


def test_concurrent_first_use_loads_once():
    source = _SlowSource([_row("B", "Screen B", "A", "Screen A")])
    manager = SiteMapManager(source)
    results: list[list[str]] = []
    lock = threading.Lock()

    def worker():
        crumbs = manager.build_breadcrumb("B", "Screen B")
        with lock:
            results.append(crumbs)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert source.fetch_count == 1
    assert results == [["Screen A", "Screen B"]] * 8
