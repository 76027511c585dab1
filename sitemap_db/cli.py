from __future__ import annotations

import json
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .db import INDEX_TABLE, SITE_MAP_TABLE, connect, count_rows, init_db, iter_index_rows
from .errors import SourceUnavailable
from .highlightable_menu import HighlightableMenu, is_feature_enabled
from .importer import import_index, import_site_map
from .logging import configure_logging
from .models import ScreenDescriptor
from .settings import load_settings
from .site_map import SiteMapManager, get_site_map_manager

app = typer.Typer(
    add_completion=False,
    help="sitemap_db: settings site map breadcrumbs + menu key lookup",
    rich_markup_mode="rich",
)
console = Console()

# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════


def _manager() -> SiteMapManager:
    s = load_settings()
    return get_site_map_manager(s)


def _fail(message: str) -> None:
    console.print(f"[red]✗ {message}[/red]")
    raise typer.Exit(code=1)


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN CALLBACK
# ═══════════════════════════════════════════════════════════════════════════════


@app.callback()
def _root(
    log: bool = typer.Option(False, "--log", help="Write diagnostics to the rotating log file"),
    menu_diagnostics: bool = typer.Option(
        False,
        "--menu-diagnostics",
        help="Also log which fallback matched (or missed) for every menu key lookup; implies --log",
    ),
):
    """
    [bold]sitemap_db[/bold]: resolve breadcrumbs and highlighted top-level menus.

    [bold]Examples:[/bold]
      python -m sitemap_db import --site-map site_map.csv
      python -m sitemap_db breadcrumb com.android.settings.network.ApnSettings "APNs"
      python -m sitemap_db menu-key --class com.android.settings.network.ApnSettings
    """
    if log or menu_diagnostics:
        configure_logging(load_settings(), menu_diagnostics=menu_diagnostics or None)


# ═══════════════════════════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════════════════════════


@app.command("status", help="Show configuration and table sizes")
def status():
    s = load_settings()

    console.print(Panel.fit(
        "\n".join([
            f"[bold]Database:[/bold]     {s.SITEMAP_DB_PATH}",
            f"[bold]Highlighting:[/bold] {s.SITEMAP_HIGHLIGHT_ENABLED}",
            f"[bold]Log dir:[/bold]      {s.SITEMAP_LOG_DIR} ({s.SITEMAP_LOG_LEVEL})",
            "",
            "[dim]CSV Sources:[/dim]",
            f"  site map: {s.SITEMAP_CSV_SITE_MAP or '[dim](not set)[/dim]'}",
            f"  index:    {s.SITEMAP_CSV_INDEX or '[dim](not set)[/dim]'}",
        ]),
        title="[bold]Configuration[/bold]",
    ))

    conn = connect(s.SITEMAP_DB_PATH, timeout=s.SITEMAP_DB_TIMEOUT_SEC)
    try:
        init_db(conn)
        table = Table(title="Tables")
        table.add_column("Table")
        table.add_column("Rows", justify="right")
        table.add_row(SITE_MAP_TABLE, str(count_rows(conn, SITE_MAP_TABLE)))
        table.add_row(INDEX_TABLE, str(count_rows(conn, INDEX_TABLE)))
        console.print(table)
    finally:
        conn.close()


@app.command("db", help="Create the site map + index tables")
@app.command("init", hidden=True)  # Alias
def init_database():
    s = load_settings()
    conn = connect(s.SITEMAP_DB_PATH, timeout=s.SITEMAP_DB_TIMEOUT_SEC)
    try:
        init_db(conn)
    finally:
        conn.close()
    console.print(f"[green]✓[/green] Initialized {s.SITEMAP_DB_PATH}")


@app.command("import", help="Import site map and/or index rows from CSV")
def import_data(
    site_map_csv: Optional[str] = typer.Option(None, "--site-map", help="CSV with the five site map columns"),
    index_csv: Optional[str] = typer.Option(None, "--index", help="CSV of searchable screen records"),
    replace: bool = typer.Option(False, "--replace", help="Clear the site map before importing"),
):
    s = load_settings()
    site_map_csv = site_map_csv or s.SITEMAP_CSV_SITE_MAP
    index_csv = index_csv or s.SITEMAP_CSV_INDEX
    if not site_map_csv and not index_csv:
        _fail("Nothing to import: pass --site-map and/or --index (or set SITEMAP_CSV_*)")

    conn = connect(s.SITEMAP_DB_PATH, timeout=s.SITEMAP_DB_TIMEOUT_SEC)
    try:
        init_db(conn)
        try:
            _import_csvs(conn, site_map_csv, index_csv, replace=replace)
        except OSError as e:
            conn.rollback()
            _fail(f"Cannot read CSV: {e}")
    finally:
        conn.close()

    # The table changed under any cached manager.
    get_site_map_manager(s).force_uninitialized()


def _import_csvs(conn, site_map_csv: Optional[str], index_csv: Optional[str], *, replace: bool) -> None:
    if site_map_csv:
        stats = import_site_map(conn, site_map_csv, replace=replace)
        console.print(
            f"[green]✓[/green] site map: inserted={stats.inserted} skipped={stats.skipped}"
        )
    if index_csv:
        stats = import_index(conn, index_csv)
        console.print(
            f"[green]✓[/green] index: inserted={stats.inserted} skipped={stats.skipped}"
        )


@app.command("breadcrumb", help="Print the breadcrumb for a screen")
def breadcrumb(
    clazz: str = typer.Argument(..., help="Fragment class name"),
    title: str = typer.Argument("", help="Screen title"),
    json_out: bool = typer.Option(False, "--json", help="Print a JSON list"),
):
    try:
        crumbs = _manager().build_breadcrumb(clazz, title)
    except SourceUnavailable as e:
        _fail(str(e))

    if json_out:
        print(json.dumps(crumbs, ensure_ascii=False))
        return
    console.print(" > ".join(crumbs) if crumbs else "[dim](empty)[/dim]")


@app.command("top-level", help="Show the nearest ancestor with a menu key")
def top_level(
    clazz: str = typer.Argument(..., help="Fragment class name"),
    title: str = typer.Argument("", help="Screen title"),
):
    try:
        pair = _manager().get_top_level_pair(clazz, title)
    except SourceUnavailable as e:
        _fail(str(e))

    if pair is None:
        console.print("[dim](none)[/dim]")
        return

    table = Table(title="Top-level pair")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("child", f"{pair.child_class} / {pair.child_title}")
    table.add_row("parent", f"{pair.parent_class} / {pair.parent_title}")
    table.add_row("menu key", pair.highlightable_menu_key or "[dim](none)[/dim]")
    console.print(table)


@app.command("menu-key", help="Resolve the highlighted menu key for one screen")
def menu_key(
    class_name: str = typer.Option("", "--class", help="Fragment class name"),
    title: str = typer.Option("", "--title", help="Screen title"),
    package: str = typer.Option("", "--package", help="Package name"),
    authority: str = typer.Option("", "--authority", help="Provider authority"),
    target_package: str = typer.Option("", "--target-package", help="Intent target package"),
):
    descriptor = ScreenDescriptor(
        class_name=class_name,
        screen_title=title,
        package_name=package,
        authority=authority,
        intent_target_package=target_package,
        updated_title=title,
    )
    try:
        key = HighlightableMenu(_manager()).get_menu_key(descriptor)
    except SourceUnavailable as e:
        _fail(str(e))

    print(key)


@app.command("menu-keys", help="Resolve menu keys for every indexed screen")
def menu_keys():
    s = load_settings()
    if not is_feature_enabled(s):
        console.print("[yellow]Menu highlighting is disabled (SITEMAP_HIGHLIGHT_ENABLED=false)[/yellow]")
        return

    menu = HighlightableMenu(get_site_map_manager(s))
    conn = connect(s.SITEMAP_DB_PATH, timeout=s.SITEMAP_DB_TIMEOUT_SEC)
    try:
        init_db(conn)
        rows = [ScreenDescriptor.from_row(r) for r in iter_index_rows(conn)]
    finally:
        conn.close()

    table = Table(title="Menu keys")
    table.add_column("Key")
    table.add_column("Title")
    table.add_column("Class")
    table.add_column("Menu key")
    try:
        for row in rows:
            key = menu.get_menu_key(row)
            table.add_row(
                row.data_key,
                row.updated_title or row.screen_title,
                row.class_name,
                key or "[dim](unresolved)[/dim]",
            )
    except SourceUnavailable as e:
        _fail(str(e))
    console.print(table)


def main():
    app()
