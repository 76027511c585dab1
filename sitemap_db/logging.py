"""Log wiring for the `sitemap_db` package logger.

Only the package logger gets handlers; the host application's root logger is
left as it was. The menu resolver logs one DEBUG line per lookup (which
fallback matched, or why nothing did); `menu_diagnostics` turns just those on.
"""
from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

PACKAGE_LOGGER = "sitemap_db"
MENU_DIAGNOSTICS_LOGGER = "sitemap_db.highlightable_menu"
LOG_FILE_NAME = "sitemap_db.log"

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_OWNED = "_sitemap_db_owned"


def _level(name: object) -> int:
    level = logging.getLevelName(str(name or "INFO").upper().strip())
    return level if isinstance(level, int) else logging.INFO


def _drop_owned_handlers(logger: logging.Logger) -> None:
    for handler in [h for h in logger.handlers if getattr(h, _OWNED, False)]:
        logger.removeHandler(handler)
        handler.close()


def configure_logging(settings, *, menu_diagnostics: bool | None = None) -> Path:
    """Send package logs to `<SITEMAP_LOG_DIR>/sitemap_db.log` (rotated at
    midnight) and to stderr. Returns the log file path.

    Calling it again swaps out the handlers from the previous call.
    `menu_diagnostics=None` falls back to SITEMAP_LOG_MENU_DIAGNOSTICS.
    """
    log_dir = Path(settings.SITEMAP_LOG_DIR).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    package = logging.getLogger(PACKAGE_LOGGER)
    _drop_owned_handlers(package)

    formatter = logging.Formatter(_FORMAT)
    rotating = TimedRotatingFileHandler(
        log_file,
        when="midnight",
        backupCount=max(0, int(settings.SITEMAP_LOG_BACKUP_COUNT or 0)),
        encoding="utf-8",
    )
    for handler in (rotating, logging.StreamHandler()):
        # Levels are decided per logger, so the handlers pass everything through.
        handler.setFormatter(formatter)
        setattr(handler, _OWNED, True)
        package.addHandler(handler)

    package.setLevel(_level(settings.SITEMAP_LOG_LEVEL))
    package.propagate = False

    if menu_diagnostics is None:
        menu_diagnostics = bool(getattr(settings, "SITEMAP_LOG_MENU_DIAGNOSTICS", False))
    logging.getLogger(MENU_DIAGNOSTICS_LOGGER).setLevel(
        logging.DEBUG if menu_diagnostics else logging.NOTSET
    )

    package.info("Logging to %s (menu diagnostics: %s)", log_file, menu_diagnostics)
    return log_file


def reset_logging() -> None:
    """Undo `configure_logging`: drop our handlers and hand records back to root."""
    package = logging.getLogger(PACKAGE_LOGGER)
    _drop_owned_handlers(package)
    package.setLevel(logging.NOTSET)
    package.propagate = True
    logging.getLogger(MENU_DIAGNOSTICS_LOGGER).setLevel(logging.NOTSET)
