from __future__ import annotations


class SiteMapError(RuntimeError):
    """Base class for site map failures."""


class SourceUnavailable(SiteMapError):
    """The site map relation could not be read.

    The store stays uninitialized, so the next lookup retries the full load.
    """
