"""
Catalog Engine - browsing, bookmarks and statistics over published stacks.
"""

from stackatlas.engines.catalog.catalog_service import CatalogService, StackRow, filter_options
from stackatlas.engines.catalog.bookmark_service import BookmarkService
from stackatlas.engines.catalog.stats_service import StatsService, CatalogStats, Bucket

__all__ = [
    "CatalogService",
    "StackRow",
    "filter_options",
    "BookmarkService",
    "StatsService",
    "CatalogStats",
    "Bucket",
]
