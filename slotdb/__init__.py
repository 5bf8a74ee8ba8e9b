"""A page-based record store with a table catalog, indexes and a SQL shell."""

__version__ = "0.1.0"
__all__ = ["catalog", "disk", "index", "query", "records", "tables"]