from .search import ES, Query, SearchConfig

__all__ = ["ES", "Query", "SearchConfig"]
