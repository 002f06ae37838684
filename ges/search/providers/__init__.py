from ._base import SearchEngine

__all__ = ["SearchEngine"]
