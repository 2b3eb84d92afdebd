"""Edition identifiers and their ordering."""

from .ordering import edition_key, editions_less_than, sort_editions

__all__ = ["edition_key", "editions_less_than", "sort_editions"]
