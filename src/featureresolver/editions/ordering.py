"""Total order over edition identifiers.

Editions are dot-separated numerals such as ``"2023"`` or ``"2023.1"``.
Comparing them as whole strings would put ``"10"`` before ``"9"``, so each
segment is compared by length first and only then by content. When one
edition extends the other (``"2023"`` vs ``"2023.1"``) the longer one is the
more specific and therefore later edition.
"""

from collections.abc import Iterable

EditionKey = tuple[tuple[int, str], ...]


def edition_key(edition: str) -> EditionKey:
    """Build the sort key for an edition.

    Tuple comparison of ``(len(segment), segment)`` pairs gives exactly the
    edition order, including the "more segments is later" rule.

    Args:
        edition: Edition identifier (e.g., "2023.1")

    Returns:
        Key usable with sorted(), bisect and plain comparisons
    """
    return tuple((len(segment), segment) for segment in edition.split("."))


def editions_less_than(a: str, b: str) -> bool:
    """Return True if edition ``a`` strictly precedes edition ``b``."""
    return edition_key(a) < edition_key(b)


def sort_editions(editions: Iterable[str]) -> list[str]:
    """Deduplicate and sort editions in increasing order."""
    return sorted(set(editions), key=edition_key)
