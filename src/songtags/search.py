"""
Case-insensitive substring search over song tags.
"""

from typing import Iterable

from .core import Song, TagCategory


def normalize_search(term: str) -> str:
    """Prepare a user supplied search term for filter_song."""
    return term.strip().lower()


def filter_song(song: Song, search: str, tags: Iterable[TagCategory]) -> bool:
    """
    Check whether any of ``tags`` of ``song`` contains ``search``.

    Args:
        song: Song to check
        search: Lower-cased search term, empty matches every song
        tags: Tags to search, usually the enabled search tags

    Returns:
        True on the first tag containing the term, False if none does

    Examples:
        >>> song = Song("a.mp3")
        >>> song.add_tag(TagCategory.ARTIST, "ArtistName")
        True
        >>> filter_song(song, "artistn", [TagCategory.ARTIST])
        True
    """
    if not search:
        return True
    for tag in tags:
        haystack = ", ".join(song.tag_values(tag)).lower()
        if search in haystack:
            return True
    return False
