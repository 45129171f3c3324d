"""
Song - in-memory tag store for a single media item.
Defines the closed set of tag categories and their static properties.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Any

logger = logging.getLogger(__name__)


class TagCategory(Enum):
    """
    Tag types known to the music daemon. The value is the protocol name,
    which is also used as the key in rendered records.
    """
    UNKNOWN = "unknown"
    ARTIST = "Artist"
    ARTIST_SORT = "ArtistSort"
    ALBUM = "Album"
    ALBUM_SORT = "AlbumSort"
    ALBUM_ARTIST = "AlbumArtist"
    ALBUM_ARTIST_SORT = "AlbumArtistSort"
    TITLE = "Title"
    TRACK = "Track"
    NAME = "Name"
    GENRE = "Genre"
    DATE = "Date"
    ORIGINAL_DATE = "OriginalDate"
    COMPOSER = "Composer"
    COMPOSER_SORT = "ComposerSort"
    PERFORMER = "Performer"
    CONDUCTOR = "Conductor"
    WORK = "Work"
    ENSEMBLE = "Ensemble"
    MOVEMENT = "Movement"
    MOVEMENT_NUMBER = "MovementNumber"
    LOCATION = "Location"
    GROUPING = "Grouping"
    COMMENT = "Comment"
    DISC = "Disc"
    LABEL = "Label"
    MUSICBRAINZ_ARTISTID = "MUSICBRAINZ_ARTISTID"
    MUSICBRAINZ_ALBUMID = "MUSICBRAINZ_ALBUMID"
    MUSICBRAINZ_ALBUMARTISTID = "MUSICBRAINZ_ALBUMARTISTID"
    MUSICBRAINZ_TRACKID = "MUSICBRAINZ_TRACKID"
    MUSICBRAINZ_RELEASETRACKID = "MUSICBRAINZ_RELEASETRACKID"
    MUSICBRAINZ_WORKID = "MUSICBRAINZ_WORKID"

    @classmethod
    def parse(cls, name: str) -> 'TagCategory':
        """
        Resolve a tag name case-insensitively.

        Returns:
            Matching category, or TagCategory.UNKNOWN
        """
        return _NAME_LOOKUP.get(name.strip().lower(), cls.UNKNOWN)


# Flat lookup table: lower-cased protocol name -> category
_NAME_LOOKUP = {t.value.lower(): t for t in TagCategory if t is not TagCategory.UNKNOWN}

# Every real category, in enumeration order
ALL_TAGS = tuple(t for t in TagCategory if t is not TagCategory.UNKNOWN)

# Categories that may carry more than one value per song
MULTI_VALUE_TAGS = frozenset({
    TagCategory.ARTIST,
    TagCategory.ARTIST_SORT,
    TagCategory.ALBUM_ARTIST,
    TagCategory.ALBUM_ARTIST_SORT,
    TagCategory.GENRE,
    TagCategory.COMPOSER,
    TagCategory.COMPOSER_SORT,
    TagCategory.PERFORMER,
    TagCategory.CONDUCTOR,
    TagCategory.ENSEMBLE,
    TagCategory.MUSICBRAINZ_ARTISTID,
    TagCategory.MUSICBRAINZ_ALBUMARTISTID,
})

# Primary category -> its sort variant
SORT_TAGS = {
    TagCategory.ARTIST: TagCategory.ARTIST_SORT,
    TagCategory.ALBUM_ARTIST: TagCategory.ALBUM_ARTIST_SORT,
    TagCategory.ALBUM: TagCategory.ALBUM_SORT,
    TagCategory.COMPOSER: TagCategory.COMPOSER_SORT,
}

# Some sources pack several ids into one semicolon separated value
MUSICBRAINZ_SPLIT_TAGS = frozenset({
    TagCategory.MUSICBRAINZ_ARTISTID,
    TagCategory.MUSICBRAINZ_ALBUMARTISTID,
})


def is_multivalue_tag(tag: TagCategory) -> bool:
    return tag in MULTI_VALUE_TAGS


def get_sort_tag(tag: TagCategory) -> TagCategory:
    """Return the sort variant of ``tag``, or ``tag`` itself if it has none."""
    return SORT_TAGS.get(tag, tag)


class SongTagsError(Exception):
    """Base exception for songtags errors."""
    pass

class FormatError(SongTagsError):
    """Raised when file format is unsupported or corrupted."""
    pass


@dataclass(frozen=True)
class AudioFormat:
    """Audio format as reported by the source; 0 means unknown."""
    sample_rate: int = 0
    bits: int = 0
    channels: int = 0


class Song:
    """
    Tags and file properties of one song.

    Each tag category holds an ordered list of distinct values. The first
    value is the primary one. The only mutator for tags is add_tag.
    """

    def __init__(self, uri: str, duration: int = 0, last_modified: int = 0,
                 audio_format: Optional[AudioFormat] = None):
        self.uri = uri
        self.duration = duration
        self.last_modified = last_modified
        self.audio_format = audio_format
        self._tags: Dict[TagCategory, List[str]] = {}

    def add_tag(self, tag: Any, value: str) -> bool:
        """
        Add a tag value if it is not already present.

        Args:
            tag: Category to add the value to
            value: Raw value as reported by the source

        Returns:
            True if the value was stored, False if the category is invalid,
            the value is a duplicate or it could not be stored
        """
        if not isinstance(tag, TagCategory) or tag is TagCategory.UNKNOWN:
            logger.debug(f"Ignoring value for invalid tag {tag!r} of {self.uri}")
            return False

        values = self._tags.get(tag)
        if values is not None and value in values:
            return False

        try:
            if values is None:
                self._tags[tag] = [value]
            else:
                values.append(value)
        except MemoryError:
            logger.error(f"Out of memory storing {tag.value} for {self.uri}")
            return False
        return True

    def get_tag(self, tag: TagCategory, idx: int = 0) -> Optional[str]:
        """Return the idx-th value of ``tag`` or None."""
        values = self._tags.get(tag)
        if values is None or idx < 0 or idx >= len(values):
            return None
        return values[idx]

    def tag_values(self, tag: TagCategory) -> List[str]:
        """Return a copy of all values of ``tag`` in insertion order."""
        return list(self._tags.get(tag, ()))

    def value_count(self, tag: TagCategory) -> int:
        return len(self._tags.get(tag, ()))

    def set_last_modified(self, last_modified: int) -> None:
        self.last_modified = last_modified

    def __repr__(self) -> str:
        return f"Song(uri={self.uri!r}, tags={len(self._tags)})"
