"""
Enabled tag types, parsed from a comma separated configuration list.
"""

import logging
from threading import Lock
from typing import Iterable, List, Optional, Sequence, Tuple

from .core import ALL_TAGS, TagCategory

logger = logging.getLogger(__name__)


def tag_exists(tags: Sequence[TagCategory], tag: TagCategory) -> bool:
    return tag in tags


def check_tags(taglist: str, allowed: Iterable[TagCategory], taglist_name: str = "tags") -> List[TagCategory]:
    """
    Parse a comma separated tag list and keep the tags the source supports.

    Unknown names are logged as warnings and skipped. Known tags missing
    from ``allowed`` are skipped as well (debug log). A tag listed twice
    keeps the position of its first occurrence.

    Args:
        taglist: Comma separated tag names, e.g. "Artist, Album, Title"
        allowed: Tags supported by the data source
        taglist_name: Name of the list, only used for logging

    Returns:
        Enabled tags in configuration order

    Examples:
        >>> check_tags("Artist, Bogus, Title", [TagCategory.ARTIST, TagCategory.TITLE])
        [<TagCategory.ARTIST: 'Artist'>, <TagCategory.TITLE: 'Title'>]
    """
    allowed = set(allowed)
    enabled: List[TagCategory] = []

    for token in taglist.split(','):
        name = token.strip()
        if not name:
            continue
        tag = TagCategory.parse(name)
        if tag is TagCategory.UNKNOWN:
            logger.warning(f"Unknown tag {name}")
        elif tag not in allowed:
            logger.debug(f"Disabling tag {tag.value}")
        elif tag not in enabled:
            enabled.append(tag)

    logger.info(f"Enabled {taglist_name}: {' '.join(t.value for t in enabled)}")
    return enabled


class TagTypeRegistry:
    """
    Ordered set of enabled tag types.

    The enabled tags are kept as an immutable tuple that configure() replaces
    in one assignment, so concurrent readers always see a complete snapshot.
    """

    def __init__(self, taglist: str = "", allowed: Optional[Iterable[TagCategory]] = None,
                 name: str = "tags", tags_supported: bool = True):
        """
        Args:
            taglist: Comma separated tag names to enable
            allowed: Tags supported by the data source (default: all)
            name: Name of the list, only used for logging
            tags_supported: False if the data source cannot report tags,
                records then only carry the title
        """
        self.name = name
        self.tags_supported = tags_supported
        self._lock = Lock()
        self._enabled: Tuple[TagCategory, ...] = ()
        if taglist:
            self.configure(taglist, allowed)

    @property
    def enabled(self) -> Tuple[TagCategory, ...]:
        return self._enabled

    def configure(self, taglist: str, allowed: Optional[Iterable[TagCategory]] = None) -> Tuple[TagCategory, ...]:
        """Rebuild the enabled tags from ``taglist`` and return the new snapshot."""
        if allowed is None:
            allowed = ALL_TAGS
        snapshot = tuple(check_tags(taglist, allowed, self.name))
        with self._lock:
            self._enabled = snapshot
        return snapshot

    def contains(self, tag: TagCategory) -> bool:
        return tag_exists(self._enabled, tag)

    def __contains__(self, tag: TagCategory) -> bool:
        return self.contains(tag)

    def __iter__(self):
        return iter(self._enabled)

    def __len__(self) -> int:
        return len(self._enabled)

    def __repr__(self) -> str:
        return f"TagTypeRegistry({self.name!r}, {[t.value for t in self._enabled]})"
