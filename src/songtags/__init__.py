"""songtags – song tag aggregation and rendering."""

__version__ = "0.1.0"

from .core import (
    TagCategory,
    AudioFormat,
    Song,
    SongTagsError,
    FormatError,
    ALL_TAGS,
    is_multivalue_tag,
    get_sort_tag,
)
from .registry import TagTypeRegistry, check_tags, tag_exists
from .render import (
    append_tag_value_string,
    append_tag_values,
    append_song_tags,
    append_empty_song_tags,
    append_audio_format,
    tag_value_string,
    tag_values_json,
    song_to_json,
    empty_song_to_json,
    basename_uri,
)
from .search import filter_song, normalize_search
from .reader import read_song, read_songs, song_from_mpd, collect_files_generator
from .utils import Config, write_file_atomically

__all__ = [
    "TagCategory",
    "AudioFormat",
    "Song",
    "SongTagsError",
    "FormatError",
    "ALL_TAGS",
    "is_multivalue_tag",
    "get_sort_tag",
    "TagTypeRegistry",
    "check_tags",
    "tag_exists",
    "append_tag_value_string",
    "append_tag_values",
    "append_song_tags",
    "append_empty_song_tags",
    "append_audio_format",
    "tag_value_string",
    "tag_values_json",
    "song_to_json",
    "empty_song_to_json",
    "basename_uri",
    "filter_song",
    "normalize_search",
    "read_song",
    "read_songs",
    "song_from_mpd",
    "collect_files_generator",
    "Config",
    "write_file_atomically",
]
