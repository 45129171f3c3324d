"""
Rendering of song tags as display strings and JSON fragments.

All append_* functions write into a caller-owned text buffer (anything with
a ``write`` method, usually io.StringIO) so a whole response can be built
without intermediate strings per tag.
"""

import io
import json
import posixpath
from typing import Optional, TextIO

from .core import (
    MUSICBRAINZ_SPLIT_TAGS,
    AudioFormat,
    Song,
    TagCategory,
    is_multivalue_tag,
)
from .registry import TagTypeRegistry

# Placeholder for tags without a value
EMPTY_VALUE = "-"


def json_escape(value: str) -> str:
    """Escape ``value`` for use inside a JSON string, without the quotes."""
    return json.dumps(value, ensure_ascii=False)[1:-1]


def basename_uri(uri: str) -> str:
    """
    Display name for a song uri.

    Stream uris keep everything but query string and fragment, file uris
    are reduced to the file name without extension.

    Examples:
        >>> basename_uri("music/Foo.mp3")
        'Foo'
        >>> basename_uri("http://radio.example/stream.mp3?sid=1")
        'http://radio.example/stream.mp3'
    """
    if "://" in uri:
        for sep in ("?", "#"):
            uri = uri.split(sep, 1)[0]
        return uri
    name = posixpath.basename(uri.rstrip("/"))
    root, _ext = posixpath.splitext(name)
    return root or name


# ---------- Display strings ----------
def _append_value_string(buf: TextIO, song: Song, tag: TagCategory) -> int:
    values = song.tag_values(tag)
    buf.write(", ".join(values))
    return len(values)


def append_tag_value_string(buf: TextIO, song: Song, tag: TagCategory) -> None:
    """
    Append all values of ``tag`` joined with ", ".

    An empty title falls back to the name tag and then to the file name.
    """
    count = _append_value_string(buf, song, tag)
    if count == 0 and tag is TagCategory.TITLE:
        count = _append_value_string(buf, song, TagCategory.NAME)
        if count == 0:
            buf.write(basename_uri(song.uri))


def tag_value_string(song: Song, tag: TagCategory) -> str:
    buf = io.StringIO()
    append_tag_value_string(buf, song, tag)
    return buf.getvalue()


# ---------- JSON values ----------
def _split_musicbrainz(values):
    # A single id value may hold several ids joined by ";"
    if len(values) == 1:
        if not values[0]:
            return []
        return [v.strip(" ") for v in values[0].split(";")]
    return values


def _append_values(buf: TextIO, song: Song, tag: TagCategory, multi: bool) -> int:
    """Append a JSON array (multi) or string of the values, nothing if there are none."""
    values = song.tag_values(tag)
    if not values:
        return 0

    if multi:
        if tag in MUSICBRAINZ_SPLIT_TAGS:
            values = _split_musicbrainz(values)
            if not values:
                return 0
        buf.write("[")
        buf.write(",".join(f'"{json_escape(v)}"' for v in values))
        buf.write("]")
    else:
        buf.write('"')
        buf.write(", ".join(json_escape(v) for v in values))
        buf.write('"')
    return len(values)


def append_tag_values(buf: TextIO, song: Song, tag: TagCategory) -> None:
    """
    Append the values of ``tag`` as JSON.

    Multi-valued tags become an array, all other tags a string. An empty
    title falls back to the name tag and then to the file name, any other
    empty tag is rendered as "-" (or ["-"]).
    """
    multi = is_multivalue_tag(tag)
    if _append_values(buf, song, tag, multi) > 0:
        return

    if tag is TagCategory.TITLE:
        if _append_values(buf, song, TagCategory.NAME, multi) == 0:
            buf.write(f'"{json_escape(basename_uri(song.uri))}"')
    elif multi:
        buf.write(f'["{EMPTY_VALUE}"]')
    else:
        buf.write(f'"{EMPTY_VALUE}"')


def tag_values_json(song: Song, tag: TagCategory) -> str:
    buf = io.StringIO()
    append_tag_values(buf, song, tag)
    return buf.getvalue()


# ---------- Records ----------
def _append_key(buf: TextIO, key: str) -> None:
    buf.write(f'"{json_escape(key)}":')


def append_song_tags(buf: TextIO, song: Song, registry: TagTypeRegistry) -> None:
    """
    Append the record fields of ``song``: every enabled tag, then
    Duration, LastModified and uri. No enclosing braces are written.
    """
    tags = registry.enabled if registry.tags_supported else (TagCategory.TITLE,)
    for tag in tags:
        _append_key(buf, tag.value)
        append_tag_values(buf, song, tag)
        buf.write(",")

    buf.write(f'"Duration":{int(song.duration)},')
    buf.write(f'"LastModified":{int(song.last_modified)},')
    buf.write(f'"uri":"{json_escape(song.uri)}"')


def append_empty_song_tags(buf: TextIO, uri: str, registry: TagTypeRegistry) -> None:
    """
    Append a record for a song whose tags are unknown, e.g. a file that
    has not been read yet. Same shape as append_song_tags.
    """
    title = f'"{json_escape(basename_uri(uri))}"'
    tags = registry.enabled if registry.tags_supported else (TagCategory.TITLE,)
    for tag in tags:
        _append_key(buf, tag.value)
        value = title if tag is TagCategory.TITLE else f'"{EMPTY_VALUE}"'
        if is_multivalue_tag(tag):
            buf.write(f"[{value}]")
        else:
            buf.write(value)
        buf.write(",")

    buf.write('"Duration":0,')
    buf.write('"LastModified":0,')
    buf.write(f'"uri":"{json_escape(uri)}"')


def append_audio_format(buf: TextIO, audio_format: Optional[AudioFormat]) -> None:
    fmt = audio_format or AudioFormat()
    buf.write('"AudioFormat":{')
    buf.write(f'"sampleRate":{fmt.sample_rate},')
    buf.write(f'"bits":{fmt.bits},')
    buf.write(f'"channels":{fmt.channels}')
    buf.write("}")


def song_to_json(song: Song, registry: TagTypeRegistry, audio_format: bool = False) -> str:
    """Render ``song`` as a complete JSON object."""
    buf = io.StringIO()
    buf.write("{")
    append_song_tags(buf, song, registry)
    if audio_format:
        buf.write(",")
        append_audio_format(buf, song.audio_format)
    buf.write("}")
    return buf.getvalue()


def empty_song_to_json(uri: str, registry: TagTypeRegistry) -> str:
    buf = io.StringIO()
    buf.write("{")
    append_empty_song_tags(buf, uri, registry)
    buf.write("}")
    return buf.getvalue()
