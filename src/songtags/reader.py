"""
Feeds that populate Song objects: local audio files (via mutagen) and
parsed MPD song responses.
"""

import os
import logging
from datetime import datetime
from pathlib import Path
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, Generator, Iterable, List, Optional, Tuple, Union

import mutagen

from .core import AudioFormat, FormatError, Song, TagCategory
from .utils import Config, safe_unicode_path

logger = logging.getLogger(__name__)

# Audio formats this library can read tags from
SUPPORTED_EXT = {'.mp3', '.flac', '.m4a', '.mp4', '.ogg', '.opus', '.wav', '.wma'}

# Maps each tag category to the keys mutagen reports for it: easy interface
# and Vorbis comment names, raw ID3 frame ids (WAV has no easy interface)
# and ASF attribute names (WMA). Lookups are done on lower-cased keys.
TAG_ALIASES = {
    TagCategory.TITLE: {"title", "tit2"},
    TagCategory.NAME: {"name"},
    TagCategory.ARTIST: {"artist", "artists", "tpe1", "author"},
    TagCategory.ARTIST_SORT: {"artistsort", "artist_sort", "tsop", "wm/artistsortorder"},
    TagCategory.ALBUM: {"album", "talb", "wm/albumtitle"},
    TagCategory.ALBUM_SORT: {"albumsort", "album_sort", "tsoa", "wm/albumsortorder"},
    TagCategory.ALBUM_ARTIST: {"albumartist", "album_artist", "album artist", "albumartists",
                               "tpe2", "wm/albumartist"},
    TagCategory.ALBUM_ARTIST_SORT: {"albumartistsort", "albumartist_sort", "tso2", "wm/albumartistsortorder"},
    TagCategory.TRACK: {"tracknumber", "track", "trck", "wm/tracknumber"},
    TagCategory.DISC: {"discnumber", "disc", "tpos", "wm/partofset"},
    TagCategory.GENRE: {"genre", "tcon", "wm/genre"},
    TagCategory.DATE: {"date", "year", "tdrc", "tyer", "wm/year"},
    TagCategory.ORIGINAL_DATE: {"originaldate", "original_date", "tdor", "tory", "wm/originalreleaseyear"},
    TagCategory.COMPOSER: {"composer", "tcom", "wm/composer"},
    TagCategory.COMPOSER_SORT: {"composersort", "composer_sort", "tsoc", "wm/composersortorder"},
    TagCategory.PERFORMER: {"performer", "performers", "tpe3", "txxx:performer", "wm/performer"},
    TagCategory.CONDUCTOR: {"conductor", "wm/conductor"},
    TagCategory.WORK: {"work", "wm/work"},
    TagCategory.ENSEMBLE: {"ensemble"},
    TagCategory.MOVEMENT: {"movement", "movementname", "mvnm"},
    TagCategory.MOVEMENT_NUMBER: {"movementnumber", "mvin"},
    TagCategory.LOCATION: {"location"},
    TagCategory.GROUPING: {"grouping", "tit1", "wm/contentgroupdescription"},
    TagCategory.COMMENT: {"comment", "description"},
    TagCategory.LABEL: {"label", "organization", "publisher", "tpub", "wm/publisher"},
    TagCategory.MUSICBRAINZ_ARTISTID: {"musicbrainz_artistid", "musicbrainz artist id",
                                       "txxx:musicbrainz artist id", "musicbrainz/artist id"},
    TagCategory.MUSICBRAINZ_ALBUMID: {"musicbrainz_albumid", "musicbrainz album id",
                                      "txxx:musicbrainz album id", "musicbrainz/album id"},
    TagCategory.MUSICBRAINZ_ALBUMARTISTID: {"musicbrainz_albumartistid", "musicbrainz album artist id",
                                            "txxx:musicbrainz album artist id", "musicbrainz/album artist id"},
    TagCategory.MUSICBRAINZ_TRACKID: {"musicbrainz_trackid", "musicbrainz_recordingid",
                                      "musicbrainz/track id"},
    TagCategory.MUSICBRAINZ_RELEASETRACKID: {"musicbrainz_releasetrackid", "musicbrainz release track id",
                                             "txxx:musicbrainz release track id", "musicbrainz/release track id"},
    TagCategory.MUSICBRAINZ_WORKID: {"musicbrainz_workid", "musicbrainz work id",
                                     "txxx:musicbrainz work id", "musicbrainz/work id"},
}

# Flat lookup table: any alias -> category
_ALIAS_LOOKUP: Dict[str, TagCategory] = {}
for _tag, _aliases in TAG_ALIASES.items():
    _ALIAS_LOOKUP[_tag.value.lower()] = _tag
    for _alias in _aliases:
        _ALIAS_LOOKUP[_alias] = _tag

# Keys of an MPD song response that are not tags
_MPD_FIELDS = {'file', 'duration', 'time', 'last-modified', 'format', 'pos', 'id', 'prio', 'range', 'added'}


def tag_for_key(key: str) -> TagCategory:
    """
    Map a native tag key to its category.

    Handles EasyID3 role keys ("performer:guitar"), ID3 comment frames
    without a description ("COMM::eng") and falls back to the protocol
    names ("MUSICBRAINZ_ARTISTID", "AlbumArtistSort").
    """
    k = key.strip().lower()
    if k.startswith("performer:"):
        return TagCategory.PERFORMER
    if k == "comm" or k.startswith("comm::"):
        return TagCategory.COMMENT
    tag = _ALIAS_LOOKUP.get(k)
    if tag is None:
        tag = TagCategory.parse(k)
    return tag


def _as_list(value: Any) -> List[str]:
    values = value if isinstance(value, (list, tuple)) else [value]
    out = []
    for v in values:
        # ID3 frames hold a list of texts, ASF attributes a single value
        if isinstance(getattr(v, 'text', None), list):
            out.extend(str(t) for t in v.text)
            continue
        if hasattr(v, 'value'):
            v = v.value
        if isinstance(v, bytes):
            out.append(v.decode(Config.DEFAULT_ENCODING, errors='replace'))
        elif v is not None:
            out.append(str(v))
    return out


def _first(value: Any) -> Optional[str]:
    values = _as_list(value)
    return values[0] if values else None


def _safe_int(x: Any) -> int:
    """Convert to int, 0 for anything that is not a number."""
    try:
        return int(float(str(x)))
    except (ValueError, TypeError):
        return 0


# ---------- Audio file feed ----------
def validate_file(path: Path) -> Tuple[bool, str]:
    """Check that ``path`` is a readable audio file of sane size."""
    try:
        if not path.exists():
            return False, "File does not exist"
        if not path.is_file():
            return False, "Path is not a file"

        file_size = path.stat().st_size
        if file_size > Config.MAX_FILE_SIZE:
            return False, f"File too large ({file_size} bytes)"
        if file_size == 0:
            return False, "File is empty"

        if not os.access(path, os.R_OK):
            return False, "No read permission"

        ext = path.suffix.lower()
        if ext not in SUPPORTED_EXT:
            return False, f"Unsupported file extension: {ext}"

        return True, "Valid"
    except OSError as e:
        return False, f"Validation error: {e}"


def _audio_format(info: Any) -> Optional[AudioFormat]:
    if info is None:
        return None
    return AudioFormat(
        sample_rate=_safe_int(getattr(info, 'sample_rate', 0)),
        bits=_safe_int(getattr(info, 'bits_per_sample', 0)),
        channels=_safe_int(getattr(info, 'channels', 0)),
    )


def read_song(path: Union[str, Path], uri: Optional[str] = None) -> Song:
    """
    Read tags and stream properties of an audio file.

    Args:
        path: Audio file to read
        uri: Uri to store in the song (default: the path as given)

    Raises:
        FormatError: If mutagen cannot parse the file
    """
    path = Path(path)
    try:
        mfile = mutagen.File(path, easy=True)
    except mutagen.MutagenError as e:
        raise FormatError(f"Unsupported file format or corrupted file: {e}")
    except OSError as e:
        raise FormatError(f"Failed to load file {path}: {e}")
    if mfile is None:
        raise FormatError("Unsupported file format or corrupted file")

    try:
        mtime = int(path.stat().st_mtime)
    except OSError as e:
        raise FormatError(f"Failed to stat file {path}: {e}")

    info = getattr(mfile, 'info', None)
    song = Song(
        uri if uri is not None else safe_unicode_path(path.as_posix()),
        duration=_safe_int(getattr(info, 'length', 0)),
        last_modified=mtime,
        audio_format=_audio_format(info),
    )

    tags = mfile.tags
    if tags is None:
        return song
    for key, value in tags.items():
        tag = tag_for_key(str(key))
        if tag is TagCategory.UNKNOWN:
            logger.debug(f"Skipping unmapped tag {key} in {path}")
            continue
        for v in _as_list(value):
            song.add_tag(tag, v)
    return song


def collect_files_generator(path: Path, recursive: bool = False, ext_set: Optional[set] = None) -> Generator[Path, None, None]:
    """Generator to collect files efficiently without loading all into memory."""
    if path.is_file():
        yield path
        return

    walker = path.rglob('*') if recursive else path.glob('*')

    for item in sorted(walker):
        if item.is_file():
            ext = item.suffix.lower()
            if ext_set and ext not in ext_set:
                continue
            if ext in SUPPORTED_EXT:
                yield item


def _read_one(path: Path) -> Tuple[Optional[Song], Optional[str]]:
    is_valid, msg = validate_file(path)
    if not is_valid:
        return None, f"file validation failed: {msg}"
    try:
        return read_song(path), None
    except FormatError as e:
        return None, f"file error: {e}"


def read_songs(files: Iterable[Path], max_workers: Optional[int] = None,
               use_parallel: bool = True) -> Tuple[List[Song], List[Dict[str, str]]]:
    """
    Read many files, in a thread pool when the batch is large enough.

    Every song is populated by exactly one worker. Input order is kept.

    Returns:
        Tuple of (songs, errors) where errors holds {'path', 'error'} dicts
    """
    files_list = list(files)
    if not files_list:
        return [], []

    if max_workers is None:
        max_workers = Config.MAX_WORKERS

    results: List[Tuple[Optional[Song], Optional[str]]] = [(None, None)] * len(files_list)

    if use_parallel and len(files_list) >= Config.MIN_FILES_FOR_PARALLEL and max_workers != 1:
        with Config.PROGRESS_LOCK:
            logger.info(f"Reading {len(files_list)} files with {max_workers} workers")
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_idx = {executor.submit(_read_one, p): i for i, p in enumerate(files_list)}
            for future in as_completed(future_to_idx):
                idx = future_to_idx[future]
                try:
                    results[idx] = future.result()
                except Exception as e:
                    results[idx] = (None, f"Unexpected error: {e}")
    else:
        logger.info(f"Reading {len(files_list)} files sequentially")
        for i, p in enumerate(files_list):
            results[i] = _read_one(p)

    songs = []
    errors = []
    for path, (song, error) in zip(files_list, results):
        if song is not None:
            songs.append(song)
        else:
            logger.warning(f"Skipping {path}: {error}")
            errors.append({'path': str(path), 'error': error})
    return songs, errors


# ---------- MPD response feed ----------
def _parse_mpd_time(value: str) -> int:
    """Unix timestamp of an ISO-8601 'Last-Modified' value, 0 if invalid."""
    try:
        return int(datetime.fromisoformat(value.strip().replace('Z', '+00:00')).timestamp())
    except ValueError:
        logger.debug(f"Invalid last-modified value {value!r}")
        return 0


def _parse_mpd_format(value: str) -> AudioFormat:
    # "44100:24:2"; bits may be "f" (float) or "dsd", rate may be "dsd64"
    parts = value.split(':')
    parts += [''] * (3 - len(parts))
    return AudioFormat(
        sample_rate=_safe_int(parts[0]),
        bits=_safe_int(parts[1]),
        channels=_safe_int(parts[2]),
    )


def song_from_mpd(response: Dict[str, Any]) -> Song:
    """
    Build a song from a parsed MPD song response.

    Keys are expected lower-cased and repeated tags as lists, which is how
    python-mpd2 returns them, e.g.
    {'file': 'a/b.flac', 'artist': ['A', 'B'], 'time': '215', 'format': '44100:16:2'}.
    """
    uri = safe_unicode_path(response.get('file', ''))
    if 'duration' in response:
        duration = _safe_int(_first(response['duration']))
    else:
        duration = _safe_int(_first(response.get('time', 0)))

    audio_format = None
    fmt = _first(response.get('format'))
    if fmt:
        audio_format = _parse_mpd_format(fmt)

    song = Song(uri, duration=duration, audio_format=audio_format)
    last_modified = _first(response.get('last-modified'))
    if last_modified:
        song.set_last_modified(_parse_mpd_time(last_modified))

    for key, value in response.items():
        if key.lower() in _MPD_FIELDS:
            continue
        tag = TagCategory.parse(key)
        if tag is TagCategory.UNKNOWN:
            logger.debug(f"Ignoring unknown key {key} in response for {uri}")
            continue
        for v in _as_list(value):
            song.add_tag(tag, v)
    return song
