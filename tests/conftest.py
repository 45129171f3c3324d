"""
Pytest configuration and shared fixtures.
"""

import pytest
from types import SimpleNamespace

from songtags.core import AudioFormat, Song, TagCategory
from songtags.registry import TagTypeRegistry

# ---------- Constants ----------

TAGS = {
    TagCategory.TITLE: ["Test Title"],
    TagCategory.ARTIST: ["Test Artist", "Guest Artist"],
    TagCategory.ALBUM: ["Test Album"],
    TagCategory.GENRE: ["Rock"],
    TagCategory.DATE: ["2025"],
    TagCategory.TRACK: ["1"],
}

# Minimal MP3 header, enough for validate_file (content is never parsed, mutagen is mocked)
MP3_HEADER = b'ID3\x03\x00\x00\x00\x00\x0F' b'TIT2\x00\x00\x00\x03\x00\x00\x00HI' b'\xFF\xFB\x90\x00\x00\x00\x00\x00'

# ---------- Helper Functions ----------

def make_song(uri="music/Artist/Album/01 Song.mp3", tags=None, **kwargs):
    """Create a song populated through add_tag."""
    song = Song(uri, **kwargs)
    for tag, values in (tags or {}).items():
        for v in values:
            song.add_tag(tag, v)
    return song

def fake_mutagen_file(tags=None, length=0.0, sample_rate=0, channels=0, **info):
    """Object shaped like the result of mutagen.File(path, easy=True)."""
    return SimpleNamespace(
        tags=tags,
        info=SimpleNamespace(length=length, sample_rate=sample_rate, channels=channels, **info),
    )

# ---------- Fixtures ----------

@pytest.fixture
def song():
    """Song with a typical set of tags."""
    return make_song(
        tags=TAGS,
        duration=215,
        last_modified=1700000000,
        audio_format=AudioFormat(44100, 16, 2),
    )

@pytest.fixture
def empty_song():
    """Song without any tags."""
    return Song("music/Foo.mp3")

@pytest.fixture
def registry():
    return TagTypeRegistry("Artist,Title,Album,Genre")

@pytest.fixture
def audio_dir(tmp_path):
    """Directory with dummy mp3 files and one unsupported file."""
    audio_dir = tmp_path / "audio"
    audio_dir.mkdir()
    for i in range(3):
        (audio_dir / f"track_{i:02d}.mp3").write_bytes(MP3_HEADER + b'\x00' * 1024)
    (audio_dir / "cover.jpg").write_bytes(b'\xff\xd8\xff')
    sub = audio_dir / "sub"
    sub.mkdir()
    (sub / "sub_track.mp3").write_bytes(MP3_HEADER + b'\x00' * 1024)
    return audio_dir
