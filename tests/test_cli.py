import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from songtags.cli import main, render_display, render_json
from songtags.core import TagCategory
from songtags.registry import TagTypeRegistry
from songtags.utils import (
    EXIT_CODE_ERROR,
    EXIT_CODE_INTERRUPTED,
    EXIT_CODE_NO_FILES,
    EXIT_CODE_PERMISSION,
    EXIT_CODE_SUCCESS,
    EXIT_CODE_USAGE,
)
from conftest import fake_mutagen_file, make_song

LIBRARY = {
    "track_00": {'title': ['Yesterday'], 'artist': ['The Beatles']},
    "track_01": {'title': ['Paranoid'], 'artist': ['Black Sabbath'], 'genre': ['Metal']},
    "track_02": {'artist': ['Unknown'], 'musicbrainz_artistid': ['id1;id2']},
    "sub_track": {'title': ['Hidden']},
}


def _library_file(path, easy=True):
    return fake_mutagen_file(tags=LIBRARY[Path(path).stem], length=120.0,
                             sample_rate=44100, channels=2, bits_per_sample=16)


def run_cli(argv):
    with patch.object(sys, 'argv', ['songtags'] + argv):
        with pytest.raises(SystemExit) as exc:
            main()
    return exc.value.code


@pytest.fixture(autouse=True)
def in_tmp_dir(tmp_path, monkeypatch):
    """setup_logging creates logs/ in the working directory."""
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def library():
    with patch('mutagen.File', side_effect=_library_file) as mock_mutagen:
        yield mock_mutagen


class TestCLI:

    def test_display_output(self, audio_dir, library, capsys):
        code = run_cli([str(audio_dir), '--tags', 'Title,Artist'])
        assert code == EXIT_CODE_SUCCESS
        out = capsys.readouterr().out
        assert "    Title: Yesterday" in out
        assert "    Artist: Black Sabbath" in out
        # Title falls back to the file name
        assert "    Title: track_02" in out
        assert "Hidden" not in out

    def test_json_output(self, audio_dir, library, capsys):
        code = run_cli([str(audio_dir), '--tags', 'Title,Artist,MUSICBRAINZ_ARTISTID', '--format', 'json'])
        assert code == EXIT_CODE_SUCCESS
        out = capsys.readouterr().out
        records = json.loads(out[out.index('['):])
        assert [r['Title'] for r in records] == ['Yesterday', 'Paranoid', 'track_02']
        assert records[2]['MUSICBRAINZ_ARTISTID'] == ['id1', 'id2']
        assert records[0]['MUSICBRAINZ_ARTISTID'] == ['-']
        assert records[0]['Duration'] == 120
        assert 'AudioFormat' not in records[0]

    def test_json_audio_format(self, audio_dir, library, capsys):
        run_cli([str(audio_dir), '--format', 'json', '--audio-format'])
        out = capsys.readouterr().out
        records = json.loads(out[out.index('['):])
        assert records[0]['AudioFormat'] == {'sampleRate': 44100, 'bits': 16, 'channels': 2}

    def test_search(self, audio_dir, library, capsys):
        code = run_cli([str(audio_dir), '--format', 'json', '--search', 'SABBATH'])
        assert code == EXIT_CODE_SUCCESS
        out = capsys.readouterr().out
        records = json.loads(out[out.index('['):])
        assert [r['Title'] for r in records] == ['Paranoid']

    def test_search_tags_restrict(self, audio_dir, library, capsys):
        run_cli([str(audio_dir), '--format', 'json', '--search', 'metal', '--search-tags', 'Title'])
        out = capsys.readouterr().out
        assert json.loads(out[out.index('['):]) == []

    def test_recursive(self, audio_dir, library, capsys):
        run_cli([str(audio_dir), '--recursive', '--tags', 'Title'])
        assert "Title: Hidden" in capsys.readouterr().out

    def test_output_file(self, audio_dir, library, tmp_path):
        target = tmp_path / "songs.json"
        code = run_cli([str(audio_dir), '--format', 'json', '--output', str(target)])
        assert code == EXIT_CODE_SUCCESS
        assert len(json.loads(target.read_text(encoding='utf-8'))) == 3

    def test_output_write_failure(self, audio_dir, library, tmp_path):
        target = tmp_path / "songs.json"
        with patch('songtags.cli.write_file_atomically', return_value=False):
            code = run_cli([str(audio_dir), '--output', str(target)])
        assert code == EXIT_CODE_ERROR
        assert not target.exists()


class TestExitCodes:
    """Test exit codes for various scenarios."""

    def test_missing_path(self, tmp_path):
        assert run_cli([str(tmp_path / 'missing')]) == EXIT_CODE_USAGE

    def test_invalid_threads(self, audio_dir):
        assert run_cli([str(audio_dir), '--threads', '0']) == EXIT_CODE_USAGE

    def test_no_valid_tags(self, audio_dir):
        assert run_cli([str(audio_dir), '--tags', 'Bogus']) == EXIT_CODE_USAGE

    def test_no_files(self, tmp_path):
        empty = tmp_path / 'empty'
        empty.mkdir()
        assert run_cli([str(empty)]) == EXIT_CODE_NO_FILES

    def test_permission_error(self):
        with patch('os.access', return_value=False):
            with patch('os.path.exists', return_value=True):
                assert run_cli(['/protected/path']) == EXIT_CODE_PERMISSION

    def test_interrupt(self, audio_dir):
        with patch('songtags.cli.run_session', side_effect=KeyboardInterrupt):
            assert run_cli([str(audio_dir)]) == EXIT_CODE_INTERRUPTED

    def test_unexpected_error(self, audio_dir):
        with patch('songtags.cli.run_session', side_effect=RuntimeError("boom")):
            assert run_cli([str(audio_dir)]) == EXIT_CODE_ERROR

    def test_all_files_unreadable(self, audio_dir):
        with patch('mutagen.File', return_value=None):
            assert run_cli([str(audio_dir)]) == EXIT_CODE_ERROR


class TestRenderHelpers:

    def test_render_json_empty(self):
        assert json.loads(render_json([], TagTypeRegistry("Title"))) == []

    def test_render_display(self):
        song = make_song("a/b.mp3", tags={TagCategory.ARTIST: ["A", "B"]}, duration=3)
        out = render_display([song], TagTypeRegistry("Artist,Title"))
        assert out == "File: a/b.mp3\n    Artist: A, B\n    Title: b\n    Duration: 3\n"
