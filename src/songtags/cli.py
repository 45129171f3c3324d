"""songtags CLI - print and search song tags from the command line."""
import os
import sys
import argparse
import logging
from pathlib import Path
from typing import List

from .core import Song
from .registry import TagTypeRegistry
from .render import song_to_json, tag_value_string
from .reader import collect_files_generator, read_songs
from .search import filter_song, normalize_search
from .utils import (
    Config,
    setup_logging,
    write_file_atomically,
    EXIT_CODE_SUCCESS,
    EXIT_CODE_ERROR,
    EXIT_CODE_USAGE,
    EXIT_CODE_PERMISSION,
    EXIT_CODE_INTERRUPTED,
    EXIT_CODE_NO_FILES,
    EXIT_CODE_DISK_FULL
)

logger = logging.getLogger(__name__)

# ---------- CLI & Main ----------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="songtags - render and search song tags")

    parser.add_argument("path", nargs='?', default='.', help="Directory or file to read")
    parser.add_argument("--tags", help="Comma-separated tags to render (default: SONGTAGS_TAGS or built-in list)")
    parser.add_argument("--search", default="", help="Only show songs whose tags contain this text")
    parser.add_argument("--search-tags", help="Comma-separated tags to search (default: SONGTAGS_SEARCH_TAGS or built-in list)")
    parser.add_argument("--format", choices=['display', 'json'], default='display', help="Output format")
    parser.add_argument("--audio-format", action='store_true', help="Include the audio format in JSON records")
    parser.add_argument("--output", help="Write output to this file instead of stdout")

    # File selection
    parser.add_argument("--recursive", action='store_true', help="Recurse into subdirectories")
    parser.add_argument("--ext", default=None, help="Comma-separated extensions to include")

    parser.add_argument("--threads", type=int, default=None,
                        help="Number of threads for reading files (default: auto)")
    parser.add_argument("--verbose", action='store_true', default=None,
                        help="Enable verbose logging (overrides SONGTAGS_VERBOSE env var)")
    return parser


def validate_args(args: argparse.Namespace) -> None:
    """Validate command line arguments."""
    errors = []

    if not os.path.exists(args.path):
        errors.append(f"Path does not exist: {args.path}")
    elif not os.access(args.path, os.R_OK):
        errors.append(f"No read permission for path: {args.path}")

    if args.threads is not None and args.threads < 1:
        errors.append("--threads must be at least 1")

    if args.output:
        out_dir = Path(args.output).resolve().parent
        if not out_dir.is_dir():
            errors.append(f"Output directory does not exist: {out_dir}")
        elif not os.access(out_dir, os.W_OK):
            errors.append(f"No write permission for output directory: {out_dir}")

    if errors:
        raise ValueError("; ".join(errors))


def main() -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    try:
        Config.load_from_env()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_CODE_USAGE)

    if args.verbose is None:
        args.verbose = Config.DEFAULT_VERBOSE
    setup_logging(args.verbose)

    try:
        validate_args(args)
    except ValueError as e:
        logger.error(f"Argument validation failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        if "permission" in str(e).lower():
            sys.exit(EXIT_CODE_PERMISSION)
        sys.exit(EXIT_CODE_USAGE)

    tags = TagTypeRegistry(args.tags or Config.DEFAULT_TAGLIST, name="tags")
    search_tags = TagTypeRegistry(args.search_tags or Config.DEFAULT_SEARCH_TAGLIST, name="search tags")
    if len(tags) == 0:
        print("Error: no valid tags to render", file=sys.stderr)
        sys.exit(EXIT_CODE_USAGE)

    try:
        sys.exit(run_session(args, tags, search_tags))
    except KeyboardInterrupt:
        sys.exit(EXIT_CODE_INTERRUPTED)
    except PermissionError as e:
        print(f"Permission denied: {e}", file=sys.stderr)
        sys.exit(EXIT_CODE_PERMISSION)
    except OSError as e:
        if e.errno == 28:  # ENOSPC: No space left on device
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(EXIT_CODE_DISK_FULL)
        raise
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(EXIT_CODE_ERROR)


def run_session(args: argparse.Namespace, tags: TagTypeRegistry, search_tags: TagTypeRegistry) -> int:
    """Read, filter and render songs. Returns exit code."""
    ext_set = None
    if args.ext:
        ext_set = set(
            e.strip().lower() if e.strip().startswith('.') else '.' + e.strip().lower()
            for e in args.ext.split(',')
        )

    files = list(collect_files_generator(Path(args.path), recursive=args.recursive, ext_set=ext_set))
    if not files:
        print("No files found matching criteria.")
        return EXIT_CODE_NO_FILES

    songs, errors = read_songs(files, max_workers=args.threads)
    for err in errors:
        print(f"Skipped {err['path']}: {err['error']}", file=sys.stderr)

    search = normalize_search(args.search)
    matched = [s for s in songs if filter_song(s, search, search_tags.enabled)]
    logger.info(f"{len(matched)} of {len(songs)} songs match {search!r}")

    if args.format == 'json':
        output = render_json(matched, tags, args.audio_format)
    else:
        output = render_display(matched, tags)

    if args.output:
        if not write_file_atomically(args.output, output):
            print(f"Failed to write {args.output}", file=sys.stderr)
            return EXIT_CODE_ERROR
        print(f"Output written to {args.output}")
    else:
        print(output, end='')

    if songs or not errors:
        return EXIT_CODE_SUCCESS
    return EXIT_CODE_ERROR


def render_json(songs: List[Song], tags: TagTypeRegistry, audio_format: bool = False) -> str:
    """Render songs as a JSON array of records."""
    return "[" + ",".join(song_to_json(s, tags, audio_format=audio_format) for s in songs) + "]\n"


def render_display(songs: List[Song], tags: TagTypeRegistry) -> str:
    """Render songs as readable blocks, one line per tag."""
    lines = []
    for song in songs:
        lines.append(f"File: {song.uri}")
        for tag in tags:
            lines.append(f"    {tag.value}: {tag_value_string(song, tag)}")
        lines.append(f"    Duration: {song.duration}")
    return "\n".join(lines) + ("\n" if lines else "")


if __name__ == '__main__':
    main()
