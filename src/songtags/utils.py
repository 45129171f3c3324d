"""
Utility functions and configuration for songtags.
"""

import os
import sys
import logging
import tempfile
from pathlib import Path
from typing import Any, Union
from logging.handlers import RotatingFileHandler
from threading import Lock

logger = logging.getLogger(__name__)

# ---------- Constants ----------
EXIT_CODE_SUCCESS = 0
EXIT_CODE_ERROR = 1
EXIT_CODE_USAGE = 2
EXIT_CODE_NO_FILES = 3
EXIT_CODE_PERMISSION = 4
EXIT_CODE_DISK_FULL = 5
EXIT_CODE_INTERRUPTED = 130

# ---------- Configuration ----------
class Config:
    """Configuration management with validation."""
    MAX_FILE_SIZE = 500 * 1024 * 1024  # 500MB
    DEFAULT_ENCODING = 'utf-8'

    # Tags rendered for every song, and tags consulted by the search filter
    DEFAULT_TAGLIST = 'Artist,Album,AlbumArtist,Title,Track,Disc,Genre,Date,Composer,Performer'
    DEFAULT_SEARCH_TAGLIST = 'Artist,Album,AlbumArtist,Title,Genre,Composer,Performer'

    # Reading tags is IO-bound: CPU count + 4, max 32
    MAX_WORKERS = min(32, (os.cpu_count() or 1) + 4)
    MIN_FILES_FOR_PARALLEL = 10
    PROGRESS_LOCK = Lock()

    DEFAULT_VERBOSE = False

    @classmethod
    def validate(cls) -> None:
        """Validate configuration values."""
        if cls.MAX_FILE_SIZE <= 0:
            raise ValueError("MAX_FILE_SIZE must be positive")
        if cls.MAX_WORKERS <= 0:
            raise ValueError("MAX_WORKERS must be positive")
        if cls.MIN_FILES_FOR_PARALLEL <= 0:
            raise ValueError("MIN_FILES_FOR_PARALLEL must be positive")
        if not isinstance(cls.DEFAULT_VERBOSE, bool):
            raise ValueError("DEFAULT_VERBOSE must be a boolean")
        if not cls.DEFAULT_TAGLIST.strip():
            raise ValueError("DEFAULT_TAGLIST cannot be empty")

    @classmethod
    def load_from_env(cls) -> None:
        """Load configuration from environment variables, updating class attributes."""
        if os.getenv('SONGTAGS_MAX_FILE_SIZE'):
            cls.MAX_FILE_SIZE = int(os.getenv('SONGTAGS_MAX_FILE_SIZE'))
        if os.getenv('SONGTAGS_MAX_WORKERS'):
            cls.MAX_WORKERS = int(os.getenv('SONGTAGS_MAX_WORKERS'))
        if os.getenv('SONGTAGS_MIN_PARALLEL'):
            cls.MIN_FILES_FOR_PARALLEL = int(os.getenv('SONGTAGS_MIN_PARALLEL'))
        if os.getenv('SONGTAGS_TAGS'):
            cls.DEFAULT_TAGLIST = os.getenv('SONGTAGS_TAGS')
        if os.getenv('SONGTAGS_SEARCH_TAGS'):
            cls.DEFAULT_SEARCH_TAGLIST = os.getenv('SONGTAGS_SEARCH_TAGS')
        if 'SONGTAGS_VERBOSE' in os.environ:
            cls.DEFAULT_VERBOSE = os.environ['SONGTAGS_VERBOSE'].strip().lower() in ('1', 'true', 'yes')
        cls.validate()

# ---------- Logging Setup ----------
def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rotation and proper formatting."""
    log_level = logging.DEBUG if verbose else logging.INFO

    log_dir = Path('logs')
    log_dir.mkdir(exist_ok=True)

    file_handler = RotatingFileHandler(
        log_dir / 'songtags.log',
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            file_handler
        ]
    )

# ---------- Small Helpers ----------
def safe_unicode_path(path: Any) -> str:
    """Convert path to unicode, handling encoding issues."""
    if isinstance(path, bytes):
        try:
            return path.decode(Config.DEFAULT_ENCODING)
        except UnicodeDecodeError:
            try:
                return path.decode('latin-1')
            except UnicodeDecodeError:
                return path.decode('utf-8', errors='replace')
    return str(path)

def write_file_atomically(path: Union[str, Path], data: Union[str, bytes]) -> bool:
    """
    Replace ``path`` with ``data`` without ever exposing a partial file.

    The data goes to a temporary file in the same directory which is renamed
    over the destination once it is completely written and synced. On any
    failure the temporary file is removed and the destination is untouched.

    Args:
        path: Destination file
        data: Content to write (str is encoded with Config.DEFAULT_ENCODING)

    Returns:
        True on success, False if writing or renaming failed
    """
    path = Path(path)
    if isinstance(data, str):
        data = data.encode(Config.DEFAULT_ENCODING)

    tmp_path = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        tmp_path = Path(tmp_name)
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
        return True
    except OSError as e:
        logger.error(f"Failed to write {path}: {e}")
        if tmp_path is not None:
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as cleanup_error:
                logger.warning(f"Failed to remove temporary file {tmp_path}: {cleanup_error}")
        return False
