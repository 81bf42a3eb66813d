"""File-content retrieval collaborators.

``read_many`` is the batch contract used by the aggregation pipeline: it
returns one ``FileContent`` per requested path and never fails the whole
batch because a single file could not be read.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

READ_WORKERS = 8


@dataclass(frozen=True)
class FileContent:
    """Either text ``content`` or an ``error`` message for one path."""

    content: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.content is not None

    @classmethod
    def failed(cls, message: str) -> "FileContent":
        return cls(content=None, error=message)


BatchReader = Callable[[list[str]], dict[str, FileContent]]


def read_text(path: Path) -> str:
    """Decode ``path`` as UTF-8 (BOM stripped), falling back to latin-1.

    latin-1 maps every byte value, so once the bytes are read decoding
    cannot fail.
    """
    raw = path.read_bytes()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.debug("%s is not UTF-8; decoding as latin-1", path)
        return raw.decode("latin-1")


def read_file_text(file_path: str) -> str:
    """Read one file's text.

    Raises ``FileNotFoundError`` for missing paths, ``IsADirectoryError`` for
    directories, and ``OSError`` for anything else that fails.
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"File does not exist: {file_path}")
    if path.is_dir():
        raise IsADirectoryError(f"Path is a directory, not a file: {file_path}")
    return read_text(path)


def _read_one(file_path: str) -> FileContent:
    try:
        return FileContent(content=read_file_text(file_path))
    except OSError as exc:
        logger.warning("Could not read %s: %s", file_path, exc)
        return FileContent.failed(str(exc))


def read_many(paths: Iterable[str], max_workers: int = READ_WORKERS) -> dict[str, FileContent]:
    """Read every path concurrently and map each one to its result."""
    unique = list(dict.fromkeys(paths))
    if not unique:
        return {}
    workers = max(1, min(max_workers, len(unique)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="contextbuilder-read") as pool:
        results = list(pool.map(_read_one, unique))
    return dict(zip(unique, results))


__all__ = [
    "FileContent",
    "BatchReader",
    "read_text",
    "read_file_text",
    "read_many",
]
