"""
Scoped temporary resources and chunked file reads.

Every helper here is a context manager whose release step runs in a
``finally`` block, so a directory or file handed out by one of them is gone
once the ``with`` block is left, whether it finished normally, raised, or
was abandoned by closing the surrounding generator.
"""

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Tuple, Union

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536  # 64KB

PathLike = Union[str, Path]


def _remove_tree(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        # entries (e.g. agent sockets) can vanish while we walk the tree
        if path.exists():
            shutil.rmtree(path)


@contextmanager
def temp_directory(prefix: str, parent: Optional[PathLike] = None) -> Iterator[Path]:
    """Create a private directory and remove it, with its contents, on exit.

    ``tempfile.mkdtemp`` creates the directory atomically with mode 0700, so
    either the directory exists in full or the error propagates and nothing
    is left behind.
    """
    path = Path(tempfile.mkdtemp(prefix=prefix, dir=parent))
    logger.debug("created temp directory %s", path)
    try:
        yield path
    finally:
        _remove_tree(path)
        logger.debug("removed temp directory %s", path)


@contextmanager
def temp_file(
    parent: PathLike, prefix: str, suffix: str = ""
) -> Iterator[Tuple[Path, BinaryIO]]:
    """Create a unique file inside ``parent`` and yield ``(path, handle)``.

    The handle is opened for binary writing. Callers that hand the file to
    another process must close the handle first; the file itself is removed
    on exit.
    """
    fd, name = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=parent)
    path = Path(name)
    handle = os.fdopen(fd, "wb")
    logger.debug("created temp file %s", path)
    try:
        yield path, handle
    finally:
        handle.close()
        try:
            path.unlink()
        except FileNotFoundError:
            # already gone with its parent directory
            pass
        logger.debug("removed temp file %s", path)


def iter_file_chunks(fileobj: BinaryIO, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    while True:
        data = fileobj.read(chunk_size)
        if not data:
            break
        yield data


@contextmanager
def open_binary_chunks(path: PathLike, chunk_size: int = CHUNK_SIZE) -> Iterator[Iterator[bytes]]:
    """Open ``path`` for reading and yield a chunk iterator over its bytes."""
    with open(path, "rb") as f:
        yield iter_file_chunks(f, chunk_size)
