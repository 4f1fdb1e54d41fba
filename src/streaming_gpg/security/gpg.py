"""
Importing keys into, and reading key ids back out of, a GnuPG home directory.

Typical use:

    with set_home_directory(with_gpg()) as gpg:
        with import_key(KeyRaw(chunks), gpg) as imported:
            kid = key_id(imported, gpg)

Both operations need a configured home directory and fail fast with
``HomeDirectoryNotSetError`` otherwise.
"""

from __future__ import annotations

import enum
import logging
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

from ..core.resources import open_binary_chunks, temp_file
from ..process.command import GPGArgs, require_home_dir, run_gpg_with
from ..process.runner import run_checked, stream_stdout
from .colons import KEY_ID_FIELD, extract_field

logger = logging.getLogger(__name__)

IMPORT_PREFIX = "import"
IMPORT_SUFFIX = ".key"


@dataclass(frozen=True)
class KeyFile:
    """Key material stored in an existing file."""

    path: Union[str, Path]


@dataclass(frozen=True)
class KeyRaw:
    """Key material as a stream of byte chunks (consumed once)."""

    chunks: Iterable[bytes]


Key = Union[KeyFile, KeyRaw]


@dataclass(frozen=True)
class ImportedKeyFile:
    path: Path


@dataclass(frozen=True)
class KeyID:
    value: bytes

    def __str__(self) -> str:
        return self.value.decode("ascii", errors="replace")


class GPGAction(enum.Enum):
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"


@contextmanager
def import_key(key: Key, gpg_args: GPGArgs) -> Iterator[ImportedKeyFile]:
    """Write ``key`` into the home directory and run ``gpg --import`` on it.

    The key bytes are streamed into a temporary ``import*.key`` file, the
    file is closed, and only then is GnuPG started on it. A non-zero exit
    raises ``ProcessFailedError``. The file is removed when the block ends.
    """
    home = require_home_dir(gpg_args)
    with ExitStack() as stack:
        if isinstance(key, KeyFile):
            chunks = stack.enter_context(open_binary_chunks(key.path))
        elif isinstance(key, KeyRaw):
            chunks = key.chunks
        else:
            raise TypeError(f"expected KeyFile or KeyRaw, got {type(key).__name__}")

        path, handle = stack.enter_context(temp_file(home, IMPORT_PREFIX, IMPORT_SUFFIX))
        written = 0
        for chunk in chunks:
            handle.write(chunk)
            written += len(chunk)
        # the file must not be held open while gpg reads it
        handle.close()
        logger.debug("wrote %s key bytes to %s", written, path)

        run_checked(run_gpg_with(["--import", str(path)], gpg_args))
        yield ImportedKeyFile(path=path)


def key_id(key_file: ImportedKeyFile, gpg_args: GPGArgs) -> Optional[KeyID]:
    """Ask GnuPG to describe ``key_file`` and return the id from its first record.

    GnuPG is left to infer that it should list the file's contents. ``None``
    means no id could be read (no output, or a short first record).
    """
    require_home_dir(gpg_args)
    spec = run_gpg_with(["--batch", "--with-colons", str(key_file.path)], gpg_args)
    with stream_stdout(spec) as output:
        value = extract_field(output, KEY_ID_FIELD)
    if value is None:
        logger.debug("no key id in output of %s", spec)
        return None
    return KeyID(value)
