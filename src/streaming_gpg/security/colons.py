"""Lazy extraction of single fields from GnuPG ``--with-colons`` output.

Input is any iterable of ``bytes`` chunks (chunk boundaries need not line
up with lines or fields). Only as much input is pulled as is needed to
reach the end of the requested field on the first line.
"""

from typing import Iterable, Iterator, Optional

# 1-based column holding the key id in a listing record
KEY_ID_FIELD = 5


def first_line(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """Yield the pieces of the first line, stopping at its newline.

    Yields nothing at all for an empty stream.
    """
    for chunk in chunks:
        if not chunk:
            continue
        head, sep, _ = chunk.partition(b"\n")
        # an empty head still marks that a line exists
        yield head
        if sep:
            return


def extract_field(
    chunks: Iterable[bytes], field_index: int, delimiter: bytes = b":"
) -> Optional[bytes]:
    """Return the ``field_index``-th (1-based) field of the first line.

    Returns ``None`` when the stream is empty or the first line has fewer
    fields. Fields before the target are skipped without being kept.
    """
    if len(delimiter) != 1:
        raise ValueError("delimiter must be a single byte")
    if field_index < 1:
        raise ValueError(f"field_index must be >= 1, got {field_index}")

    to_skip = field_index - 1
    target = bytearray()
    seen_line = False
    for piece in first_line(chunks):
        seen_line = True
        while piece:
            if to_skip:
                idx = piece.find(delimiter)
                if idx < 0:
                    break
                to_skip -= 1
                piece = piece[idx + len(delimiter):]
                continue
            idx = piece.find(delimiter)
            if idx >= 0:
                target += piece[:idx]
                return bytes(target)
            target += piece
            break

    if not seen_line or to_skip:
        return None
    return bytes(target)
