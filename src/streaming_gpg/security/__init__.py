"""GnuPG helpers: key import and key id lookup.

This package provides:
- streaming a key (file or raw chunks) into a GnuPG home directory and
  importing it with ``gpg --import``
- reading a key id back from ``--with-colons`` output without buffering it
"""

from .colons import KEY_ID_FIELD, extract_field, first_line
from .gpg import (
    GPGAction,
    ImportedKeyFile,
    Key,
    KeyFile,
    KeyID,
    KeyRaw,
    import_key,
    key_id,
)

__all__ = [
    "KEY_ID_FIELD",
    "extract_field",
    "first_line",
    "GPGAction",
    "ImportedKeyFile",
    "Key",
    "KeyFile",
    "KeyID",
    "KeyRaw",
    "import_key",
    "key_id",
]
