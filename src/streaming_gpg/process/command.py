"""
Incremental construction of GPG command lines.

A ``GPGArgs`` value carries the executable plus a function from the
arguments supplied at realize time to the full argument list. Each
configuration step wraps that function, so arguments applied earlier always
come first and are never replaced:

    argv = [executable] + <configuration args, in order applied> + <extra args>

The value is immutable; every step returns a new ``GPGArgs``.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Union

from ..core.exceptions import HomeDirectoryNotSetError
from ..core.resources import temp_directory

Args = List[str]
ArgsTransform = Callable[[Args], Args]

# Found via PATH at spawn time unless an explicit executable is given.
DEFAULT_GPG = "gpg2"
HOME_DIR_PREFIX = "streaming-process-gpg."


def _identity(args: Args) -> Args:
    return list(args)


@dataclass(frozen=True)
class ProcessSpec:
    """A fully realized invocation, ready to hand to ``subprocess``."""

    argv: tuple
    env: Optional[Dict[str, str]] = None
    cwd: Optional[str] = None

    def __str__(self) -> str:
        return " ".join(self.argv)


@dataclass(frozen=True)
class GPGArgs:
    executable: str = DEFAULT_GPG
    arg_func: ArgsTransform = field(default=_identity, repr=False)
    # None while unconfigured; set by set_home_directory()
    home_dir: Optional[str] = None

    @property
    def configured(self) -> bool:
        return self.home_dir is not None


def with_gpg(path: Optional[Union[str, Path]] = None) -> GPGArgs:
    """Start a builder for ``path``, or for ``gpg2`` found on the PATH."""
    return GPGArgs(executable=str(path) if path is not None else DEFAULT_GPG)


def with_args(transform: ArgsTransform, gpg_args: GPGArgs) -> GPGArgs:
    """Return a builder whose realize step runs ``transform`` before the old one."""
    previous = gpg_args.arg_func

    def composed(args: Args) -> Args:
        return previous(transform(list(args)))

    return replace(gpg_args, arg_func=composed)


def add_args(gpg_args: GPGArgs, *args: str) -> GPGArgs:
    """Shorthand for ``with_args`` with a transform that prepends ``args``."""
    fixed = list(args)
    return with_args(lambda rest: fixed + rest, gpg_args)


@contextmanager
def set_home_directory(
    gpg_args: GPGArgs, path: Optional[Union[str, Path]] = None
) -> Iterator[GPGArgs]:
    """Yield a builder configured with ``--homedir``.

    With no ``path`` a fresh private directory is created for the duration of
    the ``with`` block and removed afterwards. A caller-supplied directory is
    used as is and left alone.
    """
    if path is not None:
        yield _configure_home(gpg_args, str(path))
        return
    with temp_directory(HOME_DIR_PREFIX) as tmp:
        yield _configure_home(gpg_args, str(tmp))


def _configure_home(gpg_args: GPGArgs, home: str) -> GPGArgs:
    configured = add_args(gpg_args, "--homedir", home)
    return replace(configured, home_dir=home)


def require_home_dir(gpg_args: GPGArgs) -> str:
    if gpg_args.home_dir is None:
        raise HomeDirectoryNotSetError(
            "no home directory configured; use set_home_directory() first"
        )
    return gpg_args.home_dir


def run_gpg_with(extra: Sequence[str], gpg_args: GPGArgs) -> ProcessSpec:
    argv = [gpg_args.executable] + gpg_args.arg_func(list(extra))
    return ProcessSpec(argv=tuple(argv))


def run_gpg(gpg_args: GPGArgs) -> ProcessSpec:
    return run_gpg_with([], gpg_args)
