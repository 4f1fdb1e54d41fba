"""
Synchronous process execution with piped, chunked I/O.

``run``/``run_checked`` block until the child exits. ``stream_stdout`` hands
back the child's standard output as a pull-based chunk iterator: every
``next()`` blocks until the child has written something (or closed its
end), and nothing is read ahead of the consumer, so a slow consumer stalls
the child through the pipe buffer instead of piling output up in memory.
"""

from __future__ import annotations

import logging
import subprocess
from contextlib import contextmanager
from typing import IO, Any, Iterable, Iterator, Optional

from ..core.exceptions import ProcessFailedError, SpawnFailedError
from ..core.resources import CHUNK_SIZE
from .command import ProcessSpec

logger = logging.getLogger(__name__)

# seconds a child may take to exit after its output pipe is closed
REAP_TIMEOUT = 5.0


def _spawn(spec: ProcessSpec, **popen_kwargs: Any) -> subprocess.Popen:
    try:
        proc = subprocess.Popen(
            list(spec.argv), env=spec.env, cwd=spec.cwd, **popen_kwargs
        )
    except OSError as e:
        raise SpawnFailedError(spec, e) from e
    logger.debug("spawned pid %s: %s", proc.pid, spec)
    return proc


def _feed(proc: subprocess.Popen, chunks: Iterable[bytes]) -> None:
    try:
        for chunk in chunks:
            proc.stdin.write(chunk)
    except BrokenPipeError:
        # child stopped reading; its exit status decides the outcome
        logger.debug("pid %s closed stdin early", proc.pid)
    try:
        proc.stdin.close()
    except BrokenPipeError:
        pass


def _reap(proc: subprocess.Popen, timeout: float) -> int:
    try:
        return proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        logger.debug("pid %s still running after %ss, killing", proc.pid, timeout)
        proc.kill()
        return proc.wait()


def run(
    spec: ProcessSpec,
    input_chunks: Optional[Iterable[bytes]] = None,
    stdout: Optional[Any] = None,
    stderr: Optional[Any] = None,
) -> int:
    """Run ``spec`` to completion and return its exit status.

    ``input_chunks`` is written to a stdin pipe when given; otherwise stdin is
    inherited. ``stdout``/``stderr`` are passed to ``subprocess.Popen`` as is
    (inherit by default), except ``subprocess.PIPE``: nothing would read it, so
    it is rejected. Use ``stream_stdout`` to consume output.
    """
    for name, target in (("stdout", stdout), ("stderr", stderr)):
        if target == subprocess.PIPE:
            raise ValueError(f"{name}=subprocess.PIPE is not supported by run(); use stream_stdout()")
    stdin = subprocess.PIPE if input_chunks is not None else None
    with _spawn(spec, stdin=stdin, stdout=stdout, stderr=stderr) as proc:
        try:
            if input_chunks is not None:
                _feed(proc, input_chunks)
            code = proc.wait()
        except BaseException:
            proc.kill()
            raise
    logger.debug("pid %s exited with %s", proc.pid, code)
    return code


def run_checked(
    spec: ProcessSpec,
    input_chunks: Optional[Iterable[bytes]] = None,
    stdout: Optional[Any] = None,
    stderr: Optional[Any] = None,
) -> None:
    """Like ``run`` but raise ``ProcessFailedError`` on a non-zero exit."""
    code = run(spec, input_chunks=input_chunks, stdout=stdout, stderr=stderr)
    if code != 0:
        logger.warning("%s exited with code %s", spec, code)
        raise ProcessFailedError(spec, code)


class ProcessOutput:
    """One-shot iterator over a child's stdout.

    Once exhausted it stays exhausted; reading the output again needs a new
    process.
    """

    def __init__(self, proc: subprocess.Popen, chunk_size: int = CHUNK_SIZE):
        self._proc = proc
        self._pipe: IO[bytes] = proc.stdout
        self._chunk_size = chunk_size
        self.exhausted = False

    @property
    def returncode(self) -> Optional[int]:
        return self._proc.returncode

    def __iter__(self) -> "ProcessOutput":
        return self

    def __next__(self) -> bytes:
        if self.exhausted or self._pipe.closed:
            raise StopIteration
        data = self._pipe.read1(self._chunk_size)
        if not data:
            self.exhausted = True
            raise StopIteration
        return data


@contextmanager
def stream_stdout(spec: ProcessSpec, chunk_size: int = CHUNK_SIZE) -> Iterator[ProcessOutput]:
    """Spawn ``spec`` with stdout piped and yield its output as chunks.

    Leaving the block closes the pipe and reaps the child, killing it if it
    does not exit within ``REAP_TIMEOUT``. The exit status is not checked
    here; it is available as ``ProcessOutput.returncode`` after the block.
    """
    proc = _spawn(spec, stdout=subprocess.PIPE)
    output = ProcessOutput(proc, chunk_size)
    try:
        yield output
    finally:
        proc.stdout.close()
        code = _reap(proc, REAP_TIMEOUT)
        logger.debug("pid %s exited with %s", proc.pid, code)
