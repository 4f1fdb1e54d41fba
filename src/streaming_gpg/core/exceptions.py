"""
Errors raised while driving GnuPG.

Starting the executable and the executable failing are kept apart:
SpawnFailedError means nothing ran, ProcessFailedError carries the exit code
of a run that did happen. Filesystem errors are left as OSError.
"""


class StreamingGPGError(Exception):
    # general container for errors
    pass


class SpawnFailedError(StreamingGPGError):
    # raised when the executable could not be started at all
    def __init__(self, spec, cause: OSError):
        self.spec = spec
        self.cause = cause
        super().__init__(f"could not start {spec.argv[0]!r}: {cause}")


class ProcessFailedError(StreamingGPGError):
    # raised when the process ran but exited non-zero
    def __init__(self, spec, exit_code: int):
        self.spec = spec
        self.exit_code = exit_code
        super().__init__(
            f"process {' '.join(spec.argv)!r} exited with code {exit_code}"
        )


class HomeDirectoryNotSetError(StreamingGPGError):
    # raised when an operation needs --homedir but none was configured
    pass

