"""Drive the GnuPG executable as a managed subprocess with streamed I/O."""

__version__ = "0.1.0"
