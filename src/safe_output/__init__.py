"""Atomic output files for streamed writers."""

from .file_io import atomic_write
from .writer import (
    STDERR_NAMES,
    STDOUT_NAMES,
    AtomicFileWriter,
    StreamWriter,
    Writer,
    is_stderr_name,
    is_stdout_name,
    safe_output_writer,
    write_all,
)

__all__ = [
    "STDERR_NAMES",
    "STDOUT_NAMES",
    "AtomicFileWriter",
    "StreamWriter",
    "Writer",
    "atomic_write",
    "is_stderr_name",
    "is_stdout_name",
    "safe_output_writer",
    "write_all",
]
