"""Safe output writers.

``safe_output_writer()`` returns a write destination for a target name. Regular
paths get an :class:`AtomicFileWriter`, which streams into a temporary file in
the target's directory and renames it over the target on close, so readers of
the target only ever see the old or the new complete contents. The names
``""``, ``"-"`` and ``"/dev/stdout"`` (and ``"/dev/stderr"``) are written
straight to the process's standard streams instead.
"""

from __future__ import annotations

import errno
import logging
import os
import sys
import tempfile
import threading
from typing import BinaryIO, Protocol

logger = logging.getLogger(__name__)

STDOUT_NAMES = frozenset({"", "-", "/dev/stdout"})
STDERR_NAMES = frozenset({"/dev/stderr"})


class Writer(Protocol):
    def write(self, data: bytes) -> int: ...

    def close(self) -> None: ...

    def __enter__(self): ...

    def __exit__(self, exc_type, exc, tb) -> None: ...


def is_stdout_name(name: str) -> bool:
    return name in STDOUT_NAMES


def is_stderr_name(name: str) -> bool:
    return name in STDERR_NAMES


def safe_output_writer(name: str, mode: int) -> Writer:
    """Return a writer for *name*.

    The temporary file of an :class:`AtomicFileWriter` is only created on the
    first write, so nothing touches the filesystem here.
    """
    if is_stdout_name(name):
        return StreamWriter("stdout")
    if is_stderr_name(name):
        return StreamWriter("stderr")
    return AtomicFileWriter(name, mode)


def write_all(writer: Writer, data: bytes) -> None:
    """Write every byte of *data*, repeating ``write()`` after short counts."""
    view = memoryview(data)
    while view:
        n = writer.write(view)
        if not n:
            raise OSError(errno.EIO, f"write to {getattr(writer, 'name', writer)} made no progress")
        view = view[n:]


class StreamWriter:
    """Pass-through writer for ``sys.stdout`` / ``sys.stderr``.

    The stream is looked up on every write so redirection of ``sys.stdout``
    is honoured. Closing never closes the shared stream.
    """

    def __init__(self, stream_name: str) -> None:
        if stream_name not in ("stdout", "stderr"):
            raise ValueError(f"unknown stream {stream_name!r}")
        self._stream_name = stream_name

    @property
    def name(self) -> str:
        return f"<{self._stream_name}>"

    @property
    def stream(self):
        return getattr(sys, self._stream_name)

    def write(self, data: bytes) -> int:
        stream = self.stream
        buffer = getattr(stream, "buffer", None)
        if buffer is None:
            stream.write(bytes(data).decode("utf-8", errors="replace"))
            stream.flush()
            return len(data)
        stream.flush()
        n = buffer.write(data)
        buffer.flush()
        return len(data) if n is None else n

    def close(self) -> None:
        pass

    def __enter__(self) -> "StreamWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class AtomicFileWriter:
    """Write to a sibling temporary file, rename it over *name* on close."""

    def __init__(self, name: str, mode: int) -> None:
        self._name = name
        self._mode = mode
        self._lock = threading.Lock()
        self._file: BinaryIO | None = None
        self._temp: str | None = None
        logger.debug("writer: created for %s (mode %o)", name, mode)

    @property
    def name(self) -> str:
        return self._name

    @property
    def mode(self) -> int:
        return self._mode

    @property
    def temp_name(self) -> str | None:
        return self._temp

    def write(self, data: bytes) -> int:
        self._maybe_open()
        return self._file.write(data)

    def close(self) -> None:
        with self._lock:
            if self._file is None:
                logger.debug("writer: nothing was written to %s", self._name)
                return
            try:
                # A failed handle close skips the rename and leaves the temp file.
                self._file.close()
                logger.debug("writer: rename %s to %s", self._temp, self._name)
                os.replace(self._temp, self._name)
            finally:
                self._file = None
                self._temp = None

    def abandon(self) -> None:
        """Close the temporary file without committing it.

        The target is left untouched and the temporary file stays on disk,
        the same outcome as a failed close.
        """
        with self._lock:
            if self._file is None:
                return
            try:
                logger.debug("writer: abandoning %s for %s", self._temp, self._name)
                self._file.close()
            finally:
                self._file = None
                self._temp = None

    def _maybe_open(self) -> None:
        with self._lock:
            if self._file is not None:
                return
            logger.debug("writer: creating temporary file for %s", self._name)
            directory, base = os.path.split(self._name)
            fd, temp = tempfile.mkstemp(prefix=f".{base}.", dir=directory or ".")
            self._file = os.fdopen(fd, "wb", buffering=0)
            self._temp = temp
            try:
                os.fchmod(fd, self._mode)
            except OSError as exc:
                logger.debug("writer: chmod %s failed: %s", temp, exc)
                raise
            logger.debug("writer: using temporary file %s", temp)

    def __enter__(self) -> "AtomicFileWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.abandon()
        else:
            self.close()

    def __repr__(self) -> str:
        return f"AtomicFileWriter(name={self._name!r}, mode={self._mode:#o})"
