"""One-shot atomic file writes with explicit permission control."""

from __future__ import annotations

from pathlib import Path

from .writer import AtomicFileWriter, write_all


def atomic_write(path: Path, data: bytes, mode: int = 0o600) -> None:
    """Write data atomically with explicit file permissions.

    Creates missing parent directories, streams *data* into a temporary
    sibling of *path* and renames it over the target. Empty *data* still
    replaces the target with an empty file. If writing fails the target is
    left as it was.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    writer = AtomicFileWriter(str(path), mode)
    try:
        if data:
            write_all(writer, data)
        else:
            writer.write(b"")
    except BaseException:
        writer.abandon()
        raise
    writer.close()
