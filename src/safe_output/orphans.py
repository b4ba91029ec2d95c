"""Discovery of temporary files left behind by failed commits.

A writer whose close or rename fails keeps its ``.<base>.<random>`` sibling on
disk. Nothing removes those automatically; this module finds them so the CLI
can offer an explicit cleanup.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

# tempfile.mkstemp appends 8 characters from this alphabet
_ORPHAN_RE = re.compile(r"^\.(?P<base>.+)\.(?P<suffix>[a-z0-9_]{8})$")


@dataclass(frozen=True)
class Orphan:
    path: Path
    target: Path
    size: int

    @property
    def target_exists(self) -> bool:
        return self.target.exists()


def parse_temp_name(name: str) -> str | None:
    """Return the target base name encoded in a temp file name, if any."""
    m = _ORPHAN_RE.match(name)
    return m.group("base") if m else None


def find_orphans(directory: Path, target: str | None = None) -> list[Orphan]:
    found: list[Orphan] = []
    for entry in sorted(directory.iterdir()):
        if not entry.is_file() or entry.is_symlink():
            continue
        base = parse_temp_name(entry.name)
        if base is None:
            continue
        if target is not None and base != target:
            continue
        found.append(Orphan(path=entry, target=directory / base, size=entry.stat().st_size))
    return found


def remove_orphans(orphans: list[Orphan]) -> list[Path]:
    removed: list[Path] = []
    for orphan in orphans:
        orphan.path.unlink(missing_ok=True)
        removed.append(orphan.path)
    return removed
