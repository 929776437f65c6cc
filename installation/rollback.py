"""Best-effort cleanup of a failed scaffolding run.

Only entries whose names exactly match :data:`KNOWN_GENERATED_FILES` are
removed.  Files the user already had in the directory are never touched, and
the directory itself is only deleted once it is empty.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path

from rich.markup import escape

from installation.config import KNOWN_GENERATED_FILES
from installation.utils import console


@dataclass
class RollbackReport:
    """What :func:`rollback` removed."""

    deleted: list[str] = field(default_factory=list)
    removed_root: bool = False


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def rollback(
    root: Path,
    app_name: str | None = None,
    known_files: tuple[str, ...] = KNOWN_GENERATED_FILES,
) -> RollbackReport:
    """Delete generated entries from *root*, then *root* itself if empty.

    The caller must not have *root* (or anything below it) as its working
    directory when the directory may be removed.
    """
    report = RollbackReport()
    if not root.is_dir():
        return report

    known = set(known_files)
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if entry.name not in known:
            continue
        console.print(f"Deleting generated file... [cyan]{escape(entry.name)}[/cyan]")
        _remove(entry)
        report.deleted.append(entry.name)

    if not any(root.iterdir()):
        label = app_name or root.name
        console.print(
            f"Deleting [cyan]{escape(label)}/[/cyan] from [cyan]{escape(str(root.parent))}[/cyan]"
        )
        root.rmdir()
        report.removed_root = True

    return report
