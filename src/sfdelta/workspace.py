"""Transient pipeline state with guaranteed cleanup.

``PipelineWorkspace`` owns the working directory and the generated manifest
for one run. Whatever happens inside the ``with`` block (normal completion,
a pipeline failure, KeyboardInterrupt), both are removed on exit, along with
any directory the guard had to create for the manifest. Removal is
best-effort: missing paths are fine, and a path that cannot be removed is
reported with ``warnings.warn`` rather than raised, so cleanup never masks
the error that ended the run.

A working directory that is, or contains, the project root is refused
before anything is deleted.
"""

import shutil
import warnings
from pathlib import Path
from typing import List, Optional

from sfdelta.errors import WorkspaceError


def remove_path(path: Optional[Path]) -> bool:
    """Remove a file or directory tree if it exists.

    Returns:
        True if nothing is left at ``path`` afterwards
    """
    if path is None:
        return True
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif path.exists() or path.is_symlink():
            path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        warnings.warn(f"Could not remove {path}: {e}")
        return False
    return True


def _check_work_dir(work_dir: Path, project_root: Path) -> None:
    work = work_dir.resolve()
    root = project_root.resolve()
    if work == root or work in root.parents:
        raise WorkspaceError(f"Refusing to use {work_dir} as working directory: it contains the project root {root}")
    if root not in work.parents:
        raise WorkspaceError(f"Working directory {work_dir} is outside the project root {root}")


class PipelineWorkspace:
    """Scoped ownership of a working directory and a manifest file.

    Either path may be None when a run has no use for it. When
    ``project_root`` is given, ``work_dir`` must sit strictly inside it.
    """

    def __init__(self, work_dir: Optional[Path], manifest_path: Optional[Path],
                 project_root: Optional[Path] = None):
        self.work_dir = work_dir
        self.manifest_path = manifest_path
        self.project_root = project_root
        self.created_dirs: List[Path] = []
        self.cleaned = False

    def __enter__(self) -> "PipelineWorkspace":
        if self.work_dir is not None and self.project_root is not None:
            _check_work_dir(self.work_dir, self.project_root)
        # Leftovers from an interrupted run must not leak into this one
        remove_path(self.work_dir)
        if self.work_dir is not None:
            self.work_dir.mkdir(parents=True, exist_ok=True)
        if self.manifest_path is not None:
            self._make_parents(self.manifest_path.parent)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.cleanup()
        return False

    def _make_parents(self, directory: Path) -> None:
        missing = []
        while not directory.exists():
            missing.append(directory)
            directory = directory.parent
        for d in reversed(missing):
            d.mkdir()
            self.created_dirs.append(d)

    def cleanup(self) -> List[Path]:
        """Remove owned paths; returns those that could not be removed."""
        leftovers = [
            path for path in (self.work_dir, self.manifest_path)
            if path is not None and not remove_path(path)
        ]
        # Deepest first; a directory someone else filled is left alone
        for d in reversed(self.created_dirs):
            try:
                d.rmdir()
            except FileNotFoundError:
                pass
            except OSError:
                break
        self.created_dirs = []
        self.cleaned = True
        return leftovers
