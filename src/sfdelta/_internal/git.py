"""Git queries: current branch, merge base and changed paths.

The diff itself is git's: we only parse ``git diff --name-status -z`` output
restricted to added and modified files. NUL-separated output keeps paths
verbatim, including ones with quotes, tabs or newlines.
"""

from pathlib import Path
from typing import List, Optional

from sfdelta.codes import ChangeKind
from sfdelta.errors import GitError
from sfdelta.contracts import ChangedPath
from .cmd import CmdResult, run_cmd


def _git(repo_path: Path, *args: str) -> CmdResult:
    # core.quotepath=off keeps non-ASCII paths unescaped in diff output
    return run_cmd(["git", "-C", str(repo_path), "-c", "core.quotepath=off", *args])


def _git_or_raise(repo_path: Path, *args: str, strip: bool = True) -> str:
    res = _git(repo_path, *args)
    if not res.ok:
        raise GitError(f"`{res.command_str}` failed: {res.diagnostic() or f'exit code {res.exit_code}'}")
    return res.stdout.strip() if strip else res.stdout


def get_current_branch(repo_path: Path) -> str:
    """Return the checked-out branch name (``HEAD`` when detached)."""
    return _git_or_raise(repo_path, "rev-parse", "--abbrev-ref", "HEAD")


def get_merge_base(repo_path: Path, current_ref: str, target_ref: str) -> str:
    sha = _git_or_raise(repo_path, "merge-base", current_ref, target_ref)
    if not sha:
        raise GitError(f"No merge base between '{current_ref}' and '{target_ref}'")
    return sha


def parse_name_status(output: str) -> List[ChangedPath]:
    """Parse ``git diff --name-status -z`` output into changed paths.

    Fields alternate status, path (two paths for renames and copies), each
    terminated by NUL. Only ``A`` and ``M`` entries are kept.
    """
    fields = output.split("\0")
    changed: List[ChangedPath] = []
    i = 0
    while i < len(fields):
        status = fields[i].strip()
        i += 1
        if not status:
            continue
        # R100 / C075 carry source and destination paths
        width = 2 if status[:1] in ("R", "C") else 1
        paths = fields[i:i + width]
        i += width
        if len(paths) < width or not paths[-1]:
            break
        try:
            kind = ChangeKind(status[:1])
        except ValueError:
            continue
        changed.append(ChangedPath(path=paths[-1], kind=kind))
    return changed


def get_changed_paths(repo_path: Path, target_ref: str, current_ref: Optional[str] = None) -> List[ChangedPath]:
    """Added/modified paths on ``current_ref`` since it diverged from ``target_ref``."""
    current = current_ref or get_current_branch(repo_path)
    base = get_merge_base(repo_path, current, target_ref)
    output = _git_or_raise(repo_path, "diff", "--name-status", "-z", "--diff-filter=AM", base, current, strip=False)
    return parse_name_status(output)
