"""Zip archive unpack/repack for the deploy pipeline."""

import zipfile
from pathlib import Path, PurePosixPath

from sfdelta.errors import ArchiveError


def _safe_member_path(dest: Path, member: str) -> Path:
    """Resolve an archive member under ``dest``, refusing entries that escape it."""
    pure = PurePosixPath(member)
    if pure.is_absolute() or ".." in pure.parts:
        raise ArchiveError(f"Archive entry escapes extraction directory: {member}")
    return dest.joinpath(*pure.parts)


def extract_archive(archive_path: Path, dest_dir: Path) -> int:
    """Unpack ``archive_path`` into ``dest_dir``.

    Returns:
        Number of files extracted

    Raises:
        ArchiveError: archive missing, corrupt, or containing unsafe entries
    """
    if not archive_path.is_file():
        raise ArchiveError(f"Expected archive not found: {archive_path}")

    dest_dir.mkdir(parents=True, exist_ok=True)
    count = 0
    try:
        with zipfile.ZipFile(archive_path) as zf:
            for info in zf.infolist():
                target = _safe_member_path(dest_dir, info.filename)
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(zf.read(info))
                count += 1
    except zipfile.BadZipFile as e:
        raise ArchiveError(f"Corrupt archive {archive_path}: {e}") from e
    return count


def create_archive(source_dir: Path, archive_path: Path) -> int:
    """Zip every file under ``source_dir`` with maximum deflate compression.

    Entry names are relative to ``source_dir`` (the directory's own path is not
    part of any entry) and written in sorted order so the archive layout is
    deterministic.

    Returns:
        Number of files archived
    """
    if not source_dir.is_dir():
        raise ArchiveError(f"Directory to archive not found: {source_dir}")

    archive_path.parent.mkdir(parents=True, exist_ok=True)
    files = sorted(
        (p for p in source_dir.rglob("*") if p.is_file() and p.resolve() != archive_path.resolve()),
        key=lambda p: p.relative_to(source_dir).as_posix(),
    )
    with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
        for path in files:
            zf.write(path, arcname=path.relative_to(source_dir).as_posix())
    return len(files)
