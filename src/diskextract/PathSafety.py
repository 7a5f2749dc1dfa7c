"""Path containment checks for untrusted archive entries.

Archive entry names and symbolic-link targets are attacker-controlled.
These functions decide whether an entry's output path, and the place its
link would point to, stay inside the extraction root. Containment is
decided on canonical paths (`os.path.realpath`), never on string prefixes,
so `..` segments and symlinks already present on disk are accounted for.
"""

from __future__ import annotations

import os
from typing import Optional

from .Entries import ArchiveEntry


def is_contained(root: str | os.PathLike, candidate: str | os.PathLike) -> bool:
    """Return True if `candidate` is `root` or a descendant of it.

    Both paths are canonicalized first: `.` and `..` are collapsed and
    symlinks that already exist on disk are followed.
    """
    real_root = os.path.realpath(root)
    real_candidate = os.path.realpath(candidate)
    if real_candidate == real_root:
        return True
    try:
        return os.path.commonpath([real_root, real_candidate]) == real_root
    except ValueError:
        # Different drives, or a mix of absolute and relative paths
        return False


def entry_output_path(root: str | os.PathLike, entry: ArchiveEntry) -> str:
    """Join the normalized entry name onto `root`. No validation is done here."""
    return os.path.join(os.fspath(root), os.path.normpath(entry.name))


def validate_symlink(root: str | os.PathLike, entry: ArchiveEntry) -> bool:
    """Check that a symbolic-link entry cannot point outside `root`.

    Absolute targets are always rejected, wherever they point. Relative
    targets are resolved against the directory the link will be created in
    and must land inside `root`.

    The link's directory is canonicalized before the target is joined onto
    it: an earlier link in the same archive may have redirected that
    directory, and a target's `..` is interpreted by the OS relative to
    where the link really lives.

    A link whose target could not be read from the archive (`None`) is
    rejected; an empty target string is allowed.
    """
    if entry.symlink_target is None:
        return False
    parent_dir = os.path.realpath(os.path.dirname(entry_output_path(root, entry)))
    target = os.path.normpath(entry.symlink_target)
    if os.path.isabs(target):
        return False
    return is_contained(root, os.path.join(parent_dir, target))


def resolve_entry_path(root: str | os.PathLike, entry: ArchiveEntry) -> Optional[str]:
    """Return the output path for `entry`, or None if it must be skipped.

    An entry is skipped when its joined path escapes `root` or, for
    symbolic links, when its target fails `validate_symlink`. An entry
    flagged as a link is always checked as a link. A name or target the
    OS cannot represent (an embedded NUL byte, say) is skipped as well.
    """
    if "\x00" in entry.name or "\x00" in (entry.symlink_target or ""):
        return None
    output_path = entry_output_path(root, entry)
    try:
        if not is_contained(root, output_path):
            return None
        if entry.is_symlink and not validate_symlink(root, entry):
            return None
    except (ValueError, OSError):
        return None
    return output_path
