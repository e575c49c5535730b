"""Deletion with safety checks for dirsift."""

import errno
import logging
import os
import shutil
from pathlib import Path
from typing import Optional

from dirsift.config import expand_path
from dirsift.models import DeleteErrorKind, DeleteResult
from dirsift.sampler import sum_directory

log = logging.getLogger(__name__)

# Paths that should NEVER be deleted
BLOCKED_PATHS = [
    "~/Documents",
    "~/Desktop",
    "~/Pictures",
    "~/Music",
    "~/Movies",
    "~/Downloads",
    "~/Library",
    "/",
    "/System",
    "/Library",
    "/Applications",
    "/usr",
    "/bin",
    "/sbin",
    "/var",
    "/private",
    "/private/var",
    "/Users",
    "~",
]

# Sealed system trees; nothing beneath them may be deleted either
BLOCKED_TREES = ["/System", "/usr", "/bin", "/sbin"]

IN_USE_ERRNOS = {errno.EBUSY, errno.ETXTBSY}

TRASH_DIR = "~/.Trash"


def is_path_safe(path: Path) -> bool:
    """
    Check if a path is safe to delete.

    Args:
        path: Path to check

    Returns:
        True if safe to delete, False otherwise
    """
    path_str = os.path.normpath(str(path))

    for blocked in BLOCKED_PATHS:
        if path_str == os.path.normpath(str(expand_path(blocked))):
            return False

    for tree in BLOCKED_TREES:
        if path_str.startswith(tree + "/"):
            return False

    return path_str != str(Path.home())


def unique_destination(directory: Path, name: str) -> Path:
    """Pick a name in directory that does not exist yet ("x", "x 2", ...)."""
    candidate = directory / name
    stem, suffix = os.path.splitext(name)
    counter = 2
    while candidate.exists() or candidate.is_symlink():
        candidate = directory / f"{stem} {counter}{suffix}"
        counter += 1
    return candidate


def _size_of(path: Path) -> int:
    if path.is_dir() and not path.is_symlink():
        size, _, _ = sum_directory(str(path))
        return size
    return path.lstat().st_size


def delete_path(
    path: str | Path,
    use_trash: bool = True,
    trash_dir: Optional[str | Path] = None,
) -> DeleteResult:
    """
    Delete a file or directory, moving it to the trash when one exists.

    Args:
        path: Path to delete
        use_trash: Move to the trash instead of removing when possible
        trash_dir: Trash location (default: ~/.Trash)

    Returns:
        DeleteResult; failures are reported, never raised
    """
    target = expand_path(str(path))

    if not is_path_safe(target):
        log.warning("Refusing to delete protected path %s", target)
        return DeleteResult(
            path=str(target),
            success=False,
            error=f"Blocked path: {target}",
            error_kind=DeleteErrorKind.BLOCKED,
        )

    try:
        size = _size_of(target)
        trash = expand_path(str(trash_dir or TRASH_DIR))

        if use_trash and trash.is_dir():
            destination = unique_destination(trash, target.name)
            shutil.move(str(target), str(destination))
            log.info("Moved %s to %s", target, destination)
            return DeleteResult(path=str(target), bytes_freed=size, trashed=True)

        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink()
        log.info("Deleted %s", target)
        return DeleteResult(path=str(target), bytes_freed=size)

    except FileNotFoundError as e:
        return _failure(target, f"Not found: {e}", DeleteErrorKind.NOT_FOUND)
    except PermissionError as e:
        return _failure(target, f"Permission denied: {e}", DeleteErrorKind.PERMISSION_DENIED)
    except OSError as e:
        if e.errno in IN_USE_ERRNOS:
            return _failure(target, f"In use: {e}", DeleteErrorKind.IN_USE)
        return _failure(target, f"OS error: {e}", DeleteErrorKind.OTHER)


def _failure(path: Path, message: str, kind: DeleteErrorKind) -> DeleteResult:
    log.warning("Could not delete %s: %s", path, message)
    return DeleteResult(path=str(path), success=False, error=message, error_kind=kind)
