"""
StoreFix Directory Cloner

Attribute-preserving recursive directory copy used to snapshot a store
before any destructive repair.

Handles:
- Regular files: streamed byte-for-byte copy
- Directories: created, populated, then mode/ownership applied (post-order)
- Symbolic links: relinked to the same target, never dereferenced
- FIFOs, sockets and devices: rejected with FilesystemError

Ownership (uid/gid) is propagated to every entry with lchown(). Mode bits
are propagated to everything except symlinks.

The first failure aborts the whole clone with FilesystemError. Siblings
after a failing entry are not processed.

Author: StoreFix Project
License: GNU GPL v3
"""

import logging
import os
import shutil
import stat
from pathlib import Path
from typing import Optional, Union

from ..errors import FilesystemError
from ..models import EntryType, FileAttributes


logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

COPY_CHUNK_SIZE = 1024 * 1024


def exists(path: PathLike) -> bool:
    """Return True if path exists (symlinks are followed)."""
    return os.path.exists(path)


def create_if_not_exists(directory: PathLike, mode: int = 0o755) -> None:
    """
    Create directory and any missing parents.

    Raises:
        FilesystemError: If the directory cannot be created
    """
    if exists(directory):
        return

    try:
        os.makedirs(directory, mode=mode, exist_ok=True)
    except OSError as e:
        raise FilesystemError("failed to create directory", directory, e) from e


def copy_file(source: PathLike, destination: PathLike) -> None:
    """
    Stream file content from source to destination.

    Both handles are closed before returning. An existing regular file at
    destination is overwritten. If an earlier clone left it read-only it
    is made owner-writable first. An existing symlink is refused so the
    copy never writes through a link out of the backup tree.

    Raises:
        FilesystemError: On open/read/write failure
    """
    if os.path.islink(destination):
        raise FilesystemError("refusing to overwrite symlink", destination)

    try:
        if os.path.isfile(destination):
            mode = stat.S_IMODE(os.lstat(destination).st_mode)
            if not mode & stat.S_IWUSR:
                os.chmod(destination, mode | stat.S_IWUSR)
    except OSError as e:
        raise FilesystemError("unable to make writable", destination, e) from e

    try:
        with open(source, 'rb') as f_in:
            with open(destination, 'wb') as f_out:
                shutil.copyfileobj(f_in, f_out, COPY_CHUNK_SIZE)
    except OSError as e:
        raise FilesystemError(f"unable to copy {source} to", destination, e) from e


def copy_symlink(source: PathLike, destination: PathLike, target: Optional[str] = None) -> None:
    """
    Recreate the symlink at source as destination.

    A destination that is already a link to the same target is kept.

    Raises:
        FilesystemError: If the link cannot be read or created, or a
            different entry already occupies destination
    """
    if target is None:
        try:
            target = os.readlink(source)
        except OSError as e:
            raise FilesystemError("unable to read symlink", source, e) from e

    if os.path.islink(destination):
        if os.readlink(destination) == target:
            return
        raise FilesystemError(f"conflicting symlink (wanted -> {target}) at", destination)
    if os.path.lexists(destination):
        raise FilesystemError("conflicting entry (expected symlink) at", destination)

    try:
        os.symlink(target, destination)
    except OSError as e:
        raise FilesystemError("unable to create symlink", destination, e) from e


def _apply_attributes(destination: Path, attrs: FileAttributes) -> None:
    try:
        os.lchown(destination, attrs.uid, attrs.gid)
    except OSError as e:
        raise FilesystemError(f"unable to chown ({attrs.uid}:{attrs.gid})", destination, e) from e

    # Symlink permissions are not portable
    if attrs.type == EntryType.SYMLINK:
        return

    try:
        os.chmod(destination, attrs.mode)
    except OSError as e:
        raise FilesystemError(f"unable to chmod ({oct(attrs.mode)})", destination, e) from e


def _ensure_subdirectory(destination: Path) -> None:
    if os.path.lexists(destination) and (os.path.islink(destination) or not destination.is_dir()):
        raise FilesystemError("conflicting entry (expected directory) at", destination)
    create_if_not_exists(destination, 0o755)


def _clone_tree(source: Path, destination: Path) -> int:
    try:
        names = sorted(os.listdir(source))
    except OSError as e:
        raise FilesystemError("unable to list directory", source, e) from e

    copied = 0
    for name in names:
        source_path = source / name
        dest_path = destination / name

        try:
            attrs = FileAttributes.from_path(source_path)
        except OSError as e:
            raise FilesystemError("unable to stat", source_path, e) from e

        if attrs.type == EntryType.DIRECTORY:
            _ensure_subdirectory(dest_path)
            copied += _clone_tree(source_path, dest_path)
        elif attrs.type == EntryType.SYMLINK:
            copy_symlink(source_path, dest_path, attrs.symlink_target)
        elif attrs.type == EntryType.OTHER:
            raise FilesystemError("unsupported entry type at", source_path)
        else:
            copy_file(source_path, dest_path)

        # Directories get their mode last, after they have been populated
        _apply_attributes(dest_path, attrs)
        logger.debug(f"Cloned {attrs.type.value}: {source_path} -> {dest_path}")
        copied += 1

    return copied


def clone_directory(source: PathLike, destination: PathLike) -> int:
    """
    Recursively copy source into destination preserving attributes.

    destination is created (with parents) if missing. If it already
    exists the copy merges into it. The root destination directory keeps
    its own attributes. Only entries beneath it are adjusted.

    Args:
        source: Existing directory to snapshot
        destination: Target directory

    Returns:
        Number of entries cloned

    Raises:
        FilesystemError: On the first failure anywhere in the tree
    """
    source = Path(source)
    destination = Path(destination)

    if not os.path.lexists(source):
        raise FilesystemError("source directory does not exist:", source)
    if not source.is_dir():
        raise FilesystemError("source is not a directory:", source)

    create_if_not_exists(destination, 0o755)
    if not destination.is_dir():
        raise FilesystemError("destination is not a directory:", destination)

    count = _clone_tree(source, destination)
    logger.info(f"Cloned {count} entries from {source} to {destination}")
    return count
