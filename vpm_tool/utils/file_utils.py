# vpm_tool/utils/file_utils.py
"""File operation utilities"""

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, List, Set, Union, Optional

from ..constants import INVALID_FILENAME_CHARS, META_SUFFIX

logger = logging.getLogger(__name__)


def atomic_write(path: Path, data: Union[str, bytes], encoding: str = "utf-8") -> None:
    """
    Write a file by writing a sibling temp file and renaming it over the target

    Args:
        path: Target file
        data: Content to write
        encoding: Encoding used when ``data`` is text
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(data, str):
        data = data.encode(encoding)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def atomic_copy(src: Path, dst: Path) -> None:
    """
    Copy a file so readers never observe a half-written destination

    Args:
        src: Source file
        dst: Destination file
    """
    dst = Path(dst)
    dst.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{dst.name}.", suffix=".tmp", dir=dst.parent)
    os.close(fd)
    try:
        shutil.copyfile(src, tmp_name)
        shutil.copymode(src, tmp_name)
        os.replace(tmp_name, dst)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def write_json(path: Path, data: Any) -> None:
    """Write pretty-printed JSON atomically"""
    atomic_write(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def read_json(path: Path) -> Any:
    """
    Read a JSON file

    Raises:
        OSError: File cannot be read
        ValueError: Content is empty or not valid JSON
    """
    text = Path(path).read_text(encoding="utf-8-sig")
    if not text.strip():
        raise ValueError(f"Empty file: {path}")
    return json.loads(text)


def sanitize_filename(name: str, replacement: str = "_") -> str:
    """
    Replace characters that are invalid in file names

    Spaces are kept, so "My Repo" stays "My Repo".

    Args:
        name: Proposed file name
        replacement: Replacement character

    Returns:
        Safe file name
    """
    cleaned = INVALID_FILENAME_CHARS.sub(replacement, name).strip().rstrip('.')
    return cleaned or replacement


def list_relative_files(directory: Path) -> Set[str]:
    """
    Relative POSIX paths of all files below a directory

    Args:
        directory: Root directory

    Returns:
        Set of relative paths, empty if the directory does not exist
    """
    directory = Path(directory)
    if not directory.is_dir():
        return set()
    return {
        path.relative_to(directory).as_posix()
        for path in directory.rglob('*')
        if path.is_file()
    }


def meta_path(path: Path) -> Path:
    """Companion metadata file of a file or directory ("X" -> "X.meta")"""
    path = Path(path)
    return path.with_name(path.name + META_SUFFIX)


def remove_with_meta(path: Path) -> int:
    """
    Remove a file or directory together with its ``.meta`` companion

    Args:
        path: File or directory

    Returns:
        Number of entries removed
    """
    removed = 0
    for target in (Path(path), meta_path(path)):
        if target.is_dir():
            shutil.rmtree(target)
            removed += 1
        elif target.exists() or target.is_symlink():
            target.unlink()
            removed += 1
    return removed


def prune_empty_dirs(root: Path) -> int:
    """
    Remove empty directories below ``root`` (``root`` itself is kept)

    Returns:
        Number of directories removed
    """
    root = Path(root)
    if not root.is_dir():
        return 0

    removed = 0
    for directory in sorted((p for p in root.rglob('*') if p.is_dir()),
                            key=lambda p: len(p.parts), reverse=True):
        if not any(directory.iterdir()):
            directory.rmdir()
            meta = meta_path(directory)
            if meta.is_file():
                meta.unlink()
            removed += 1
    return removed


def find_file(root: Path, name: str) -> Optional[Path]:
    """
    Find the shallowest file named ``name`` below ``root``

    Args:
        root: Directory to search
        name: File name

    Returns:
        Path to the file or None
    """
    matches: List[Path] = [p for p in Path(root).rglob(name) if p.is_file()]
    if not matches:
        return None
    return min(matches, key=lambda p: (len(p.relative_to(root).parts), str(p)))


def safe_remove(path: Path) -> bool:
    """
    Remove a file or directory, logging instead of raising

    Used for temporary artifacts only.

    Args:
        path: Path to remove

    Returns:
        True if nothing remains at ``path``
    """
    path = Path(path)
    try:
        if path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            path.unlink()
        return True
    except OSError as e:
        logger.warning(f"Failed to remove temporary path {path}: {e}")
        return False

