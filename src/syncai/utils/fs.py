import os
import shutil
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import List, Optional, Union


@dataclass(frozen=True)
class FileEntry:
    """A path found while walking a directory, relative to the walk root."""
    relative_path: str
    is_directory: bool = False


def expand_home(path: Union[str, Path], home: Optional[Path] = None) -> Path:
    """Expand a leading ``~`` against ``home`` (defaults to the user's home)."""
    path = Path(path)
    if home is None:
        return path.expanduser()
    parts = path.parts
    if parts and parts[0] == '~':
        return Path(home).joinpath(*parts[1:])
    return path


def collapse_home(path: Union[str, Path], home: Optional[Path] = None) -> str:
    """Inverse of expand_home: paths under the home directory become ``~/...``."""
    if not home:
        home = Path.home()
    path = Path(path)
    if path.is_absolute():
        try:
            path = path.relative_to(home)
        except ValueError:
            # Outside home, keep it absolute
            return str(path)
        return str(PurePosixPath('~', *path.parts))
    return str(path)


def to_posix(path: Union[str, Path]) -> str:
    """Relative path with forward slashes, as stored in results and ignore rules."""
    return PurePosixPath(*Path(path).parts).as_posix()


def list_files(root: Union[str, Path], recursive: bool = True, files_only: bool = True) -> List[FileEntry]:
    """
    List entries under ``root`` sorted by relative path.

    Directory symlinks are followed; dangling symlinks are skipped.
    Returns an empty list when ``root`` does not exist.
    """
    root = Path(root)
    if not root.is_dir():
        return []

    entries: List[FileEntry] = []
    for current, dirs, files in os.walk(root, followlinks=True):
        dirs.sort()
        current_path = Path(current)
        rel_dir = current_path.relative_to(root)

        if not files_only:
            for name in dirs:
                entries.append(FileEntry(to_posix(rel_dir / name), True))

        for name in sorted(files):
            full_path = current_path / name
            if not full_path.is_file():
                continue
            entries.append(FileEntry(to_posix(rel_dir / name), False))

        if not recursive:
            break

    return sorted(entries, key=lambda e: e.relative_path)


def copy_file(source: Path, destination: Path) -> None:
    """Copy a single file, creating parent directories and overwriting the target."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, destination)


def copy_tree(source: Path, destination: Path) -> None:
    """Recursively copy a directory into ``destination`` (merging if it exists)."""
    shutil.copytree(source, destination, symlinks=False,
                    ignore_dangling_symlinks=True, dirs_exist_ok=True)


def remove_path(path: Path) -> None:
    """Delete a file or directory tree if present."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def read_text_or_empty(path: Path) -> str:
    """Read a file as text, returning an empty string when it cannot be read."""
    try:
        return path.read_text(encoding='utf-8', errors='replace')
    except OSError:
        return ''
