"""File system access for UX-Kit.

Every service that touches disk goes through :class:`FileSystemService` so
tests can point it at a temporary directory or swap in a mock.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import List, Optional

from .errors import StorageError

logger = logging.getLogger("uxkit.storage")


class FileSystemService:
    """UTF-8 text file operations on string paths."""

    def read_file(self, path: str) -> str:
        target = Path(path)
        if not target.is_file():
            raise StorageError(f"File not found: {path}")
        try:
            return target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Could not read {path}: {e}") from e

    def write_file(self, path: str, content: str) -> None:
        target = Path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise StorageError(f"Could not write {path}: {e}") from e

    def ensure_directory_exists(self, path: str) -> None:
        target = Path(path)
        if target.exists() and not target.is_dir():
            raise StorageError(f"Path exists but is not a directory: {path}")
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create directory {path}: {e}") from e

    def path_exists(self, path: str) -> bool:
        return Path(path).exists()

    def dirname(self, path: str) -> str:
        return os.path.dirname(path)

    def basename(self, path: str, suffix: Optional[str] = None) -> str:
        name = os.path.basename(path)
        if suffix and name.endswith(suffix):
            name = name[: -len(suffix)]
        return name

    def join_paths(self, *parts: str) -> str:
        return os.path.join(*parts)

    def list_files(self, directory: str, extension: Optional[str] = None) -> List[str]:
        """Files directly inside ``directory``, sorted, optionally filtered by extension."""
        base = Path(directory)
        if not base.is_dir():
            return []
        return sorted(
            str(child)
            for child in base.iterdir()
            if child.is_file() and (extension is None or child.suffix == extension)
        )

    def list_directories(self, directory: str) -> List[str]:
        base = Path(directory)
        if not base.is_dir():
            return []
        return sorted(str(child) for child in base.iterdir() if child.is_dir())

    def delete_file(self, path: str) -> None:
        try:
            Path(path).unlink()
        except FileNotFoundError as e:
            raise StorageError(f"File not found: {path}") from e
        except OSError as e:
            raise StorageError(f"Could not delete {path}: {e}") from e

    def delete_directory(self, path: str, recursive: bool = False) -> None:
        target = Path(path)
        try:
            if recursive:
                shutil.rmtree(target)
            else:
                target.rmdir()
        except FileNotFoundError as e:
            raise StorageError(f"Directory not found: {path}") from e
        except OSError as e:
            raise StorageError(f"Could not delete directory {path}: {e}") from e
