from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from mini_inject.domain.record_utils import author_path_parts

logger = logging.getLogger(__name__)

# Files never get execute bits from dirmode.
FILE_MODE_MASK = 0o6666


class PermissionPolicy:
    """
    Applies the configured ``dirmode`` to directories and files the injector
    creates. Without a dirmode nothing is touched and the umask decides.
    """

    def __init__(self, dirmode: Optional[int] = None):
        self.dirmode = dirmode

    def update_file(self, path: Union[str, Path]) -> None:
        if self.dirmode is None:
            return
        os.chmod(path, self.dirmode & FILE_MODE_MASK)

    def update_dir(self, path: Union[str, Path]) -> None:
        if self.dirmode is None:
            return
        os.chmod(path, self.dirmode)

    def make_path(self, path: Union[str, Path], mode: Optional[int] = None) -> Path:
        """
        Create every missing component of ``path``. Existing directories are
        left as they are; new ones get ``mode`` (default: the dirmode).
        """
        path = Path(path)
        mode = self.dirmode if mode is None else mode
        missing = []
        current = path
        while not current.exists():
            missing.append(current)
            if current.parent == current:
                break
            current = current.parent
        for directory in reversed(missing):
            directory.mkdir()
            if mode is not None:
                os.chmod(directory, mode)
            logger.debug(f"Created directory {directory}")
        return path

    def ensure_author_dir(self, root: Union[str, Path], authorid: str) -> str:
        """
        Create ``<root>/authors/id/A/AB/AUTHOR`` level by level and return the
        author-relative part ``A/AB/AUTHOR``.
        """
        parts = author_path_parts(authorid)
        directory = Path(root)
        for subdir in ["authors", "id", *parts]:
            directory = directory / subdir
            if directory.exists():
                continue
            try:
                directory.mkdir()
            except OSError as e:
                logger.error(f"mkdir {directory} failed: {e}")
                raise
            self.update_dir(directory)
        return "/".join(parts)
