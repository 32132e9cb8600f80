from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from mini_inject.domain.errors import ReadError, WriteError
from mini_inject.storage.permissions import PermissionPolicy

logger = logging.getLogger(__name__)

MODULE_LIST_FILENAME = "modulelist"


class ModuleListStore:
    """
    The repository's pending module records, persisted at
    ``<repository>/modulelist`` as one record line per line.

    ``records`` is ``None`` until something is loaded or appended, which
    mirrors "no list yet" as opposed to "an empty list".
    """

    def __init__(self, repository: Path, permissions: Optional[PermissionPolicy] = None):
        self.repository = Path(repository)
        self.permissions = permissions or PermissionPolicy()
        self.records: Optional[List[str]] = None
        self.loaded = False

    @property
    def path(self) -> Path:
        return self.repository / MODULE_LIST_FILENAME

    def load(self) -> Optional[List[str]]:
        """
        Replace the in-memory list with the file's lines. A missing file
        yields ``None`` rather than an error; blank lines are ignored.
        """
        self.records = None

        path = self.path
        if not path.exists():
            logger.debug(f"No module list at {path}")
            self.loaded = True
            return None
        if not os.access(path, os.R_OK):
            raise ReadError(f"Can not read module list: {path}")

        try:
            with path.open("r", encoding="utf-8") as f:
                lines = [line.rstrip("\r\n") for line in f if line.strip()]
        except OSError as e:
            raise ReadError(f"Can not read module list: {path}: {e}") from e

        self.records = lines
        self.loaded = True
        logger.debug(f"Loaded {len(lines)} record(s) from {path}")
        return self.records

    def append(self, record: str) -> None:
        if self.records is None:
            self.records = []
        self.records.append(record)

    def sorted_records(self) -> List[str]:
        """Records in plain (case-sensitive) text order."""
        return sorted(self.records or [])

    def save(self) -> None:
        """
        Write the list sorted case-sensitively. Nothing is written when the
        in-memory list is absent or empty.
        """
        path = self.path
        if not (os.access(path, os.W_OK) or os.access(self.repository, os.W_OK)):
            raise WriteError(f"Can not write module list: {path}")
        if not self.records:
            return

        try:
            with path.open("w", encoding="utf-8") as f:
                for line in self.sorted_records():
                    f.write(line.rstrip("\r\n") + "\n")
        except OSError as e:
            raise WriteError(f"Can not write module list: {path} ERROR: {e}") from e

        self.permissions.update_file(path)
        logger.info(f"Wrote {len(self.records)} record(s) to {path}")
