"""
Merge pending module records into the archive's 02packages.details.txt.gz.
"""
from __future__ import annotations

import gzip
import logging
import shutil
from pathlib import Path
from typing import IO, Iterable, Iterator, List, Optional, Set

from mini_inject.domain.errors import CopyError, IndexOpenError
from mini_inject.storage.permissions import PermissionPolicy

logger = logging.getLogger(__name__)

PACKAGES_FILENAME = "02packages.details.txt.gz"


def _line_key(line: bytes) -> bytes:
    # bytes.lower() folds ASCII only, any other byte compares as-is
    return line.rstrip(b"\r\n").lower()


def merge_index_lines(existing: Iterable[bytes], pending: Iterable[str]) -> Iterator[bytes]:
    """
    Yield the lines of a merged package index.

    ``existing`` are the raw lines of the current index (line terminators
    included), ``pending`` the record lines to add, already in the order they
    should be considered. Header lines up to and including the first blank
    line are passed through untouched. In the body, a pending record is
    emitted before the first existing line it sorts below (case-insensitive,
    full line), and dropped if it equals an existing line or a record
    already emitted. Blank records are skipped.

    The body is driven by the existing lines: once they run out the merge
    stops, so pending records sorting after the last existing line are not
    emitted.
    """
    pending_iter = iter(pending)
    next_pending: Optional[bytes] = None
    exhausted = False

    def peek() -> Optional[bytes]:
        nonlocal next_pending, exhausted
        if next_pending is None and not exhausted:
            try:
                next_pending = next(pending_iter).rstrip("\r\n").encode("utf-8")
            except StopIteration:
                exhausted = True
        return next_pending

    def consume() -> None:
        nonlocal next_pending
        next_pending = None

    emitted: Set[bytes] = set()
    in_header = True
    for line in existing:
        if in_header:
            if not line.strip():
                in_header = False
            yield line
            continue

        key = _line_key(line)
        while True:
            record = peek()
            if record is None:
                break
            record_key = record.lower()
            if not record.strip() or record_key in emitted:
                consume()
            elif record_key < key:
                yield record + b"\n"
                emitted.add(record_key)
                consume()
            elif record_key == key:
                logger.debug(f"Skipping {record!r}, already in the index")
                consume()
            else:
                break
        yield line


class IndexMerger:
    """
    Rewrites the mirror's package index with the repository's pending
    records.

    The merged index is first written to a staging file (inside the
    repository) and then copied over the mirror's index.
    """

    def __init__(self, local: Path, staging_dir: Path, permissions: Optional[PermissionPolicy] = None):
        self.local = Path(local)
        self.staging_dir = Path(staging_dir)
        self.permissions = permissions or PermissionPolicy()

    @property
    def index_path(self) -> Path:
        return self.local / "modules" / PACKAGES_FILENAME

    @property
    def staging_path(self) -> Path:
        return self.staging_dir / PACKAGES_FILENAME

    def _open(self, path: Path, mode: str, label: str) -> IO[bytes]:
        try:
            return gzip.open(path, mode)
        except OSError as e:
            logger.error(f"Cannot open {label} {PACKAGES_FILENAME}: {e}")
            raise IndexOpenError(f"Cannot open {label} {PACKAGES_FILENAME}: {e}") from e

    def merge(self, records: Optional[Iterable[str]]) -> Path:
        """
        Merge ``records`` into the index and replace the mirror's index with
        the result. Records are sorted as plain text first.
        """
        modules: List[str] = sorted(records or [])
        source_path = self.index_path
        target_path = self.staging_path

        reader = self._open(source_path, "rb", "local")
        try:
            writer = self._open(target_path, "wb", "repository")
            try:
                written = 0
                for line in merge_index_lines(reader, modules):
                    writer.write(line)
                    written += 1
            except (EOFError, gzip.BadGzipFile) as e:
                raise IndexOpenError(f"Cannot read local {PACKAGES_FILENAME}: {e}") from e
            finally:
                writer.close()
        finally:
            reader.close()
        logger.debug(f"Wrote {written} line(s) to {target_path}")

        try:
            shutil.copyfile(target_path, source_path)
        except OSError as e:
            logger.error(f"Copy {target_path} to {source_path} failed: {e}")
            raise CopyError(f"Copy {target_path} to {source_path} failed", e) from e
        self.permissions.update_file(source_path)

        logger.info(f"Updated {source_path} with {len(modules)} pending record(s)")
        return source_path
