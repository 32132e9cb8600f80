"""
Regenerate the per-author CHECKSUMS manifest of a mirror directory.
"""
from __future__ import annotations

import hashlib
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Union

logger = logging.getLogger(__name__)

CHECKSUMS_FILENAME = "CHECKSUMS"


class ManifestUpdater(ABC):
    """
    Rewrites the checksum manifest of one directory after its files changed.
    """

    @abstractmethod
    def update_dir(self, directory: Path) -> Path:
        """Regenerate the manifest of ``directory`` and return its path."""
        pass


def _file_digests(path: Path) -> Dict[str, str]:
    md5 = hashlib.md5()
    sha256 = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            md5.update(chunk)
            sha256.update(chunk)
    return {"md5": md5.hexdigest(), "sha256": sha256.hexdigest()}


def _perl_quote(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


class ChecksumsUpdater(ManifestUpdater):
    """
    Writes a CHECKSUMS file in the format CPAN clients read: a Perl hash
    assignment keyed by file name with md5, sha256, size and mtime.
    """

    def entries(self, directory: Path) -> Dict[str, Dict[str, Union[str, int]]]:
        result: Dict[str, Dict[str, Union[str, int]]] = {}
        for path in sorted(directory.iterdir()):
            if not path.is_file() or path.name == CHECKSUMS_FILENAME:
                continue
            stat = path.stat()
            entry: Dict[str, Union[str, int]] = dict(_file_digests(path))
            entry["size"] = stat.st_size
            entry["mtime"] = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).strftime("%Y-%m-%d")
            result[path.name] = entry
        return result

    def render(self, entries: Dict[str, Dict[str, Union[str, int]]]) -> str:
        now = datetime.now(timezone.utc).strftime("%a %b %d %H:%M:%S %Y")
        lines = [
            f"# CHECKSUMS file written on {now} GMT by mini_inject",
            "$cksum = {",
        ]
        for name, entry in entries.items():
            lines.append(f"  {_perl_quote(name)} => {{")
            fields = []
            for key in sorted(entry):
                value = entry[key]
                rendered = str(value) if isinstance(value, int) else _perl_quote(value)
                fields.append(f"    {_perl_quote(key)} => {rendered}")
            lines.append(",\n".join(fields))
            lines.append("  },")
        lines.append("};")
        return "\n".join(lines) + "\n"

    def update_dir(self, directory: Path) -> Path:
        directory = Path(directory)
        target = directory / CHECKSUMS_FILENAME
        entries = self.entries(directory)
        target.write_text(self.render(entries), encoding="utf-8")
        logger.debug(f"Wrote {len(entries)} checksum(s) to {target}")
        return target
