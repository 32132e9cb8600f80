from __future__ import annotations

import os
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mini_inject.domain.record_utils import format_record


class InjectConfig(BaseModel):
    """
    Settings read from the mcpani config file.

    Only ``local`` and ``remote`` are required; anything else in the file is
    kept but not interpreted.
    """

    model_config = ConfigDict(extra="allow")

    local: str = Field(description="Root of the local mirror the modules are injected into.")
    remote: str = Field(description="Whitespace separated list of sites to mirror from.")
    repository: Optional[str] = Field(
        default=None,
        description="Private repository holding the modules waiting to be injected.",
    )
    passive: bool = Field(default=False, description="Enable passive FTP for the mirror sync.")
    dirmode: Optional[int] = Field(
        default=None,
        description="Mode applied to created directories (and, masked, to written files).",
    )
    perl: Optional[bool] = Field(
        default=None,
        description="Forwarded to the mirror sync as skip_perl.",
    )

    @field_validator("local", "remote", "repository", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        # YAML turns bare numbers and dates into non-strings
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("dirmode", mode="before")
    @classmethod
    def _parse_dirmode(cls, value: Union[str, int, None]) -> Optional[int]:
        # YAML already decodes 0755 as an octal int; quoted values arrive as text
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            raise ValueError("dirmode must be an octal mode such as 0755")
        if isinstance(value, int):
            return value
        return int(str(value).strip(), 8)

    @property
    def remote_sites(self) -> List[str]:
        """Remote sites in configured order, each with a trailing slash."""
        sites = []
        for site in self.remote.split():
            if not site.endswith("/"):
                site += "/"
            sites.append(site)
        return sites

    def default_dirmode(self) -> int:
        if self.dirmode is not None:
            return self.dirmode
        umask = os.umask(0)
        os.umask(umask)
        return 0o777 & ~umask


class ModuleRecord(BaseModel):
    """
    One package entry of the module list / package index.

    ``path`` is relative to ``authors/id``, e.g. ``S/SS/SSORICHE/Foo-0.01.tar.gz``.
    """

    name: str = Field(min_length=1)
    version: str
    path: str

    @property
    def author_dir(self) -> str:
        return os.path.dirname(self.path)

    def to_line(self) -> str:
        return format_record(self.name, self.path, self.version)

    @classmethod
    def from_line(cls, line: str) -> "ModuleRecord":
        parts = line.split()
        if len(parts) != 3:
            raise ValueError(f"Malformed module record: {line!r}")
        name, version, path = parts
        return cls(name=name, version=version, path=path)


class MirrorOptions(BaseModel):
    """
    Options handed to the mirror sync collaborator.
    """

    local: str
    remote: str
    trace: bool = False
    skip_perl: bool = True
    dirmode: int = 0o755
    passive: bool = False
