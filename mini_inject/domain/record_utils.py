"""
Helpers for the fixed-width record format and the author path convention.
"""
from typing import List

# Offset at which the version field of a record line starts at the earliest.
# The name alone is padded to this width, not name and version combined.
RECORD_VERSION_COLUMN = 39


def format_record(name: str, path: str, version: str) -> str:
    """
    Build a package index line: the name padded to the version column,
    then the version, two spaces and the path.
    """
    if len(name) >= RECORD_VERSION_COLUMN:
        padded = name + " "
    else:
        padded = name.ljust(RECORD_VERSION_COLUMN)
    return f"{padded}{version}  {path}"


def author_path_parts(authorid: str) -> List[str]:
    author = authorid.upper()
    return [author[:1], author[:2], author]


def author_path(authorid: str) -> str:
    """
    Return ``A/AB/AUTHORID`` for an author id (uppercased).
    """
    return "/".join(author_path_parts(authorid))
