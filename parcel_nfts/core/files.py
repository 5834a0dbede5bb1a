"""
File sets supplied by the user.

A file set is a flat collection of named byte blobs. Each blob keeps the
path it was selected under, relative to the directory the user picked, so
that the append workflow can recover `<root>/<tokenIndex>/<filename>`.
"""

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional


@dataclass(frozen=True)
class NamedBlob:
    """A named chunk of bytes, as uploaded to storage."""

    name: str
    data: bytes
    content_type: str = "application/octet-stream"
    relative_path: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def path(self) -> str:
        return self.relative_path or self.name

    @property
    def extension(self) -> str:
        """The part after the last dot, or an empty string when there is none."""
        parts = self.name.split(".")
        return parts[-1] if len(parts) > 1 else ""

    def renamed(self, name: str) -> "NamedBlob":
        return NamedBlob(name=name, data=self.data, content_type=self.content_type)


def guess_content_type(name: str) -> str:
    content_type, _ = mimetypes.guess_type(name)
    return content_type or "application/octet-stream"


def load_directory(directory: Path) -> List[NamedBlob]:
    """
    Load every file below `directory` as a blob.

    Relative paths are rooted at the directory's own name, matching what a
    browser reports for a directory selection.
    """
    directory = Path(directory)
    blobs = []
    for fp in sorted(directory.rglob("*")):
        if not fp.is_file():
            continue
        rel = Path(directory.name) / fp.relative_to(directory)
        blobs.append(
            NamedBlob(
                name=fp.name,
                data=fp.read_bytes(),
                content_type=guess_content_type(fp.name),
                relative_path=rel.as_posix(),
            )
        )
    return blobs


def index_by_name(files: Iterable[NamedBlob]) -> Dict[str, NamedBlob]:
    """Index files by base name; a later file with the same name wins."""
    return {f.name: f for f in files}
