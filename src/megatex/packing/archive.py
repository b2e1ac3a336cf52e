"""Read-only named-entry archive (zip resource packs).

Entries are read serially and fully: :meth:`ArchiveSource.read` opens the
member, reads it and releases the handle before returning.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union
import zipfile
import zlib

from ..errors import E_ARCHIVE, E_ENTRY_MISSING, ArchiveError, NotFoundError

__all__ = ["ArchiveEntry", "ArchiveSource", "open_archive"]


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    name: str
    index: int
    is_file: bool
    size: int


class ArchiveSource:
    """Random-access view over a zip archive."""

    def __init__(
        self, fileobj: Union[str, Path, BinaryIO], label: Optional[str] = None
    ):
        self.path: Path | None = (
            Path(fileobj) if isinstance(fileobj, (str, Path)) else None
        )
        self.label = label or (self.path.name if self.path else "<memory>")
        try:
            self._zip = zipfile.ZipFile(fileobj, "r")
        except (zipfile.BadZipFile, OSError) as e:
            raise ArchiveError(
                code=E_ARCHIVE,
                message=f"Failed to open archive {self.label}: {e}",
                context={"archive": self.label},
            ) from e
        self._infos = self._zip.infolist()
        self._names = {info.filename for info in self._infos}

    def __enter__(self) -> "ArchiveSource":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._zip.close()

    def __len__(self) -> int:
        return len(self._infos)

    def __contains__(self, name: str) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[ArchiveEntry]:
        for i in range(len(self._infos)):
            yield self.by_index(i)

    def by_index(self, index: int) -> ArchiveEntry:
        info = self._infos[index]
        return ArchiveEntry(
            name=info.filename,
            index=index,
            is_file=not info.is_dir(),
            size=info.file_size,
        )

    def by_name(self, name: str) -> ArchiveEntry:
        if name not in self._names:
            raise NotFoundError(
                code=E_ENTRY_MISSING,
                message=f"Archive {self.label} missing {name}",
                context={"archive": self.label, "entry": name},
            )
        info = self._zip.getinfo(name)
        return ArchiveEntry(
            name=name,
            index=self._infos.index(info),
            is_file=not info.is_dir(),
            size=info.file_size,
        )

    def read(self, name: str) -> bytes:
        """Return the full content of entry ``name``."""
        entry = self.by_name(name)
        try:
            with self._zip.open(entry.name) as f:
                return f.read()
        except (zipfile.BadZipFile, zlib.error, OSError, EOFError) as e:
            raise ArchiveError(
                code=E_ARCHIVE,
                message=f"Failed to read {name} from {self.label}: {e}",
                context={"archive": self.label, "entry": name},
            ) from e

    def same_source(self, other: Optional["ArchiveSource"]) -> bool:
        if other is None:
            return False
        if other is self:
            return True
        if self.path is None or other.path is None:
            return False
        return self.path.resolve() == other.path.resolve()

    def __repr__(self) -> str:  # pragma: no cover
        return f"ArchiveSource({self.label!r}, entries={len(self)})"


def open_archive(path: Union[str, Path]) -> ArchiveSource:
    p = Path(path)
    if not p.is_file():
        raise ArchiveError(
            code=E_ARCHIVE,
            message=f"Archive not found: {p}",
            context={"archive": str(p)},
        )
    return ArchiveSource(p)
