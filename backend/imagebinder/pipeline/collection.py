"""
ImageBinder — Ordered image collection.

The list of images a document is built from. Every operation returns a
new collection; entries themselves are frozen, so a placement is always
derived fresh from the current entry at render time.
"""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator

from imagebinder.errors import ImageNotFoundError

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_entry_id() -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(7))


@dataclass(frozen=True)
class ImageEntry:
    id: str
    filename: str
    content: bytes = field(repr=False)
    content_type: str = ""
    rotation: int = 0


@dataclass(frozen=True)
class ImageCollection:
    entries: tuple[ImageEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[ImageEntry]:
        return iter(self.entries)

    @property
    def ids(self) -> list[str]:
        return [e.id for e in self.entries]

    def get(self, entry_id: str) -> ImageEntry:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        raise ImageNotFoundError(entry_id)

    def _index(self, entry_id: str) -> int:
        for i, entry in enumerate(self.entries):
            if entry.id == entry_id:
                return i
        raise ImageNotFoundError(entry_id)

    def add(self, filename: str, content: bytes, content_type: str = "") -> ImageCollection:
        entry = ImageEntry(
            id=new_entry_id(),
            filename=filename,
            content=content,
            content_type=content_type,
        )
        return ImageCollection(self.entries + (entry,))

    def _replace_entry(self, entry_id: str, **changes) -> ImageCollection:
        i = self._index(entry_id)
        updated = replace(self.entries[i], **changes)
        return ImageCollection(self.entries[:i] + (updated,) + self.entries[i + 1:])

    def set_rotation(self, entry_id: str, degrees: int) -> ImageCollection:
        """Store a rotation as given; the layout engine validates it at render time."""
        return self._replace_entry(entry_id, rotation=degrees)

    def rotate(self, entry_id: str, delta: int) -> ImageCollection:
        current = self.get(entry_id).rotation
        return self._replace_entry(entry_id, rotation=(current + delta) % 360)

    def rotate_left(self, entry_id: str) -> ImageCollection:
        return self.rotate(entry_id, -90)

    def rotate_right(self, entry_id: str) -> ImageCollection:
        return self.rotate(entry_id, 90)

    def remove(self, entry_id: str) -> ImageCollection:
        i = self._index(entry_id)
        return ImageCollection(self.entries[:i] + self.entries[i + 1:])

    def move(self, entry_id: str, index: int) -> ImageCollection:
        """Move one entry to `index` (clamped to the collection bounds)."""
        i = self._index(entry_id)
        rest = list(self.entries[:i] + self.entries[i + 1:])
        index = max(0, min(index, len(rest)))
        rest.insert(index, self.entries[i])
        return ImageCollection(tuple(rest))

    def reorder(self, ids: Iterable[str]) -> ImageCollection:
        """
        Rebuild the order from a list of ids.

        Unknown ids are ignored and entries missing from `ids` are
        dropped, mirroring a drag-sort that reports the visible order.
        """
        by_id = {e.id: e for e in self.entries}
        ordered: list[ImageEntry] = []
        seen: set[str] = set()
        for entry_id in ids:
            if entry_id in by_id and entry_id not in seen:
                ordered.append(by_id[entry_id])
                seen.add(entry_id)
        return ImageCollection(tuple(ordered))

    def clear(self) -> ImageCollection:
        return ImageCollection()
