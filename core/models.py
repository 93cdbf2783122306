# core/models.py
# Version 01.00.00.00 dated 20261019
# Domain entities: photos, their content handles, categories and progress

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Category(str, Enum):
    """Tri-state verdict plus the untagged state."""
    CORRECT = "correct"
    MEDIUM = "medium"
    WRONG = "wrong"
    NONE = "none"

    @classmethod
    def parse(cls, value: Any) -> "Category":
        """
        Coerce a stored or user-supplied value to a Category.

        None, "" and unknown strings map to NONE so that records written by
        older versions (which stored null for untagged) load cleanly.
        """
        if isinstance(value, Category):
            return value
        if not value:
            return cls.NONE
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.NONE

    @property
    def is_tagged(self) -> bool:
        return self is not Category.NONE

    def to_storage(self) -> Optional[str]:
        """Value written to durable storage; untagged is stored as NULL."""
        return self.value if self.is_tagged else None


@dataclass(frozen=True)
class Progress:
    """Progress report for long-running loops."""
    current: int
    total: int

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        return round(self.current / self.total * 100)


def new_photo_id() -> str:
    """Process-lifetime identifier for one imported photo."""
    return str(uuid.uuid4())


class LocalFileHandle:
    """
    Handle to an image file on disk.

    Only stat() is performed on construction; bytes are read on demand.
    """

    def __init__(self, path: str):
        self.path = os.path.abspath(path)
        self.name = os.path.basename(self.path)
        st = os.stat(self.path)
        self.size = st.st_size
        self.last_modified = int(st.st_mtime * 1000)

    def read_bytes(self) -> bytes:
        with open(self.path, "rb") as f:
            return f.read()

    def __repr__(self):
        return f"LocalFileHandle({self.path!r})"


class PhotoContent:
    """
    Binary content owned by exactly one Photo.

    Either lazy (backed by a handle with read_bytes()) or materialized
    (bytes held in memory). read() never caches a lazy read; restored
    sessions build materialized content with from_bytes().
    """

    def __init__(self, handle: Any = None, data: Optional[bytes] = None):
        if handle is None and data is None:
            raise ValueError("PhotoContent needs a handle or data")
        self._handle = handle
        self._data = data

    @classmethod
    def from_bytes(cls, data: bytes) -> "PhotoContent":
        return cls(data=bytes(data))

    @property
    def handle(self):
        return self._handle

    @property
    def is_materialized(self) -> bool:
        return self._data is not None

    def read(self) -> bytes:
        """Return the full content. Raises OSError if the handle is unreadable."""
        if self._data is not None:
            return self._data
        return self._handle.read_bytes()

    def __repr__(self):
        state = "materialized" if self.is_materialized else "lazy"
        return f"PhotoContent({state})"


@dataclass(eq=False)
class Photo:
    """
    One imported image.

    `path` is the relative path from the imported root and the only key that
    is stable across reimports; `id` is minted fresh on every import.
    """
    path: str
    content: Optional[PhotoContent] = None
    category: Category = Category.NONE
    size: int = 0
    last_modified: int = 0
    id: str = field(default_factory=new_photo_id)
    display_surrogate: Any = field(default=None, repr=False)

    def __post_init__(self):
        self.category = Category.parse(self.category)

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def folder(self) -> str:
        """Directory portion of `path` ("" for files at the import root)."""
        if "/" not in self.path:
            return ""
        return self.path.rsplit("/", 1)[0]

    @property
    def has_content(self) -> bool:
        return self.content is not None

    def replace_content(self, content: Optional[PhotoContent]):
        """Swap content; a surrogate built from the old content is revoked."""
        if content is self.content:
            return
        self.release()
        self.content = content

    def release(self):
        """Revoke the cached display surrogate, if any."""
        surrogate = self.display_surrogate
        self.display_surrogate = None
        if surrogate is not None:
            surrogate.revoke()


@dataclass(frozen=True)
class CatalogStats:
    total: int
    correct: int
    medium: int
    wrong: int
    uncategorized: int

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "correct": self.correct,
            "medium": self.medium,
            "wrong": self.wrong,
            "uncategorized": self.uncategorized,
        }
