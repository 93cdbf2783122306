# services/folder_alignment_service.py
# Version 01.00.00.00 dated 20261019
# Name-aligned cross-folder comparison and folder tree helpers

"""
Folder alignment.

Given 2..8 selected folder prefixes, every selected folder becomes one
column and every distinct filename one row. A folder that lacks a file of
that name gets PLACEHOLDER in that slot so rows never shift.

Prefix matching is deliberately loose: selecting "a" matches "a", "a/x"
and also "ab". It lets a user compare whole subtrees.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from core.models import Photo
from logging_config import get_logger

logger = get_logger(__name__)

MIN_COMPARE_FOLDERS = 2
MAX_COMPARE_FOLDERS = 8


class _Placeholder:
    """Marks "no file with this name in this folder"."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "PLACEHOLDER"

    def __bool__(self):
        return False


PLACEHOLDER = _Placeholder()


@dataclass
class AlignmentRow:
    name: str
    slots: List[object]

    def photos(self) -> List[Photo]:
        return [slot for slot in self.slots if slot is not PLACEHOLDER]


@dataclass
class AlignmentResult:
    folders: List[str]
    rows: List[AlignmentRow] = field(default_factory=list)

    @property
    def column_count(self) -> int:
        return len(self.folders)

    def flatten(self) -> List[object]:
        """Row-major sequence: every slot of row i precedes row i+1."""
        return [slot for row in self.rows for slot in row.slots]


@dataclass
class FolderNode:
    name: str
    path: str
    count: int = 0
    children: Dict[str, "FolderNode"] = field(default_factory=dict)


def is_compare_mode(folders: Sequence[str]) -> bool:
    return MIN_COMPARE_FOLDERS <= len(folders) <= MAX_COMPARE_FOLDERS


def _in_folder(photo: Photo, folder: str) -> bool:
    return photo.folder.startswith(folder)


def filter_by_folders(photos: Sequence[Photo], folders: Sequence[str]) -> List[Photo]:
    """Photos whose folder starts with any selected folder. No selection keeps all."""
    if not folders:
        return list(photos)
    return [p for p in photos if any(_in_folder(p, f) for f in folders)]


def align_folders(photos: Sequence[Photo], folders: Sequence[str]) -> Optional[AlignmentResult]:
    """
    Align photos of the selected folders by filename.

    Returns:
        AlignmentResult, or None when the selection is outside 2..8 folders
    """
    if not is_compare_mode(folders):
        return None

    groups = []
    for folder in folders:
        group = sorted((p for p in photos if _in_folder(p, folder)), key=lambda p: p.name)
        by_name: Dict[str, Photo] = {}
        for photo in group:
            # first in sorted order wins when subfolders repeat a name
            by_name.setdefault(photo.name, photo)
        groups.append(by_name)

    names = sorted({name for group in groups for name in group})

    result = AlignmentResult(folders=list(folders))
    for name in names:
        slots = [group.get(name, PLACEHOLDER) for group in groups]
        result.rows.append(AlignmentRow(name=name, slots=slots))

    logger.debug(f"Aligned {len(folders)} folders into {len(result.rows)} rows")
    return result


def display_sequence(photos: Sequence[Photo],
                     folders: Sequence[str],
                     display_count: int,
                     columns: int) -> List[object]:
    """
    The paginated sequence the grid shows.

    In compare mode `display_count` counts rows (one slot per folder);
    otherwise it counts photos of the folder-filtered list.
    """
    filtered = filter_by_folders(photos, folders)
    aligned = align_folders(filtered, folders)
    if aligned is not None:
        return aligned.flatten()[:display_count * aligned.column_count]
    return filtered[:display_count]


def build_folder_tree(photos: Sequence[Photo]) -> Dict[str, FolderNode]:
    """
    Nested folder nodes in first-seen order.

    `count` includes photos in all subfolders.
    """
    tree: Dict[str, FolderNode] = {}
    for photo in photos:
        parts = photo.path.split("/")[:-1]
        current = tree
        current_path = ""
        for part in parts:
            current_path = f"{current_path}/{part}" if current_path else part
            node = current.get(part)
            if node is None:
                node = current[part] = FolderNode(name=part, path=current_path)
            node.count += 1
            current = node.children
    return tree


def flatten_folder_tree(tree: Dict[str, FolderNode]) -> List[FolderNode]:
    """Depth-first pre-order listing used for range selection."""
    result = []
    for node in tree.values():
        result.append(node)
        result.extend(flatten_folder_tree(node.children))
    return result


def select_range(all_paths: Sequence[str], anchor: Optional[str], target: str) -> List[str]:
    """Inclusive range between anchor and target in `all_paths` order."""
    if anchor not in all_paths or target not in all_paths:
        return [target]
    a = all_paths.index(anchor)
    b = all_paths.index(target)
    start, end = min(a, b), max(a, b)
    return list(all_paths[start:end + 1])
