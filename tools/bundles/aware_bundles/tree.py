"""Arena-backed folder tree used by the topology classifier."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Pattern

from .errors import ClassificationError
from .schemas import normalize_key

logger = logging.getLogger(__name__)

CODE_FILE_PATTERN = re.compile(r"\.jsx?$", re.IGNORECASE)


@dataclass(slots=True)
class TreeNode:
    """One folder in the arena. Links are integer ids, never object references."""

    id: int
    name: str
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)
    files: List[str] = field(default_factory=list)
    descriptor: Optional[str] = None
    location: Optional[Path] = None


class SourceTree:
    """Folders addressed by integer id, each keeping an optional parent id."""

    def __init__(self, base_path: Path | str | None = None) -> None:
        self.base_path = Path(base_path) if base_path is not None else None
        self._nodes: List[TreeNode] = []
        self._child_keys: Dict[int, Dict[str, int]] = {}

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_root(self, name: str = "") -> int:
        return self._append(TreeNode(id=len(self._nodes), name=name, location=self.base_path))

    def add_folder(self, parent_id: int, name: str) -> int:
        parent = self.node(parent_id)
        folded = name.lower()
        siblings = self._child_keys.setdefault(parent.id, {})
        if folded in siblings:
            raise ClassificationError(
                f"Folder '{name}' collides with an existing folder under {self.key(parent.id)}"
            )
        location = parent.location / name if parent.location is not None else None
        node_id = self._append(TreeNode(id=len(self._nodes), name=name, parent=parent.id, location=location))
        parent.children.append(node_id)
        siblings[folded] = node_id
        return node_id

    def add_file(self, node_id: int, name: str) -> None:
        self.node(node_id).files.append(name)

    def set_descriptor(self, node_id: int, name: str) -> None:
        self.node(node_id).descriptor = name

    def detach(self, node_id: int) -> None:
        """Make ``node_id`` the root of its own subtree."""

        node = self.node(node_id)
        if node.parent is None:
            return
        parent = self.node(node.parent)
        parent.children.remove(node_id)
        self._child_keys.get(parent.id, {}).pop(node.name.lower(), None)
        node.parent = None

    def _append(self, node: TreeNode) -> int:
        self._nodes.append(node)
        return node.id

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def node(self, node_id: int) -> TreeNode:
        try:
            return self._nodes[node_id]
        except IndexError:
            raise KeyError(f"Unknown tree node id: {node_id}") from None

    def __len__(self) -> int:
        return len(self._nodes)

    def parent(self, node_id: int) -> Optional[int]:
        return self.node(node_id).parent

    def root_of(self, node_id: int) -> int:
        current = node_id
        while self.node(current).parent is not None:
            current = self.node(current).parent  # type: ignore[assignment]
        return current

    def ancestors(self, node_id: int, root_id: Optional[int] = None) -> Iterator[int]:
        """Yield strict ancestors from the parent up to the root (or up to ``root_id``)."""

        if node_id == root_id:
            return
        current = self.node(node_id).parent
        while current is not None:
            yield current
            if current == root_id:
                return
            current = self.node(current).parent

    def segments(self, node_id: int) -> List[str]:
        names: List[str] = []
        current: Optional[int] = node_id
        while current is not None:
            node = self.node(current)
            if node.parent is not None:
                names.append(node.name)
            current = node.parent
        names.reverse()
        return names

    def key(self, node_id: int, root_id: Optional[int] = None) -> str:
        """Manifest key of ``node_id`` relative to ``root_id`` (default: its current root)."""

        segments = self.segments(node_id)
        if root_id is not None:
            segments = segments[len(self.segments(root_id)) :]
        return normalize_key("/".join(segments))

    def fs_path(self, node_id: int) -> Path:
        node = self.node(node_id)
        if node.location is not None:
            return node.location
        return Path(*self.segments(node_id))

    def child(self, node_id: int, name: str) -> Optional[int]:
        return self._child_keys.get(node_id, {}).get(name.lower())

    def find(self, root_id: int, path: str) -> Optional[int]:
        """Resolve a folder path (any case, any separator) below ``root_id``."""

        current = root_id
        for part in normalize_key(path).strip("/").split("/"):
            if not part:
                continue
            found = self.child(current, part)
            if found is None:
                return None
            current = found
        return current

    def walk(self, node_id: int) -> Iterator[int]:
        """Pre-order traversal of the subtree rooted at ``node_id``."""

        stack = [node_id]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self.node(current).children))

    def is_within(self, node_id: int, ancestor_id: int) -> bool:
        return node_id == ancestor_id or ancestor_id in self.ancestors(node_id)


def scan_tree(
    base_path: Path | str,
    *,
    descriptor_name: str = "package.bundle",
    file_pattern: Pattern[str] = CODE_FILE_PATTERN,
) -> SourceTree:
    """Build a :class:`SourceTree` from the folders below ``base_path``."""

    root_path = Path(base_path).resolve()
    if not root_path.is_dir():
        raise ClassificationError(f"Source folder not found: {root_path}")

    def _raise(exc: OSError) -> None:
        raise ClassificationError(f"Unable to enumerate {exc.filename}: {exc.strerror}") from exc

    tree = SourceTree(root_path)
    ids: Dict[Path, int] = {root_path: tree.add_root()}
    for root, dirnames, filenames in os.walk(root_path, onerror=_raise):
        path = Path(root)
        node_id = ids[path]
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        for dirname in dirnames:
            ids[path / dirname] = tree.add_folder(node_id, dirname)
        for filename in sorted(filenames):
            if filename.startswith("."):
                continue
            if filename == descriptor_name:
                tree.set_descriptor(node_id, filename)
            elif file_pattern.search(filename):
                tree.add_file(node_id, filename)

    logger.debug("Scanned %d folders below %s", len(tree), root_path)
    return tree


__all__ = ["CODE_FILE_PATTERN", "SourceTree", "TreeNode", "scan_tree"]
