"""In-memory hierarchical file system addressed by path.

The tree is made of **nodes**.  A folder owns an ordered list of child
nodes; a file is a leaf.  The root is a folder named ``/``.

Identity is positional: a node *is* its path.  Rename or move a node and
its old path simply stops resolving.  There are no inode numbers.

Path resolution walks from the root, matching each ``/``-separated
segment against the current folder's children by name (first match
wins).  If a segment is missing the walk stops and returns ``None`` —
callers treat that as "nothing to do", never as an error.  Empty
segments are ignored, so ``""``, ``"/"`` and ``"//"`` all name the root.

Copy-on-write:
    Every mutation deep-copies the whole tree, edits the copy, and then
    swaps the root reference.  Anyone still holding the previous root
    (a renderer halfway through drawing it, say) keeps a consistent,
    unmodified snapshot.  Trees here are tiny, so the copy is free.

Known contract of ``move``:
    The node is detached from its source *before* the target is looked
    up.  If the target does not resolve to a folder, the detached
    subtree is dropped and is gone for good.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

ROOT_NAME = "/"
DEFAULT_FOLDER_NAME = "new-folder"
DEFAULT_FILE_NAME = "new-file.txt"


class NodeType(StrEnum):
    """The kind of object a node represents."""

    FILE = "file"
    FOLDER = "folder"


@dataclass
class Node:
    """A file or folder in the tree.

    Two nodes compare equal when they have the same name, type and
    (recursively) the same children in the same order.
    """

    name: str
    node_type: NodeType
    children: list[Node] = field(default_factory=lambda: [])  # noqa: PIE807

    @classmethod
    def folder(cls, name: str, children: list[Node] | None = None) -> Node:
        """Create a folder node."""
        return cls(name=name, node_type=NodeType.FOLDER, children=list(children or []))

    @classmethod
    def file(cls, name: str) -> Node:
        """Create a file node."""
        return cls(name=name, node_type=NodeType.FILE)

    @property
    def is_folder(self) -> bool:
        """Return True for folders."""
        return self.node_type is NodeType.FOLDER

    def child(self, name: str) -> Node | None:
        """Return the first child called ``name``, or None."""
        for node in self.children:
            if node.name == name:
                return node
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize the subtree to nested dictionaries."""
        data: dict[str, Any] = {"name": self.name, "type": self.node_type.value}
        if self.is_folder:
            data["children"] = [c.to_dict() for c in self.children]
        return data


def split_path(path: str) -> list[str]:
    """Split a path into its non-empty segments.

    Examples::

        "/docs/a.txt" → ["docs", "a.txt"]
        "/"           → []
        ""            → []

    """
    return [segment for segment in path.split("/") if segment]


def _walk(root: Node, segments: list[str]) -> Node | None:
    """Follow ``segments`` from ``root``; None as soon as one is missing."""
    current = root
    for segment in segments:
        found = current.child(segment)
        if found is None:
            return None
        current = found
    return current


class FileSystem:
    """A path-addressed tree of folders and files.

    The file system starts with an empty root folder.  All operations
    take paths from the root and silently do nothing when the path does
    not resolve.
    """

    def __init__(self) -> None:
        """Create a file system with an empty root folder."""
        self._root = Node.folder(ROOT_NAME)

    def tree(self) -> Node:
        """Return a deep copy of the current root.

        Editing the copy never reaches the file system; only the
        mutating methods below can change it.
        """
        return copy.deepcopy(self._root)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the whole tree."""
        return self._root.to_dict()

    def resolve(self, path: str) -> Node | None:
        """Return a copy of the node at ``path``, or None if it does not resolve."""
        node = _walk(self._root, split_path(path))
        return copy.deepcopy(node) if node is not None else None

    def exists(self, path: str) -> bool:
        """Check whether a path resolves."""
        return _walk(self._root, split_path(path)) is not None

    def _mutate(self, edit: Callable[[Node], bool]) -> bool:
        """Apply ``edit`` to a copy of the tree and swap it in if it changed anything."""
        new_root = copy.deepcopy(self._root)
        changed = edit(new_root)
        if changed:
            self._root = new_root
        return changed

    def add_child(self, parent_path: str, item: Node) -> bool:
        """Append ``item`` to the folder at ``parent_path``.

        Args:
            parent_path: Path of the folder to add into.
            item: The file or folder (with any subtree) to append.

        Returns:
            True if the item was added, False if the parent did not
            resolve to a folder.

        """
        item = copy.deepcopy(item)

        def edit(root: Node) -> bool:
            parent = _walk(root, split_path(parent_path))
            if parent is None or not parent.is_folder:
                return False
            parent.children.append(item)
            return True

        return self._mutate(edit)

    def add_folder(self, parent_path: str, name: str = DEFAULT_FOLDER_NAME) -> bool:
        """Append an empty folder called ``name`` under ``parent_path``."""
        return self.add_child(parent_path, Node.folder(name))

    def add_file(self, parent_path: str, name: str = DEFAULT_FILE_NAME) -> bool:
        """Append an empty file called ``name`` under ``parent_path``."""
        return self.add_child(parent_path, Node.file(name))

    def rename(self, path: str, new_name: str) -> bool:
        """Rename the node at ``path`` in place (sibling order is kept).

        Returns:
            True if a node was renamed.

        """
        *parent_segments, name = split_path(path) or [""]

        def edit(root: Node) -> bool:
            parent = _walk(root, parent_segments)
            target = parent.child(name) if parent is not None else None
            if target is None:
                return False
            target.name = new_name
            return True

        return self._mutate(edit)

    def delete(self, path: str) -> bool:
        """Remove every child of the parent folder named like the last segment.

        Returns:
            True if anything was removed.

        """
        *parent_segments, name = split_path(path) or [""]

        def edit(root: Node) -> bool:
            parent = _walk(root, parent_segments)
            if parent is None:
                return False
            kept = [c for c in parent.children if c.name != name]
            if len(kept) == len(parent.children):
                return False
            parent.children = kept
            return True

        return self._mutate(edit)

    def move(self, source: str, target: str) -> bool:
        """Detach the node at ``source`` and append it to the folder at ``target``.

        If ``source`` does not resolve nothing happens.  If it does but
        ``target`` then does not resolve to a folder, the detached node
        is discarded.

        Returns:
            True if the tree changed (including the discard case).

        """
        *parent_segments, name = split_path(source) or [""]

        def edit(root: Node) -> bool:
            parent = _walk(root, parent_segments)
            if parent is None:
                return False
            for index, node in enumerate(parent.children):
                if node.name == name:
                    moving = parent.children.pop(index)
                    break
            else:
                return False
            destination = _walk(root, split_path(target))
            if destination is not None and destination.is_folder:
                destination.children.append(moving)
            return True

        return self._mutate(edit)
