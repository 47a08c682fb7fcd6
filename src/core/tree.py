"""Hierarchical path addressing.

A tree is an ordered list of path segments, root first. The versioning
engine builds addresses incrementally (namespace tree, then record key,
then tag), so joining must match a flat join of the same segments.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.constants import PATH_SEPARATOR, UNKNOWN_SEGMENT


@dataclass(frozen=True)
class Tree:
    """Immutable hierarchical location of a node in the key space.

    Attributes:
        segments: Non-empty path segments, root first.
    """

    segments: tuple[str, ...]

    def make_path(self) -> str:
        """Render the tree as a single separator-joined address."""
        return join_path(*self.segments)

    def child(self, *segments: str) -> "Tree":
        """Return a new tree with segments appended below this one."""
        return Tree(segments=self.segments + tuple(segments))


def make_tree(*segments: str) -> Tree:
    """Build a tree from segments.

    Args:
        segments: Ordered path segments, root first.

    Returns:
        Tree over the segments, or the ``unknown`` sentinel when empty.
    """
    if not segments:
        return Tree(segments=(UNKNOWN_SEGMENT,))
    return Tree(segments=tuple(segments))


def join_path(*segments: str) -> str:
    """Join segments with the path separator.

    Separators inside segments are kept, but empty parts are dropped so
    ``join_path("a/", "/b")`` and ``join_path("a", "b")`` agree.

    Args:
        segments: Path segments, each possibly containing separators.

    Returns:
        Cleaned separator-joined path.
    """
    parts: list[str] = []
    for segment in segments:
        parts.extend(part for part in segment.split(PATH_SEPARATOR) if part)
    return PATH_SEPARATOR.join(parts)
