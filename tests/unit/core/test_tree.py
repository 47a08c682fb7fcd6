"""Unit tests for hierarchical path addressing."""

from __future__ import annotations

from core.tree import Tree, join_path, make_tree


def test_empty_tree_is_unknown_sentinel() -> None:
    """Building a tree without segments yields the sentinel."""
    assert make_tree().make_path() == "unknown"


def test_single_segment() -> None:
    assert make_tree("a").make_path() == "a"


def test_even_segments() -> None:
    assert make_tree("a", "b").make_path() == "a/b"


def test_odd_segments() -> None:
    assert make_tree("a", "b", "c").make_path() == "a/b/c"


def test_child_matches_flat_join() -> None:
    """Appending a key to a tree equals joining all segments at once."""
    tree = make_tree("a", "b", "c")

    assert tree.child("k").make_path() == join_path("a", "b", "c", "k")


def test_child_does_not_mutate_parent() -> None:
    tree = make_tree("archive")

    tree.child("key")

    assert tree == Tree(segments=("archive",))


def test_join_path_collapses_separators() -> None:
    """Separators inside segments are kept but empty parts dropped."""
    assert join_path("a/", "/b", "c//d") == "a/b/c/d"
