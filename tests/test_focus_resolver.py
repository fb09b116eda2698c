from __future__ import annotations

import pytest

from splitterm.errors import ExitCode, SplitTermError
from splitterm.layout import Orientation, SplitNode, TabGroup, detach_leaf, reasonable_leaf
from splitterm.layout.nodes import describe, iter_splits, replace_in_parent, slot_of
from splitterm.terminal import TerminalSession


def _leaves(backend, *names: str) -> list[TerminalSession]:
    return [TerminalSession(name, backend) for name in names]


def test_detach_tab_root_empties_tab(backend) -> None:
    (a,) = _leaves(backend, "a")
    tab = TabGroup("tab1", a)

    result = detach_leaf(a)

    assert result.tab is tab
    assert result.tab_emptied is True
    assert result.target is None
    assert tab.root is None
    assert a.parent is None


def test_detach_collapses_parent_into_grandparent_slot(backend) -> None:
    a, b, c = _leaves(backend, "a", "b", "c")
    inner = SplitNode("s2", Orientation.VERTICAL, b, c)
    outer = SplitNode("s1", Orientation.HORIZONTAL, a, inner)
    tab = TabGroup("tab1", outer)

    result = detach_leaf(b)

    assert result.collapsed == ("s2",)
    assert result.target is c
    assert describe(tab.root) == ("horizontal", "a", "c")
    assert outer.second is c
    assert c.parent is outer
    assert inner.parent is None
    assert inner.children == []
    assert all(len(split.children) == 2 for split in iter_splits(tab.root))


def test_detach_from_root_split_promotes_sibling_to_tab_root(backend) -> None:
    a, b, c = _leaves(backend, "a", "b", "c")
    inner = SplitNode("s2", Orientation.VERTICAL, b, c)
    tab = TabGroup("tab1", SplitNode("s1", Orientation.HORIZONTAL, a, inner))

    result = detach_leaf(a)

    assert tab.root is inner
    assert inner.parent is tab
    assert result.target is b


def test_detach_requires_layout_membership(backend) -> None:
    (a,) = _leaves(backend, "a")

    with pytest.raises(SplitTermError) as exc_info:
        detach_leaf(a)
    assert exc_info.value.code == ExitCode.LAYOUT_ERROR


def test_reasonable_leaf_prefers_first_child(backend) -> None:
    a, b, c = _leaves(backend, "a", "b", "c")
    tab = TabGroup("tab1", SplitNode("s1", Orientation.HORIZONTAL, SplitNode("s2", Orientation.VERTICAL, b, c), a))

    assert reasonable_leaf(tab) is b


def test_slot_lookup_uses_identity(backend) -> None:
    a, b = _leaves(backend, "a", "b")
    split = SplitNode("s1", Orientation.HORIZONTAL, a, b)
    TabGroup("tab1", split)

    assert slot_of(b) == (split, 1)

    (stranger,) = _leaves(backend, "a")
    with pytest.raises(SplitTermError):
        split.index_of(stranger)


def test_replace_in_parent_swaps_slot(backend) -> None:
    a, b, c = _leaves(backend, "a", "b", "c")
    split = SplitNode("s1", Orientation.HORIZONTAL, a, b)
    TabGroup("tab1", split)

    replace_in_parent(a, c)

    assert split.first is c
    assert c.parent is split
    assert a.parent is None
