"""Layout tree node types: binary splits and tab groups."""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import Union

from splitterm.errors import ExitCode, SplitTermError
from splitterm.terminal.session import TerminalSession


class Orientation(str, Enum):
    """Vertical stacks children top/bottom, horizontal places them left/right."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class SplitNode:
    def __init__(
        self,
        node_id: str,
        orientation: Orientation,
        first: Node,
        second: Node,
        *,
        ratio: float = 0.5,
    ) -> None:
        self.node_id = node_id
        self.orientation = orientation
        self.ratio = ratio
        self.parent: SplitNode | TabGroup | None = None
        self.children: list[Node] = [first, second]
        first.parent = self
        second.parent = self

    def __repr__(self) -> str:
        return f"SplitNode({self.node_id!r}, {self.orientation.value})"

    @property
    def first(self) -> Node:
        return self.children[0]

    @property
    def second(self) -> Node:
        return self.children[1]

    def index_of(self, child: Node) -> int:
        for index, candidate in enumerate(self.children):
            if candidate is child:
                return index
        raise SplitTermError(
            f"{child!r} is not a child of {self!r}",
            code=ExitCode.LAYOUT_ERROR,
        )


class TabGroup:
    def __init__(self, tab_id: str, root: Node, *, label: str = "") -> None:
        self.tab_id = tab_id
        self.label = label
        self.root: Node | None = root
        root.parent = self

    def __repr__(self) -> str:
        return f"TabGroup({self.tab_id!r}, label={self.label!r})"


Node = Union[TerminalSession, SplitNode]
Container = Union[SplitNode, TabGroup]


def slot_of(node: Node) -> tuple[Container, int | None]:
    """Return the container holding ``node`` and its child index (``None`` for a tab root)."""
    parent = node.parent
    if isinstance(parent, SplitNode):
        return parent, parent.index_of(node)
    if isinstance(parent, TabGroup) and parent.root is node:
        return parent, None
    raise SplitTermError(
        f"{node!r} is detached from the layout",
        code=ExitCode.LAYOUT_ERROR,
    )


def place_in_slot(parent: Container, index: int | None, node: Node) -> None:
    if isinstance(parent, SplitNode):
        if index is None:
            raise SplitTermError(f"Missing child index for {parent!r}", code=ExitCode.LAYOUT_ERROR)
        parent.children[index] = node
    else:
        parent.root = node
    node.parent = parent


def replace_in_parent(old: Node, new: Node) -> None:
    """Put ``new`` into the slot ``old`` occupies, located by identity."""
    parent, index = slot_of(old)
    place_in_slot(parent, index, new)
    old.parent = None


def iter_sessions(node: Node | None) -> Iterator[TerminalSession]:
    """Yield sessions child-1-first, i.e. left/top before right/bottom."""
    if node is None:
        return
    if isinstance(node, TerminalSession):
        yield node
        return
    for child in node.children:
        yield from iter_sessions(child)


def first_session(node: Node | None) -> TerminalSession | None:
    return next(iter_sessions(node), None)


def iter_splits(node: Node | None) -> Iterator[SplitNode]:
    if isinstance(node, SplitNode):
        yield node
        for child in node.children:
            yield from iter_splits(child)


def describe(node: Node | None) -> object:
    """Nested tuple snapshot of shape and session identities."""
    if node is None:
        return None
    if isinstance(node, TerminalSession):
        return node.session_id
    return (node.orientation.value, describe(node.first), describe(node.second))


def owning_tab(node: Node) -> TabGroup | None:
    parent = node.parent
    while isinstance(parent, SplitNode):
        parent = parent.parent
    return parent
