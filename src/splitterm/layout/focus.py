"""Focus repair after a leaf leaves the layout.

Removing a session detaches it from its container. A split left with a single
child is collapsed by moving that child into the split's own slot, repeating
upward while splits keep ending up with one child. The subtree that ends up
in the affected slot supplies the next focus target: its first session in
child-1-then-child-2 order. When the session was the tab root the tab is
reported as emptied and the caller removes it.
"""

from __future__ import annotations

import logging as py_logging
from dataclasses import dataclass

from splitterm.errors import ExitCode, SplitTermError
from splitterm.layout.nodes import (
    Node,
    SplitNode,
    TabGroup,
    first_session,
    owning_tab,
    replace_in_parent,
)
from splitterm.terminal.session import TerminalSession

logger = py_logging.getLogger(__name__)


@dataclass(frozen=True)
class DetachResult:
    tab: TabGroup
    target: TerminalSession | None
    tab_emptied: bool
    collapsed: tuple[str, ...] = ()


def reasonable_leaf(tab: TabGroup) -> TerminalSession | None:
    return first_session(tab.root)


def detach_leaf(session: TerminalSession) -> DetachResult:
    tab = owning_tab(session)
    parent = session.parent
    if tab is None or parent is None:
        raise SplitTermError(
            f"{session!r} is not part of a layout",
            code=ExitCode.LAYOUT_ERROR,
        )

    if isinstance(parent, TabGroup):
        parent.root = None
        session.parent = None
        logger.debug("focus-detach session=%s tab=%s emptied=true", session.session_id, tab.tab_id)
        return DetachResult(tab=tab, target=None, tab_emptied=True)

    del parent.children[parent.index_of(session)]
    session.parent = None

    collapsed: list[str] = []
    node: SplitNode | TabGroup | None = parent
    affected: Node | None = None
    while isinstance(node, SplitNode) and len(node.children) == 1:
        remaining = node.children[0]
        grandparent = node.parent
        replace_in_parent(node, remaining)
        node.children.clear()
        collapsed.append(node.node_id)
        affected = remaining
        node = grandparent

    target = first_session(affected)
    logger.debug(
        "focus-detach session=%s tab=%s collapsed=%s target=%s",
        session.session_id,
        tab.tab_id,
        ",".join(collapsed) or "-",
        target.session_id if target else "-",
    )
    return DetachResult(tab=tab, target=target, tab_emptied=False, collapsed=tuple(collapsed))
