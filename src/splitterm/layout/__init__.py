"""Pane tree: splits, tabs and focus."""

from .focus import DetachResult, detach_leaf, reasonable_leaf
from .nodes import Orientation, SplitNode, TabGroup
from .tree import LayoutEvent, LayoutEventKind, LayoutTree, validate_tree

__all__ = [
    "detach_leaf",
    "DetachResult",
    "LayoutEvent",
    "LayoutEventKind",
    "LayoutTree",
    "Orientation",
    "reasonable_leaf",
    "SplitNode",
    "TabGroup",
    "validate_tree",
]
