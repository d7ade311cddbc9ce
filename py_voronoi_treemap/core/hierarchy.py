"""
Value hierarchy for treemap layouts.

Nodes wrap arbitrary data. Leaf values come from the data; every internal
node's value is the sum of its children's.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, Optional

from .geometry import Point


def default_value(data: Any) -> float:
    """Read ``value`` from a mapping, treating missing or NaN as 0."""
    if isinstance(data, Mapping):
        value = data.get("value")
    else:
        value = getattr(data, "value", None)
    if value is None:
        return 0.0
    value = float(value)
    return 0.0 if math.isnan(value) else value


@dataclass(eq=False)
class HierarchyNode:
    """One node of a value hierarchy."""
    data: Any
    children: List["HierarchyNode"] = field(default_factory=list)
    parent: Optional["HierarchyNode"] = field(default=None, repr=False)
    depth: int = 0
    height: int = 0
    value: float = 0.0
    polygon: Optional[List[Point]] = field(default=None, repr=False)

    @classmethod
    def from_dict(cls, data: Any, children_key: str = "children") -> "HierarchyNode":
        """Build a tree from nested mappings whose children sit under ``children_key``."""
        root = cls(data=data)
        stack = [root]
        order = []
        while stack:
            node = stack.pop()
            order.append(node)
            raw_children = node.data.get(children_key) if isinstance(node.data, Mapping) else None
            for child_data in raw_children or []:
                child = cls(data=child_data, parent=node, depth=node.depth + 1)
                node.children.append(child)
                stack.append(child)

        for node in reversed(order):
            if node.children:
                node.height = 1 + max(child.height for child in node.children)
        return root

    @property
    def name(self) -> Optional[str]:
        if isinstance(self.data, Mapping):
            return self.data.get("name")
        return getattr(self.data, "name", None)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def descendants(self) -> List["HierarchyNode"]:
        """This node and all below it, parents before children."""
        nodes = []
        stack = [self]
        while stack:
            node = stack.pop()
            nodes.append(node)
            stack.extend(reversed(node.children))
        return nodes

    def leaves(self) -> List["HierarchyNode"]:
        return [node for node in self.descendants() if node.is_leaf]

    def each(self, fn: Callable[["HierarchyNode"], None]) -> "HierarchyNode":
        for node in self.descendants():
            fn(node)
        return self

    def __iter__(self) -> Iterator["HierarchyNode"]:
        return iter(self.descendants())

    def sum(self, value: Callable[[Any], float] = default_value) -> "HierarchyNode":
        """Set leaf values from ``value(data)`` and internal values to child sums."""
        for node in reversed(self.descendants()):
            if node.children:
                node.value = sum(child.value for child in node.children)
            else:
                node.value = value(node.data)
        return self

    def sort(self, key: Optional[Callable[["HierarchyNode"], Any]] = None,
             reverse: bool = False) -> "HierarchyNode":
        """Sort every node's children; by descending value when no key is given."""
        if key is None:
            key = lambda node: -node.value
        for node in self.descendants():
            node.children.sort(key=key, reverse=reverse)
        return self
