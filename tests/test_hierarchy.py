"""Tests for value hierarchies."""

import math

from py_voronoi_treemap.core.hierarchy import HierarchyNode, default_value

SAMPLE = {
    "name": "root",
    "children": [
        {"name": "a", "value": 1, "children": [{"name": "a1", "value": 1}, {"name": "a2", "value": 3}]},
        {"name": "b", "value": 4},
    ],
}


class TestFromDict:
    """Test building trees from nested mappings."""

    def test_structure(self):
        """Test depths, heights and parents."""
        root = HierarchyNode.from_dict(SAMPLE)
        assert root.name == "root"
        assert root.depth == 0
        assert root.height == 2
        a, b = root.children
        assert (a.name, a.depth, a.height) == ("a", 1, 1)
        assert (b.name, b.depth, b.height) == ("b", 1, 0)
        assert a.parent is root
        assert [c.name for c in a.children] == ["a1", "a2"]

    def test_custom_children_key(self):
        """Test reading children from another key."""
        root = HierarchyNode.from_dict({"items": [{"value": 1}, {"value": 2}]}, children_key="items")
        assert len(root.children) == 2

    def test_leaf_root(self):
        """Test a hierarchy without children."""
        root = HierarchyNode.from_dict({"value": 3})
        assert root.is_leaf
        assert root.height == 0


class TestTraversal:
    """Test descendants, leaves and each."""

    def test_descendants_preorder(self):
        """Test that parents come before their children."""
        names = [n.name for n in HierarchyNode.from_dict(SAMPLE).descendants()]
        assert names == ["root", "a", "a1", "a2", "b"]

    def test_leaves(self):
        """Test leaf collection."""
        assert [n.name for n in HierarchyNode.from_dict(SAMPLE).leaves()] == ["a1", "a2", "b"]

    def test_each_and_iter(self):
        """Test visiting every node."""
        root = HierarchyNode.from_dict(SAMPLE)
        seen = []
        root.each(lambda node: seen.append(node.name))
        assert seen == [n.name for n in root]


class TestSum:
    """Test value aggregation."""

    def test_internal_values_are_child_sums(self):
        """Test that internal nodes ignore their own value."""
        root = HierarchyNode.from_dict(SAMPLE).sum()
        a, b = root.children
        assert a.value == 4
        assert b.value == 4
        assert root.value == 8

    def test_custom_value(self):
        """Test a custom leaf value function."""
        root = HierarchyNode.from_dict(SAMPLE).sum(lambda d: 1)
        assert root.value == 3

    def test_default_value(self):
        """Test missing and NaN values count as zero."""
        assert default_value({}) == 0.0
        assert default_value({"value": math.nan}) == 0.0
        assert default_value({"value": "2.5"}) == 2.5


class TestSort:
    """Test child ordering."""

    def test_default_descending_value(self):
        """Test that children are sorted by descending value."""
        root = HierarchyNode.from_dict(SAMPLE).sum().sort()
        assert [c.name for c in root.children[0].children] == ["a2", "a1"]

    def test_custom_key(self):
        """Test sorting by name."""
        root = HierarchyNode.from_dict(SAMPLE).sort(key=lambda n: n.name, reverse=True)
        assert [c.name for c in root.children] == ["b", "a"]
