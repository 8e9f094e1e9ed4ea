import pytest

from algoviz.tree_layout import TreeNode, hierarchical_layout

BOX = (40.0, 20.0, 740.0, 340.0)


def node(label, *children):
    return TreeNode(key=label, label=label, children=list(children))


def test_single_node_is_centred():
    root = node("a")
    (x, y), = hierarchical_layout(root, BOX).values()

    assert x == pytest.approx(40 + 740 / 2)
    assert y == pytest.approx(20 + 340 / 2)


def test_parent_centred_over_children():
    left, right = node("l"), node("r")
    root = node("root", left, right)
    pos = hierarchical_layout(root, BOX)

    assert pos[id(root)][0] == pytest.approx((pos[id(left)][0] + pos[id(right)][0]) / 2)
    assert pos[id(left)][1] == pos[id(right)][1]
    assert pos[id(root)][1] < pos[id(left)][1]


def test_leaves_do_not_overlap():
    a, b, c = node("a"), node("b"), node("c")
    root = node("root", node("x", a, b), c)
    pos = hierarchical_layout(root, BOX)

    xs = [pos[id(n)][0] for n in (a, b, c)]
    assert xs == sorted(xs)
    assert len(set(xs)) == 3


def test_all_positions_inside_box():
    root = node("1", node("2", node("4"), node("5")), node("3", node("6")))
    x0, y0, width, height = BOX

    for x, y in hierarchical_layout(root, BOX).values():
        assert x0 <= x <= x0 + width
        assert y0 <= y <= y0 + height


def test_walk_is_pre_order():
    root = node("1", node("2", node("4")), node("3"))
    assert [n.label for n in root.walk()] == ["1", "2", "4", "3"]
