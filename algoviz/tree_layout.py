from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np


@dataclass
class TreeNode:
    """Canonical tree node that both binary trees and tries normalize into."""

    key: str
    label: str
    children: List["TreeNode"] = field(default_factory=list)
    edge_label: Optional[str] = None
    terminal: bool = False

    def walk(self):
        """Pre-order traversal."""
        yield self
        for child in self.children:
            yield from child.walk()


Box = Tuple[float, float, float, float]  # x, y, width, height
TreeLayout = Callable[[TreeNode, Box], Dict[int, np.ndarray]]


def hierarchical_layout(root: TreeNode, box: Box) -> Dict[int, np.ndarray]:
    """Assign an (x, y) to every node of the tree, keyed by ``id(node)``.

    Leaves take consecutive horizontal slots in pre-order, each parent is
    centred over its children, and depth maps to evenly spaced rows.
    """
    slots: Dict[int, float] = {}
    depths: Dict[int, int] = {}
    next_leaf = [0]

    def place(node: TreeNode, depth: int) -> float:
        depths[id(node)] = depth
        if not node.children:
            slots[id(node)] = float(next_leaf[0])
            next_leaf[0] += 1
        else:
            child_slots = [place(child, depth + 1) for child in node.children]
            slots[id(node)] = float(np.mean([child_slots[0], child_slots[-1]]))
        return slots[id(node)]

    place(root, 0)

    x0, y0, width, height = box
    leaf_count = max(1, next_leaf[0])
    max_depth = max(depths.values())

    # Slot centres spread over the box width.
    x_step = width / leaf_count
    y_step = height / (max_depth + 1)

    positions: Dict[int, np.ndarray] = {}
    for node_id, x_slot in slots.items():
        positions[node_id] = np.array([
            x0 + (x_slot + 0.5) * x_step,
            y0 + (depths[node_id] + 0.5) * y_step,
        ])
    return positions
