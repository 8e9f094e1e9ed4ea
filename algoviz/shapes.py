"""
Snapshot shape classification.

A step's ``data`` is untyped. ``classify`` tags it with exactly one
``ShapeKind`` by running structural predicates in a fixed precedence order
and taking the first match. Only the first element of a list is inspected:
snapshots are assumed to be shape-homogeneous.
"""

import numbers
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class ShapeKind(Enum):
    SEQUENCE = "sequence"
    GRAPH = "graph"
    GRID = "grid"
    BOARD = "board"
    TREE = "tree"
    TRIE = "trie"
    BITVECTOR = "bitvector"
    TABLE = "table"


@dataclass(frozen=True)
class Snapshot:
    kind: ShapeKind
    data: Any


BOARD_MARKERS = frozenset({0, 1})
BIT_NUMERAL = re.compile(r"^(0b)?[01]+$")
BIT_WIDTH = 32


def is_number(value: Any) -> bool:
    """Real numbers only; bools are flags, not values."""
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def is_bit_numeral(value: Any, width: int = BIT_WIDTH) -> bool:
    if not isinstance(value, str):
        return False
    s = value.strip().lower()
    if not BIT_NUMERAL.match(s):
        return False
    return int(s, 2).bit_length() <= width


# =================================================================
# Object-like predicates (precedence: Graph > Tree > Trie > Table)
# =================================================================

def _is_graph(first: Mapping) -> bool:
    return "id" in first


def _is_tree(first: Mapping) -> bool:
    return "left" in first or "right" in first or isinstance(first.get("children"), list)


def _is_trie(first: Mapping) -> bool:
    return isinstance(first.get("children"), Mapping)


OBJECT_PREDICATES = (
    (ShapeKind.GRAPH, _is_graph),
    (ShapeKind.TREE, _is_tree),
    (ShapeKind.TRIE, _is_trie),
)


# =================================================================
# Nested-list predicates (precedence: Board > Grid)
# =================================================================

def _is_board(first_row: list) -> bool:
    return bool(first_row) and all(
        isinstance(cell, int) and not isinstance(cell, bool) and cell in BOARD_MARKERS
        for cell in first_row
    )


def classify(snapshot: Any) -> Snapshot:
    """Tag a snapshot with its shape. Total: never raises."""
    if not isinstance(snapshot, (list, tuple)):
        return Snapshot(ShapeKind.TABLE, snapshot)

    if not snapshot:
        return Snapshot(ShapeKind.SEQUENCE, snapshot)

    first = snapshot[0]

    if isinstance(first, Mapping):
        for kind, predicate in OBJECT_PREDICATES:
            if predicate(first):
                return Snapshot(kind, snapshot)
        return Snapshot(ShapeKind.TABLE, snapshot)

    if isinstance(first, (list, tuple)):
        if _is_board(list(first)):
            return Snapshot(ShapeKind.BOARD, snapshot)
        return Snapshot(ShapeKind.GRID, snapshot)

    # Number-like data (precedence: BitVector > Sequence).
    if is_bit_numeral(first):
        return Snapshot(ShapeKind.BITVECTOR, snapshot)
    if is_number(first):
        return Snapshot(ShapeKind.SEQUENCE, snapshot)

    return Snapshot(ShapeKind.TABLE, snapshot)
