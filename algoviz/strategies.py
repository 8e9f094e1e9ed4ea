"""
Render strategies, one per snapshot shape.

Every strategy clears the surface and repaints the whole frame from the
snapshot, its highlights and the step action. Nothing is diffed against the
previous frame; keyed transitions let the sink animate between frames.
"""

import json
import math
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import numpy as np

from algoviz.config import MARGIN, Settings
from algoviz.shapes import ShapeKind, is_bit_numeral, is_number
from algoviz.styles import highlight_tint
from algoviz.surface import Surface, Transition
from algoviz.tree_layout import Box, TreeLayout, TreeNode, hierarchical_layout


INFINITY_GLYPH = "∞"
QUEEN_GLYPH = "♛"

# Distances at or above INT_MAX are "unset" sentinels.
INFINITE_DISTANCE = 2 ** 31 - 1


def inner_box(surface: Surface) -> Box:
    """The drawable area inside the fixed margin."""
    return (
        MARGIN.left,
        MARGIN.top,
        surface.width - MARGIN.left - MARGIN.right,
        surface.height - MARGIN.top - MARGIN.bottom,
    )


def format_value(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isinf(value):
            return INFINITY_GLYPH if value > 0 else "-" + INFINITY_GLYPH
        if value.is_integer():
            return str(int(value))
        return f"{value:g}"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def format_distance(value: Any) -> str:
    if value is None:
        return INFINITY_GLYPH
    if isinstance(value, str) and value.strip().lower() in ("inf", "infinity", "+inf", INFINITY_GLYPH):
        return INFINITY_GLYPH
    if is_number(value) and value >= INFINITE_DISTANCE:
        return INFINITY_GLYPH
    return format_value(value)


def index_set(highlights: Iterable[Any]) -> Set[int]:
    """Positional highlights; anything that is not an integer index is ignored."""
    indices = set()
    for h in highlights:
        if isinstance(h, bool):
            continue
        if isinstance(h, int):
            indices.add(h)
        elif isinstance(h, float) and h.is_integer():
            indices.add(int(h))
    return indices


def key_set(highlights: Iterable[Any]) -> Set[str]:
    """Entity highlights (ids, labels, prefixes) compared as strings."""
    return {format_value(h) for h in highlights if not isinstance(h, (list, tuple, dict))}


def cell_set(highlights: Iterable[Any]) -> Set[Tuple[int, int]]:
    """(row, col) highlights for grid-like shapes."""
    cells = set()
    for h in highlights:
        if not isinstance(h, (list, tuple)) or len(h) != 2:
            continue
        row, col = index_set([h[0]]), index_set([h[1]])
        if row and col:
            cells.add((row.pop(), col.pop()))
    return cells


class RenderStrategy(ABC):
    kind: ShapeKind

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.palette = self.settings.palette

    def accepts(self, data: Any) -> bool:
        """Precondition checked before dispatch."""
        return isinstance(data, (list, tuple))

    def render(self, data: Any, highlights: Sequence[Any], action: Optional[str],
               surface: Surface) -> None:
        surface.clear()
        self.draw(data, tuple(highlights or ()), action, surface)

    @abstractmethod
    def draw(self, data: Any, highlights: Tuple[Any, ...], action: Optional[str],
             surface: Surface) -> None:
        ...

    def _transition(self, **kwargs) -> Optional[Transition]:
        if self.settings.fast_mode or self.settings.transition_time <= 0:
            return None
        return Transition(duration=self.settings.transition_time, **kwargs)


# =================================================================
# Sequence (bar chart)
# =================================================================

class SequenceStrategy(RenderStrategy):
    kind = ShapeKind.SEQUENCE
    band_padding = 0.1

    def accepts(self, data: Any) -> bool:
        return isinstance(data, (list, tuple)) and all(is_number(v) for v in data)

    def draw(self, data, highlights, action, surface):
        if not data:
            return

        values = np.nan_to_num(np.asarray(data, dtype=float), nan=0.0, posinf=np.inf, neginf=-np.inf)
        x0, y0, width, height = inner_box(surface)

        finite = values[np.isfinite(values)]
        top = max(float(finite.max()), 0.0) if finite.size else 1.0
        bottom = min(float(finite.min()), 0.0) if finite.size else 0.0
        span = (top - bottom) or 1.0
        clipped = np.clip(values, bottom, top)

        def to_y(v: float) -> float:
            return y0 + height * (top - v) / span

        band = width / len(values)
        bar_width = band * (1.0 - self.band_padding)
        marked = index_set(highlights)
        tint = highlight_tint(action, self.palette)
        bar_transition = self._transition()
        label_transition = None
        if bar_transition is not None:
            # Labels fade in once the bars have settled.
            label_transition = Transition(duration=bar_transition.duration / 2,
                                          delay=bar_transition.duration, fade=True)

        for i, v in enumerate(clipped):
            x = x0 + i * band + band * self.band_padding / 2
            bar_top = to_y(max(v, 0.0))
            bar_bottom = to_y(min(v, 0.0))
            surface.rect(
                x, bar_top, bar_width, bar_bottom - bar_top,
                fill=tint if i in marked else self.palette["primary"],
                stroke=self.palette["border"],
                opacity=0.8,
                key=f"bar-{i}",
                transition=bar_transition,
            )

            label_y = bar_top - 5 if v >= 0 else bar_bottom + 14
            surface.text(
                x + bar_width / 2, label_y, format_value(data[i]),
                fill=self.palette["text"], size=12,
                key=f"bar-label-{i}", transition=label_transition,
            )
            surface.text(
                x + bar_width / 2, y0 + height + 16, str(i),
                fill=self.palette["muted"], size=10, key=f"bar-index-{i}",
            )


# =================================================================
# Graph (circular layout)
# =================================================================

EDGE_FIELDS = ("neighbors", "edges", "adj", "adjacency")

# Fallback topology for four-node shortest-path demos: (from, to, weight).
DIJKSTRA_TOPOLOGY = ((0, 1, 4), (0, 2, 2), (1, 2, 1), (1, 3, 5), (2, 3, 8))

Edge = Tuple[int, int, Optional[str]]


class GraphStrategy(RenderStrategy):
    kind = ShapeKind.GRAPH
    node_radius = 24.0

    def accepts(self, data: Any) -> bool:
        return isinstance(data, (list, tuple)) and all(
            isinstance(n, Mapping) and "id" in n for n in data
        )

    def edges_for(self, nodes: Sequence[Mapping]) -> List[Edge]:
        """Edges between node positions, explicit when the records carry them."""
        index_of = {format_value(n.get("id")): i for i, n in enumerate(nodes)}
        explicit = False
        seen: Set[Tuple[int, int]] = set()
        edges: List[Edge] = []

        for i, node in enumerate(nodes):
            for field_name in EDGE_FIELDS:
                refs = node.get(field_name)
                if not isinstance(refs, (list, tuple)):
                    continue
                explicit = True
                for ref in refs:
                    weight = None
                    if isinstance(ref, Mapping):
                        target = ref.get("to", ref.get("target", ref.get("id")))
                        weight = ref.get("weight")
                    else:
                        target = ref
                    j = index_of.get(format_value(target))
                    if j is None or j == i:
                        continue
                    pair = (min(i, j), max(i, j))
                    if pair in seen:
                        continue
                    seen.add(pair)
                    edges.append((i, j, None if weight is None else format_value(weight)))

        if explicit or not self.settings.infer_graph_edges:
            return edges

        if len(nodes) == 4:
            return [(a, b, str(w)) for a, b, w in DIJKSTRA_TOPOLOGY]
        return [(i, i + 1, None) for i in range(len(nodes) - 1)]

    def positions(self, count: int, surface: Surface) -> np.ndarray:
        x0, y0, width, height = inner_box(surface)
        cx, cy = x0 + width / 2, y0 + height / 2
        radius = min(self.settings.graph_radius, height / 2 - self.node_radius - 16)
        angles = 2 * np.pi * np.arange(count) / max(count, 1)
        return np.column_stack([cx + radius * np.cos(angles), cy + radius * np.sin(angles)])

    def draw(self, data, highlights, action, surface):
        if not data:
            return

        pos = self.positions(len(data), surface)
        marked = key_set(highlights)
        tint = highlight_tint(action, self.palette)

        # Edges below nodes.
        for a, b, label in self.edges_for(data):
            (xa, ya), (xb, yb) = pos[a], pos[b]
            surface.line(xa, ya, xb, yb, stroke=self.palette["border"], stroke_width=2,
                         key=f"edge-{a}-{b}")
            if label:
                surface.text((xa + xb) / 2, (ya + yb) / 2 - 6, label,
                             fill=self.palette["muted"], size=11, key=f"edge-label-{a}-{b}")

        for i, node in enumerate(data):
            node_id = format_value(node.get("id"))
            if node_id in marked:
                fill = tint
            elif node.get("visited"):
                fill = self.palette["visited"]
            else:
                fill = self.palette["primary"]

            x, y = pos[i]
            surface.circle(x, y, self.node_radius, fill=fill, stroke=self.palette["border"],
                           key=f"node-{node_id}")
            surface.text(x, y + 4, node_id, fill=self.palette["text"], size=14, bold=True,
                         key=f"node-label-{node_id}")
            if "distance" in node:
                surface.text(x, y + self.node_radius + 14, format_distance(node["distance"]),
                             fill=self.palette["text"], size=12, key=f"node-distance-{node_id}")


# =================================================================
# Grid, Board and Table (cell layouts)
# =================================================================

def _rows(data: Sequence) -> List[list]:
    return [list(row) for row in data]


def _cell_geometry(rows: int, cols: int, surface: Surface, max_cell: float) -> Tuple[float, float, float]:
    """Square cell size plus the top-left corner that centres the grid."""
    x0, y0, width, height = inner_box(surface)
    cell = min(width / max(cols, 1), height / max(rows, 1), max_cell)
    left = x0 + (width - cell * cols) / 2
    top = y0 + (height - cell * rows) / 2
    return cell, left, top


class GridStrategy(RenderStrategy):
    kind = ShapeKind.GRID
    max_cell = 60.0

    def accepts(self, data: Any) -> bool:
        return isinstance(data, (list, tuple)) and all(isinstance(r, (list, tuple)) for r in data)

    def draw(self, data, highlights, action, surface):
        rows = _rows(data)
        cols = max((len(r) for r in rows), default=0)
        if not cols:
            return

        cell, left, top = _cell_geometry(len(rows), cols, surface, self.max_cell)
        marked = cell_set(highlights)
        tint = highlight_tint(action, self.palette)
        font = max(8.0, min(16.0, cell * 0.4))

        for r, row in enumerate(rows):
            for c, value in enumerate(row):
                x, y = left + c * cell, top + r * cell
                surface.rect(x, y, cell, cell,
                             fill=tint if (r, c) in marked else self.palette["row_even"],
                             stroke=self.palette["border"], key=f"cell-{r}-{c}")
                surface.text(x + cell / 2, y + cell / 2 + font / 3, format_value(value),
                             fill=self.palette["text"], size=font, key=f"cell-label-{r}-{c}")


class BoardStrategy(GridStrategy):
    kind = ShapeKind.BOARD
    max_cell = 80.0

    def draw(self, data, highlights, action, surface):
        rows = _rows(data)
        cols = max((len(r) for r in rows), default=0)
        if not cols:
            return

        cell, left, top = _cell_geometry(len(rows), cols, surface, self.max_cell)
        marked = cell_set(highlights)
        tint = highlight_tint(action, self.palette)

        for r, row in enumerate(rows):
            for c, value in enumerate(row):
                x, y = left + c * cell, top + r * cell
                if (r, c) in marked:
                    fill = tint
                elif (r + c) % 2 == 0:
                    fill = self.palette["board_light"]
                else:
                    fill = self.palette["board_dark"]
                surface.rect(x, y, cell, cell, fill=fill, stroke=self.palette["border"],
                             key=f"square-{r}-{c}")

                if not value:
                    continue
                glyph = QUEEN_GLYPH if value == 1 else format_value(value)
                surface.text(x + cell / 2, y + cell * 0.68, glyph,
                             fill=self.palette["background"], size=cell * 0.6, bold=True,
                             key=f"piece-{r}-{c}")


class TableStrategy(RenderStrategy):
    kind = ShapeKind.TABLE
    max_row_height = 28.0

    def accepts(self, data: Any) -> bool:
        if isinstance(data, Mapping):
            return True
        if not isinstance(data, (list, tuple)) or not data:
            return False
        if all(isinstance(r, Mapping) for r in data):
            return True
        return all(not isinstance(r, (Mapping, list, tuple)) for r in data)

    @staticmethod
    def records(data: Any) -> List[Mapping]:
        if isinstance(data, Mapping):
            return [data]
        if all(isinstance(r, Mapping) for r in data):
            return list(data)
        return [{"value": v} for v in data]

    @staticmethod
    def columns(records: Sequence[Mapping]) -> List[str]:
        """Union of record keys in first-seen order."""
        columns: Dict[str, None] = {}
        for record in records:
            for key in record:
                columns.setdefault(str(key), None)
        return list(columns)

    def draw(self, data, highlights, action, surface):
        records = self.records(data)
        columns = self.columns(records)
        if not columns:
            return

        x0, y0, width, height = inner_box(surface)
        row_height = min(height / (len(records) + 1), self.max_row_height)
        col_width = width / len(columns)
        font = max(8.0, min(13.0, row_height * 0.5))
        marked = index_set(highlights)
        tint = highlight_tint(action, self.palette)

        # Header row.
        for c, column in enumerate(columns):
            x = x0 + c * col_width
            surface.rect(x, y0, col_width, row_height, fill=self.palette["header"],
                         stroke=self.palette["border"], key=f"header-{c}")
            surface.text(x + col_width / 2, y0 + row_height / 2 + font / 3, column,
                         fill=self.palette["text"], size=font, bold=True, key=f"header-label-{c}")

        for r, record in enumerate(records):
            y = y0 + (r + 1) * row_height
            if r in marked:
                background = tint
            else:
                background = self.palette["row_even"] if r % 2 == 0 else self.palette["row_odd"]
            surface.rect(x0, y, width, row_height, fill=background, stroke=self.palette["border"],
                         key=f"row-{r}")

            values = {str(k): v for k, v in record.items()}
            for c, column in enumerate(columns):
                x = x0 + c * col_width
                value = values.get(column)
                if isinstance(value, bool):
                    surface.rect(x + 2, y + 2, col_width - 4, row_height - 4,
                                 fill=self.palette["true" if value else "false"],
                                 key=f"flag-{r}-{c}")
                surface.text(x + col_width / 2, y + row_height / 2 + font / 3,
                             format_value(value) if column in values else "",
                             fill=self.palette["text"], size=font, key=f"value-{r}-{c}")


# =================================================================
# Tree and Trie (hierarchical layout)
# =================================================================

LABEL_FIELDS = ("value", "val", "label", "key", "data", "char", "name")
TERMINAL_FIELDS = ("isEnd", "is_end", "isEndOfWord", "is_word", "isWord", "end", "terminal")


def _resolve_child(ref: Any, records: Sequence) -> Optional[Mapping]:
    if isinstance(ref, Mapping):
        return ref
    if isinstance(ref, int) and not isinstance(ref, bool) and 0 <= ref < len(records):
        candidate = records[ref]
        if isinstance(candidate, Mapping):
            return candidate
    return None


def _record_label(record: Mapping) -> str:
    for name in LABEL_FIELDS:
        if name in record and not isinstance(record[name], (Mapping, list, tuple)):
            return format_value(record[name])
    return ""


def normalize_tree(records: Sequence, keyed: bool = False) -> Optional[TreeNode]:
    """Map left/right, children lists and keyed children into TreeNode.

    Child references may be nested records or positional indices into
    ``records``. A record reached twice (shared or cyclic reference) is only
    expanded the first time. Tree nodes are keyed by label, trie nodes by
    the prefix spelled along their path.
    """
    if not records or not isinstance(records[0], Mapping):
        return None

    expanded: Set[int] = set()

    def build(record: Mapping, prefix: str, edge_label: Optional[str]) -> TreeNode:
        expanded.add(id(record))
        label = _record_label(record)
        node = TreeNode(
            key=prefix if keyed else label,
            label=label,
            edge_label=edge_label,
            terminal=any(bool(record.get(name)) for name in TERMINAL_FIELDS),
        )

        children = record.get("children")
        if keyed and isinstance(children, Mapping):
            refs = [(str(k), v) for k, v in children.items()]
        elif isinstance(children, (list, tuple)):
            refs = [(None, v) for v in children]
        else:
            refs = [(None, record.get(side)) for side in ("left", "right")]

        for edge, ref in refs:
            child = _resolve_child(ref, records)
            if child is None or id(child) in expanded:
                continue
            node.children.append(build(child, prefix + (edge or ""), edge))
        return node

    return build(records[0], "", None)


class TreeStrategy(RenderStrategy):
    kind = ShapeKind.TREE
    keyed_children = False

    def __init__(self, settings: Optional[Settings] = None, layout: TreeLayout = hierarchical_layout):
        super().__init__(settings)
        self.layout = layout

    def accepts(self, data: Any) -> bool:
        return isinstance(data, (list, tuple)) and bool(data) and isinstance(data[0], Mapping)

    def draw(self, data, highlights, action, surface):
        root = normalize_tree(data, keyed=self.keyed_children)
        if root is None:
            return

        box = inner_box(surface)
        positions = self.layout(root, box)
        nodes = list(root.walk())
        leaves = sum(1 for n in nodes if not n.children)
        radius = max(8.0, min(18.0, box[2] / (2.5 * max(leaves, 1))))
        marked = key_set(highlights)
        tint = highlight_tint(action, self.palette)

        for node in nodes:
            px, py = positions[id(node)]
            for child in node.children:
                cx, cy = positions[id(child)]
                surface.line(px, py, cx, cy, stroke=self.palette["border"], stroke_width=2)
                if child.edge_label is not None:
                    surface.text((px + cx) / 2 - 8, (py + cy) / 2, child.edge_label,
                                 fill=self.palette["active"], size=13, bold=True)

        for order, node in enumerate(nodes):
            x, y = positions[id(node)]
            if node.key in marked:
                fill = tint
            elif node.terminal:
                fill = self.palette["complete"]
            else:
                fill = self.palette["primary"]
            surface.circle(x, y, radius, fill=fill, stroke=self.palette["border"],
                           key=f"tree-node-{order}")
            if node.label:
                surface.text(x, y + 4, node.label, fill=self.palette["text"],
                             size=max(8.0, radius * 0.7), key=f"tree-label-{order}")


class TrieStrategy(TreeStrategy):
    kind = ShapeKind.TRIE
    keyed_children = True


# =================================================================
# Bit vector
# =================================================================

class BitVectorStrategy(RenderStrategy):
    kind = ShapeKind.BITVECTOR
    label_width = 70.0

    def accepts(self, data: Any) -> bool:
        return isinstance(data, (list, tuple)) and all(
            is_bit_numeral(v, self.settings.bit_width)
            or (isinstance(v, int) and not isinstance(v, bool))
            for v in data
        )

    @staticmethod
    def to_int(value: Any) -> int:
        if isinstance(value, str):
            return int(value.strip().lower(), 2)
        return int(value)

    def draw(self, data, highlights, action, surface):
        if not data:
            return

        width_bits = self.settings.bit_width
        mask = (1 << width_bits) - 1
        x0, y0, width, height = inner_box(surface)
        cell_w = (width - self.label_width) / width_bits
        row_h = min(height / len(data), cell_w * 1.4, 28.0)
        marked = index_set(highlights)
        show_digits = cell_w >= 12

        for r, raw in enumerate(data):
            value = self.to_int(raw)
            y = y0 + r * row_h
            bits = np.binary_repr(value & mask, width=width_bits)

            if r in marked:
                surface.rect(x0 + self.label_width - 2, y - 2, width - self.label_width + 4,
                             row_h, fill=self.palette["accent"], key=f"bits-row-{r}")
            surface.text(x0 + self.label_width - 8, y + row_h / 2 + 4, str(value),
                         fill=self.palette["accent"] if r in marked else self.palette["text"],
                         size=12, anchor="end", bold=r in marked, key=f"bits-value-{r}")

            for b, bit in enumerate(bits):
                x = x0 + self.label_width + b * cell_w
                on = bit == "1"
                surface.rect(x, y, cell_w - 1, row_h - 4,
                             fill=self.palette["active"] if on else self.palette["bit_off"],
                             stroke=self.palette["border"], key=f"bit-{r}-{b}")
                if show_digits:
                    surface.text(x + cell_w / 2, y + row_h / 2 + 2, bit,
                                 fill=self.palette["text"], size=10, key=f"bit-label-{r}-{b}")


def default_strategies(settings: Optional[Settings] = None,
                       tree_layout: TreeLayout = hierarchical_layout) -> Dict[ShapeKind, RenderStrategy]:
    settings = settings or Settings()
    return {
        ShapeKind.SEQUENCE: SequenceStrategy(settings),
        ShapeKind.GRAPH: GraphStrategy(settings),
        ShapeKind.GRID: GridStrategy(settings),
        ShapeKind.BOARD: BoardStrategy(settings),
        ShapeKind.TREE: TreeStrategy(settings, tree_layout),
        ShapeKind.TRIE: TrieStrategy(settings, tree_layout),
        ShapeKind.BITVECTOR: BitVectorStrategy(settings),
        ShapeKind.TABLE: TableStrategy(settings),
    }
