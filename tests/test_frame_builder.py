import logging

from algoviz.frame_builder import (
    UNSUPPORTED_MESSAGE,
    FrameBuilder,
    clamp_index,
    resolve_frame,
)
from algoviz.response import response_from_dict
from algoviz.shapes import ShapeKind
from algoviz.strategies import SequenceStrategy, default_strategies
from algoviz.surface import RecordingSurface, TextCommand


def bar_labels(surface):
    labels = [c for c in surface.current_frame()
              if isinstance(c, TextCommand) and c.key and c.key.startswith("bar-label-")]
    return [c.content for c in labels]


def test_build_frame_is_pure(builder, surface, bubble_sort):
    builder.build_frame(bubble_sort, 1)
    first = surface.current_frame()
    builder.build_frame(bubble_sort, 1)
    assert surface.current_frame() == first


def test_index_is_clamped(builder, bubble_sort):
    assert builder.build_frame(bubble_sort, 99).index == 3
    assert builder.build_frame(bubble_sort, -5).index == 0
    assert clamp_index(bubble_sort, 2) == 2


def test_step_without_data_uses_sample_data(builder, surface, bubble_sort):
    frame = builder.build_frame(bubble_sort, 2)

    assert frame.snapshot.data == [64, 34, 25, 12, 22, 11, 90]
    assert bar_labels(surface) == ["64", "34", "25", "12", "22", "11", "90"]
    # Highlights and action still come from the step itself.
    assert frame.highlights == (1, 2)
    assert frame.action == "compare"


def test_empty_response_shows_sample_data(builder, surface, empty_response):
    frame = builder.build_frame(empty_response, 3)

    assert frame.index == 0
    assert frame.step is None
    assert frame.kind is ShapeKind.SEQUENCE
    assert frame.highlights == ()
    assert bar_labels(surface) == ["5", "3", "1"]


def test_graph_frames(builder, surface, dijkstra):
    frame = builder.build_frame(dijkstra, 0)
    assert frame.kind is ShapeKind.GRAPH
    assert surface.by_key("node-distance-1").content == "∞"
    assert surface.by_key("node-0").fill == "#F39C12"
    assert surface.by_key("edge-1-3") is not None

    builder.build_frame(dijkstra, 2)
    assert surface.by_key("node-distance-1").content == "4"
    assert surface.by_key("node-distance-3").content == "∞"


def test_unrenderable_snapshot_paints_message(builder, surface, caplog):
    response = response_from_dict({
        "title": "Odd",
        "steps": [{"title": "Mixed", "data": [{"a": 1}, "b"]}],
    })

    with caplog.at_level(logging.WARNING, logger="algoviz.frame_builder"):
        frame = builder.build_frame(response, 0)

    assert frame.kind is ShapeKind.TABLE
    assert [t.content for t in surface.texts()] == [UNSUPPORTED_MESSAGE]
    assert "No renderer accepts" in caplog.text


def test_missing_data_everywhere_paints_message(builder, surface):
    response = response_from_dict({"title": "Empty", "steps": [{"title": "Nothing here"}]})
    builder.build_frame(response, 0)
    assert surface.by_key("unsupported").content == UNSUPPORTED_MESSAGE


def test_strategy_failure_falls_back_to_message(settings):
    class Exploding(SequenceStrategy):
        def draw(self, data, highlights, action, surface):
            raise ValueError("boom")

    surface = RecordingSurface()
    strategies = default_strategies(settings)
    strategies[ShapeKind.SEQUENCE] = Exploding(settings)
    builder = FrameBuilder(surface, settings, strategies)

    response = response_from_dict({"title": "Sorted", "steps": [{"data": [1, 2, 3]}]})
    builder.build_frame(response, 0)

    assert [t.content for t in surface.texts()] == [UNSUPPORTED_MESSAGE]


def test_resolve_frame_does_not_touch_surface(bubble_sort):
    frame = resolve_frame(bubble_sort, 1)
    assert frame.step is bubble_sort.steps[1]
    assert frame.kind is ShapeKind.SEQUENCE


def test_every_frame_starts_with_clear(builder, surface, bubble_sort):
    for index in range(len(bubble_sort)):
        start = len(surface.commands)
        builder.build_frame(bubble_sort, index)
        assert type(surface.commands[start]).__name__ == "ClearCommand"


def test_number_too_large_for_float_paints_message(builder, surface):
    response = response_from_dict({"title": "Huge", "steps": [{"data": [1, 10 ** 400]}]})

    frame = builder.build_frame(response, 0)

    assert frame.kind is ShapeKind.SEQUENCE
    assert [t.content for t in surface.texts()] == [UNSUPPORTED_MESSAGE]
