import pytest

from algoviz.config import Settings
from algoviz.frame_builder import FrameBuilder
from algoviz.playback import PlaybackController, SteppedTimer
from algoviz.response import response_from_dict
from algoviz.surface import RecordingSurface


BUBBLE_SORT = {
    "title": "Bubble Sort",
    "explanation": "Repeatedly swaps adjacent out-of-order elements.",
    "complexity": "O(n^2) time, O(1) space",
    "steps": [
        {
            "step": 1,
            "title": "Compare",
            "description": "Compare 64 and 34",
            "data": [64, 34, 25, 12, 22, 11, 90],
            "highlights": [0, 1],
            "action": "compare",
        },
        {
            "step": 2,
            "title": "Swap",
            "description": "64 > 34, swap them",
            "data": [34, 64, 25, 12, 22, 11, 90],
            "highlights": [0, 1],
            "action": "swap",
        },
        {
            "step": 3,
            "title": "Compare",
            "description": "Compare 64 and 25",
            "highlights": [1, 2],
            "action": "compare",
        },
        {
            "step": 4,
            "title": "Swap",
            "description": "64 > 25, swap them",
            "data": [34, 25, 64, 12, 22, 11, 90],
            "highlights": [1, 2],
            "action": "swap",
        },
    ],
    "sampleData": [64, 34, 25, 12, 22, 11, 90],
}

DIJKSTRA = {
    "title": "Dijkstra's Shortest Path Algorithm",
    "explanation": "Finds shortest paths from a source in a weighted graph.",
    "complexity": "O((V + E) log V) time, O(V) space",
    "steps": [
        {
            "step": 1,
            "title": "Initialize",
            "description": "Set distance to start node as 0, all others as infinity",
            "data": [
                {"id": 0, "distance": 0, "visited": False},
                {"id": 1, "distance": float("inf"), "visited": False},
                {"id": 2, "distance": float("inf"), "visited": False},
                {"id": 3, "distance": float("inf"), "visited": False},
            ],
            "highlights": [0],
            "action": "initialize",
        },
        {
            "step": 2,
            "title": "Select minimum",
            "description": "Select unvisited node with minimum distance (node 0)",
            "data": [
                {"id": 0, "distance": 0, "visited": True},
                {"id": 1, "distance": float("inf"), "visited": False},
                {"id": 2, "distance": float("inf"), "visited": False},
                {"id": 3, "distance": float("inf"), "visited": False},
            ],
            "highlights": [0],
            "action": "select",
        },
        {
            "step": 3,
            "title": "Update neighbors",
            "description": "Update distances to neighbors of node 0",
            "data": [
                {"id": 0, "distance": 0, "visited": True},
                {"id": 1, "distance": 4, "visited": False},
                {"id": 2, "distance": 2, "visited": False},
                {"id": 3, "distance": float("inf"), "visited": False},
            ],
            "highlights": [1, 2],
            "action": "update",
        },
    ],
    "sampleData": [
        {"id": 0, "distance": 0, "visited": False},
        {"id": 1, "distance": float("inf"), "visited": False},
        {"id": 2, "distance": float("inf"), "visited": False},
        {"id": 3, "distance": float("inf"), "visited": False},
    ],
}


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def bubble_sort():
    return response_from_dict(BUBBLE_SORT)


@pytest.fixture
def dijkstra():
    return response_from_dict(DIJKSTRA)


@pytest.fixture
def empty_response():
    return response_from_dict({"title": "Nothing", "steps": [], "sampleData": [5, 3, 1]})


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def builder(surface, settings):
    return FrameBuilder(surface, settings)


@pytest.fixture
def timer():
    return SteppedTimer()


@pytest.fixture
def controller_factory(builder, timer, settings):
    """Factory fixture to create controllers on the stepped timer."""

    created = []

    def _builder(response, **kwargs):
        controller = PlaybackController(response, builder, timer=timer, settings=settings,
                                        interval=2.0, **kwargs)
        created.append(controller)
        return controller

    yield _builder

    for controller in created:
        controller.close()
