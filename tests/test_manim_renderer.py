import numpy as np
import pytest

manim = pytest.importorskip("manim")

from algoviz.manim_renderer import ManimSurface, main, to_point  # noqa: E402
from algoviz.surface import Transition  # noqa: E402


class FakeScene:
    """Records what the surface asks the scene to do."""

    def __init__(self):
        self.mobjects = []
        self.played = []

    def add(self, *mobjects):
        self.mobjects.extend(mobjects)

    def remove(self, *mobjects):
        self.mobjects = [m for m in self.mobjects if m not in mobjects]

    def play(self, *animations):
        self.played.append(animations)


def test_to_point_maps_canvas_centre_to_origin():
    assert np.allclose(to_point(400, 200), [0, 0, 0])
    assert np.allclose(to_point(0, 0), [-8, 5, 0])
    assert np.allclose(to_point(800, 400), [8, -5, 0])


def test_commit_without_transitions_adds_static_group():
    scene = FakeScene()
    surface = ManimSurface(scene)

    surface.clear()
    surface.rect(40, 20, 100, 50, fill="#3498DB", key="bar-0")
    surface.line(0, 0, 10, 10, stroke="#666666")
    surface.commit()

    assert len(scene.mobjects) == 1
    assert len(scene.mobjects[0]) == 2
    assert scene.played == []


def test_keyed_transition_morphs_from_previous_frame():
    scene = FakeScene()
    surface = ManimSurface(scene)
    move = Transition(duration=0.5)

    surface.clear()
    surface.rect(40, 20, 100, 50, fill="#3498DB", key="bar-0", transition=move)
    surface.commit()
    # Nothing on screen before: the first frame fades in.
    assert [type(a).__name__ for a in scene.played[0]] == ["FadeIn"]

    surface.clear()
    surface.rect(40, 60, 100, 10, fill="#F39C12", key="bar-0", transition=move)
    surface.commit()
    assert [type(a).__name__ for a in scene.played[1]] == ["ReplacementTransform"]


def test_main_reports_missing_file(tmp_path):
    assert main([str(tmp_path / "missing.json")]) == 1
