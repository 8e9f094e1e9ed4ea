import pytest

from algoviz.config import Settings, load_settings
from algoviz.styles import DEFAULT_PALETTE, highlight_tint, parse_color


def test_defaults_without_environment():
    settings = load_settings({})

    assert settings == Settings()
    assert settings.play_interval == 2.0
    assert settings.transition_time == 0.75
    assert settings.bit_width == 32
    assert settings.infer_graph_edges
    assert not settings.restart_timer_on_step


def test_environment_overrides():
    settings = load_settings({
        "ALGOVIZ_PLAY_INTERVAL": "0.5",
        "ALGOVIZ_TRANSITION_TIME": "0",
        "ALGOVIZ_GRAPH_RADIUS": "90",
        "ALGOVIZ_BIT_WIDTH": "8",
        "ALGOVIZ_INFER_GRAPH_EDGES": "false",
        "ALGOVIZ_RESTART_TIMER_ON_STEP": "yes",
        "ALGOVIZ_FAST_MODE": "1",
        "ALGOVIZ_COLOR_ACTIVE": "#abc",
    })

    assert settings.play_interval == 0.5
    assert settings.transition_time == 0.0
    assert settings.graph_radius == 90.0
    assert settings.bit_width == 8
    assert not settings.infer_graph_edges
    assert settings.restart_timer_on_step
    assert settings.fast_mode
    assert settings.palette["active"] == "#AABBCC"
    assert settings.palette["primary"] == DEFAULT_PALETTE["primary"]


def test_bad_values_fall_back():
    settings = load_settings({
        "ALGOVIZ_PLAY_INTERVAL": "soon",
        "ALGOVIZ_BIT_WIDTH": "512",
        "ALGOVIZ_COLOR_PRIMARY": "not-a-color",
    })

    assert settings.play_interval == 2.0
    assert settings.bit_width == 32
    assert settings.palette["primary"] == DEFAULT_PALETTE["primary"]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("#3498db", "#3498DB"),
        ("#fff", "#FFFFFF"),
        ("rgb(255, 128, 0)", "#FF8000"),
        ("rgba(0, 0, 300, 0.5)", "#0000FF"),
        ("Red", "#FC6255"),
        ("transparent", "#123456"),
        (None, "#123456"),
        ("#12345", "#123456"),
    ],
)
def test_parse_color(raw, expected):
    assert parse_color(raw, "#123456") == expected


@pytest.mark.parametrize("action", ["swap", "Done", "sorted", "found", "complete"])
def test_complete_actions_use_complete_tint(action):
    assert highlight_tint(action, DEFAULT_PALETTE) == DEFAULT_PALETTE["complete"]


@pytest.mark.parametrize("action", ["compare", "select", None, ""])
def test_other_actions_use_active_tint(action):
    assert highlight_tint(action, DEFAULT_PALETTE) == DEFAULT_PALETTE["active"]
