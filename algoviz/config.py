import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from algoviz.styles import DEFAULT_PALETTE, parse_color


# Logical canvas the strategies draw on.
CANVAS_WIDTH = 800.0
CANVAS_HEIGHT = 400.0


@dataclass(frozen=True)
class Margin:
    top: float = 20.0
    right: float = 20.0
    bottom: float = 40.0
    left: float = 40.0


MARGIN = Margin()


@dataclass(frozen=True)
class Settings:
    """Playback and rendering knobs, read from ALGOVIZ_* environment variables."""

    play_interval: float = 2.0
    transition_time: float = 0.75
    pause_time: float = 0.3
    graph_radius: float = 140.0
    bit_width: int = 32
    infer_graph_edges: bool = True
    restart_timer_on_step: bool = False
    fast_mode: bool = False
    palette: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PALETTE))


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    try:
        return float(environ.get(name, default))
    except Exception:
        return default


def _env_flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    environ = os.environ if environ is None else environ

    palette = dict(DEFAULT_PALETTE)
    for name in palette:
        raw = environ.get(f"ALGOVIZ_COLOR_{name.upper()}")
        if raw:
            palette[name] = parse_color(raw, palette[name])

    bit_width = int(_env_float(environ, "ALGOVIZ_BIT_WIDTH", 32))
    if not 1 <= bit_width <= 64:
        bit_width = 32

    return Settings(
        play_interval=max(0.05, _env_float(environ, "ALGOVIZ_PLAY_INTERVAL", 2.0)),
        transition_time=max(0.0, _env_float(environ, "ALGOVIZ_TRANSITION_TIME", 0.75)),
        pause_time=max(0.0, _env_float(environ, "ALGOVIZ_PAUSE_TIME", 0.3)),
        graph_radius=_env_float(environ, "ALGOVIZ_GRAPH_RADIUS", 140.0),
        bit_width=bit_width,
        infer_graph_edges=_env_flag(environ, "ALGOVIZ_INFER_GRAPH_EDGES", True),
        restart_timer_on_step=_env_flag(environ, "ALGOVIZ_RESTART_TIMER_ON_STEP", False),
        fast_mode=_env_flag(environ, "ALGOVIZ_FAST_MODE", False),
        palette=palette,
    )
