#!/usr/bin/env python3
"""
Manim back end: paints frames onto a Scene and renders full playback to video.
"""

import argparse
import logging
import os
import shutil
import sys
from typing import Dict, List, Optional, Tuple

import numpy as np
from manim import (
    BOLD,
    DOWN,
    GRAY_A,
    LEFT,
    NORMAL,
    RIGHT,
    UP,
    Circle,
    FadeIn,
    Line,
    Mobject,
    Rectangle,
    ReplacementTransform,
    Scene,
    Text,
    VGroup,
    config,
    rate_functions,
)
from rich.logging import RichHandler

from algoviz.config import CANVAS_HEIGHT, CANVAS_WIDTH, Settings, load_settings
from algoviz.frame_builder import Frame, FrameBuilder
from algoviz.playback import PlaybackController, SteppedTimer
from algoviz.response import AlgorithmResponse, InvalidResponseError, load_response
from algoviz.surface import Surface, Transition

logger = logging.getLogger(__name__)

FRAME_WIDTH = 16.0
FRAME_HEIGHT = 10.0

# Logical canvas units -> manim units; the canvas spans the full frame width.
UNIT = FRAME_WIDTH / CANVAS_WIDTH
FONT_SCALE = 2.2

EASINGS = {
    "linear": rate_functions.linear,
    "cubic-in-out": rate_functions.ease_in_out_cubic,
    "cubic-out": rate_functions.ease_out_cubic,
    "smooth": rate_functions.smooth,
}

QUALITY_DIRS = {
    "low_quality": "480p15",
    "medium_quality": "720p30",
    "high_quality": "1080p60",
    "production_quality": "1440p60",
}


def to_point(x: float, y: float) -> np.ndarray:
    return np.array([(x - CANVAS_WIDTH / 2) * UNIT, (CANVAS_HEIGHT / 2 - y) * UNIT, 0.0])


class ManimSurface(Surface):
    """Surface that turns draw commands into mobjects on a manim Scene.

    Primitives accumulate until ``commit`` puts them on screen. Keyed
    primitives with a value transition morph out of the primitive that had
    the same key in the previous frame; fade transitions play afterwards.
    """

    def __init__(self, scene: Scene):
        self.scene = scene
        self._mobjects: List[Mobject] = []
        self._keyed: Dict[str, Mobject] = {}
        self._previous: Dict[str, Mobject] = {}
        self._pending: List[Tuple[Mobject, Optional[str], Transition]] = []
        self._on_screen: List[Mobject] = []

    def clear(self) -> None:
        self._mobjects = []
        self._keyed = {}
        self._pending = []

    def _add(self, mob: Mobject, key: Optional[str], transition: Optional[Transition]) -> None:
        self._mobjects.append(mob)
        if key:
            self._keyed[key] = mob
        if transition is not None:
            self._pending.append((mob, key, transition))

    def rect(self, x, y, width, height, *, fill, stroke=None, stroke_width=1.0, opacity=1.0,
             key=None, transition=None) -> None:
        mob = Rectangle(
            width=max(width * UNIT, 1e-3),
            height=max(height * UNIT, 1e-3),
            fill_color=fill,
            fill_opacity=opacity,
            stroke_color=stroke or fill,
            stroke_width=stroke_width * 2 if stroke else 0,
        )
        mob.move_to(to_point(x + width / 2, y + height / 2))
        self._add(mob, key, transition)

    def line(self, x1, y1, x2, y2, *, stroke, stroke_width=1.5, key=None) -> None:
        mob = Line(to_point(x1, y1), to_point(x2, y2), color=stroke, stroke_width=stroke_width * 2)
        mob.set_z_index(-1)
        self._add(mob, key, None)

    def circle(self, cx, cy, r, *, fill, stroke=None, stroke_width=2.0, key=None,
               transition=None) -> None:
        mob = Circle(radius=r * UNIT, fill_color=fill, fill_opacity=0.9,
                     stroke_color=stroke or fill, stroke_width=stroke_width * 2)
        mob.move_to(to_point(cx, cy))
        self._add(mob, key, transition)

    def text(self, x, y, content, *, fill, size=12.0, anchor="middle", bold=False, key=None,
             transition=None) -> None:
        if not content:
            return
        mob = Text(str(content), font_size=size * FONT_SCALE, color=fill,
                   weight=BOLD if bold else NORMAL)
        # y is the text baseline on the canvas.
        point = to_point(x, y - size * 0.35)
        if anchor == "end":
            mob.move_to(point, aligned_edge=RIGHT)
        elif anchor == "start":
            mob.move_to(point, aligned_edge=LEFT)
        else:
            mob.move_to(point)
        mob.set_z_index(1)
        self._add(mob, key, transition)

    def commit(self) -> None:
        """Swap the previous frame for the pending one, playing its transitions."""
        if self._on_screen:
            self.scene.remove(*self._on_screen)

        animated = {id(mob) for mob, _, _ in self._pending}
        static = VGroup(*[m for m in self._mobjects if id(m) not in animated])
        self.scene.add(static)
        self._on_screen = [static]

        morphs, fades = [], []
        for mob, key, transition in self._pending:
            previous = self._previous.get(key) if key else None
            if transition.fade or previous is None:
                fades.append(FadeIn(mob, run_time=max(transition.duration, 1e-2)))
            else:
                morphs.append(ReplacementTransform(
                    previous.copy(), mob,
                    run_time=max(transition.duration, 1e-2),
                    rate_func=EASINGS.get(transition.easing, rate_functions.smooth),
                ))
            self._on_screen.append(mob)

        if morphs:
            self.scene.play(*morphs)
        if fades:
            self.scene.play(*fades)
        self._pending = []
        self._previous = dict(self._keyed)


class PlaybackScene(Scene):
    """Plays a whole AlgorithmResponse from the first step to the last."""

    def __init__(self, response: AlgorithmResponse, settings: Optional[Settings] = None, **kwargs):
        super().__init__(**kwargs)
        self.response = response
        self.settings = settings or load_settings()
        self.caption: Optional[VGroup] = None

    def construct(self):
        surface = ManimSurface(self)
        timer = SteppedTimer()
        builder = FrameBuilder(surface, self.settings)
        controller = PlaybackController(self.response, builder, timer=timer,
                                        settings=self.settings, on_frame=self._update_caption)

        with controller:
            surface.commit()
            self._hold(self.settings.pause_time)

            controller.play()
            surface.commit()
            while controller.is_playing:
                self._hold(self.settings.play_interval)
                timer.fire()
                surface.commit()

            self._hold(self.settings.pause_time)

    def _hold(self, seconds: float) -> None:
        self.wait(max(seconds, 1 / config.frame_rate))

    def _update_caption(self, frame: Frame) -> None:
        total = len(self.response.steps)
        if total:
            logger.info("  Frame: %d/%d", frame.index + 1, total)

        if self.caption is not None:
            self.remove(self.caption)

        caption = VGroup(Text(self.response.title, font_size=34, weight=BOLD))
        if frame.step is not None:
            heading = f"Step {frame.index + 1} of {total}"
            if frame.step.title:
                heading += f": {frame.step.title}"
            caption.add(Text(heading, font_size=22, color=GRAY_A))
        caption.arrange(DOWN, buff=0.15, aligned_edge=LEFT)
        caption.to_edge(UP, buff=0.25).to_edge(LEFT, buff=0.4)

        group = VGroup(caption)
        description = frame.step.description if frame.step is not None else self.response.explanation
        if description:
            text = Text(description, font_size=18, color=GRAY_A)
            if text.width > FRAME_WIDTH - 1.0:
                text.scale((FRAME_WIDTH - 1.0) / text.width)
            text.to_edge(DOWN, buff=0.3)
            group.add(text)

        self.caption = group
        self.add(group)


def render_response_to_video(json_path: str, output_path: str = "output.mp4",
                             quality: str = "high_quality", settings: Optional[Settings] = None) -> str:
    response = load_response(json_path)
    settings = settings or load_settings()

    class TempScene(PlaybackScene):
        def __init__(self, **kwargs):
            super().__init__(response, settings, **kwargs)

    output_path = os.path.abspath(output_path)
    output_dir = os.path.dirname(output_path)
    output_filename = os.path.basename(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    config.pixel_height = 1000
    config.pixel_width = 1600
    config.frame_height = FRAME_HEIGHT
    config.frame_width = FRAME_WIDTH
    config.quality = quality
    config.pixel_format = "yuv420p"
    config.background_color = settings.palette["background"]
    config.output_file = output_filename.replace(".mp4", "")
    config.write_to_movie = True

    logging.getLogger("manim").setLevel(logging.WARNING)

    logger.info("Rendering: %s", os.path.basename(json_path))
    logger.info("Total steps: %d", len(response.steps))

    scene = TempScene()
    scene.render()

    media_base = config.media_dir or "media"
    quality_dir = QUALITY_DIRS.get(quality, "720p30")
    output_basename = output_filename.replace(".mp4", "")
    possible_sources = [
        os.path.join(media_base, "videos", quality_dir, f"{output_basename}.mp4"),
        os.path.join(media_base, "videos", quality_dir, "TempScene.mp4"),
        os.path.join(media_base, "videos", "TempScene.mp4"),
    ]

    for src in possible_sources:
        if os.path.exists(src):
            shutil.move(src, output_path)
            size_mb = os.path.getsize(output_path) / (1024 * 1024)
            logger.info("Done: %s (%.1fMB)", os.path.basename(output_path), size_mb)
            return output_path

    raise FileNotFoundError(
        "Could not find manim output, tried: " + ", ".join(possible_sources)
    )


def configure_logging(verbose: bool = False) -> None:
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.handlers.clear()
    root.addHandler(RichHandler(show_path=False, show_time=False))


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Render an algorithm walkthrough JSON file to video")
    parser.add_argument("json_file", help="Path to the algorithm response JSON file")
    parser.add_argument("--output", "-o", help="Output video path", default="output.mp4")
    parser.add_argument("--quality", "-q", help="Video quality (default: medium_quality)",
                        choices=sorted(QUALITY_DIRS), default="medium_quality")
    parser.add_argument("--fast", action="store_true",
                        help="Fast mode: skip transitions and shorten every pause")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every state transition")
    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    if args.fast:
        os.environ["ALGOVIZ_FAST_MODE"] = "1"
        os.environ["ALGOVIZ_PLAY_INTERVAL"] = "0.5"
        os.environ["ALGOVIZ_PAUSE_TIME"] = "0.1"

    if not os.path.exists(args.json_file):
        logger.error("File not found '%s'", args.json_file)
        return 1

    try:
        render_response_to_video(args.json_file, args.output, args.quality)
    except InvalidResponseError as e:
        logger.error("%s", e)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
