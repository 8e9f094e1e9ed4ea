import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from algoviz.config import Settings
from algoviz.response import AlgorithmResponse, AlgorithmStep
from algoviz.shapes import ShapeKind, Snapshot, classify
from algoviz.strategies import RenderStrategy, default_strategies
from algoviz.surface import Surface

logger = logging.getLogger(__name__)

UNSUPPORTED_MESSAGE = "Cannot visualize this data"

# Malformed snapshot content that slips past a strategy's precondition.
RENDER_ERRORS = (TypeError, ValueError, KeyError, IndexError, ArithmeticError, RecursionError)


@dataclass(frozen=True)
class Frame:
    """Everything needed to paint one step."""

    index: int
    snapshot: Snapshot
    highlights: Tuple[Any, ...]
    action: Optional[str]
    step: Optional[AlgorithmStep] = None

    @property
    def kind(self) -> ShapeKind:
        return self.snapshot.kind


def clamp_index(response: AlgorithmResponse, index: int) -> int:
    if not response.steps:
        return 0
    return max(0, min(int(index), response.last_index))


def resolve_frame(response: AlgorithmResponse, index: int) -> Frame:
    """Pick the active snapshot, highlights and action for a step index.

    Steps without data of their own fall back to the response's sample data,
    never to an earlier step's data.
    """
    index = clamp_index(response, index)
    step = response.steps[index] if response.steps else None

    data = step.data if step is not None and step.data is not None else response.sample_data
    highlights = step.highlights if step is not None else ()
    action = step.action if step is not None else None

    return Frame(index=index, snapshot=classify(data), highlights=tuple(highlights or ()),
                 action=action, step=step)


def paint_unsupported(surface: Surface, palette: Dict[str, str], message: str = UNSUPPORTED_MESSAGE) -> None:
    surface.clear()
    surface.text(surface.width / 2, surface.height / 2, message,
                 fill=palette["muted"], size=18, key="unsupported")


class FrameBuilder:
    """Resolves frames and dispatches them to the matching render strategy."""

    def __init__(self, surface: Surface, settings: Optional[Settings] = None,
                 strategies: Optional[Dict[ShapeKind, RenderStrategy]] = None):
        self.surface = surface
        self.settings = settings or Settings()
        self.strategies = strategies if strategies is not None else default_strategies(self.settings)

    def build_frame(self, response: AlgorithmResponse, index: int) -> Frame:
        frame = resolve_frame(response, index)
        self.paint(frame)
        return frame

    def paint(self, frame: Frame) -> None:
        strategy = self.strategies.get(frame.kind)
        data = frame.snapshot.data

        if strategy is None or not strategy.accepts(data):
            logger.warning("No renderer accepts %s snapshot at step %d", frame.kind.value, frame.index)
            paint_unsupported(self.surface, self.settings.palette)
            return

        try:
            strategy.render(data, frame.highlights, frame.action, self.surface)
        except RENDER_ERRORS as e:
            logger.warning("Rendering %s snapshot at step %d failed: %s", frame.kind.value, frame.index, e)
            paint_unsupported(self.surface, self.settings.palette)
