"""
Playback state machine.

The controller owns the current step index, the play/pause state and the
single auto-advance timer. Every transition repaints through the frame
builder; requests that would leave the valid index range are ignored.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, List, Optional

from algoviz.config import Settings
from algoviz.frame_builder import Frame, FrameBuilder
from algoviz.response import AlgorithmResponse

logger = logging.getLogger(__name__)

FrameListener = Callable[[Frame], None]


# =================================================================
# Timer capability
# =================================================================

class TimerHandle(ABC):
    @abstractmethod
    def cancel(self) -> None:
        """Stop the timer; no tick may fire after this returns."""

    @property
    @abstractmethod
    def active(self) -> bool:
        ...


class Timer(ABC):
    @abstractmethod
    def start(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        """Call ``callback`` every ``interval`` seconds until cancelled."""


class _LoopHandle(TimerHandle):
    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callable[[], None]):
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._active = True
        self._pending = loop.call_later(interval, self._fire)

    def _fire(self) -> None:
        if not self._active:
            return
        # Schedule the next tick first so a callback that cancels also drops it.
        self._pending = self._loop.call_later(self._interval, self._fire)
        self._callback()

    def cancel(self) -> None:
        self._active = False
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    @property
    def active(self) -> bool:
        return self._active


class AsyncioTimer(Timer):
    """Recurring timer on an asyncio event loop (the running loop by default)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def start(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return _LoopHandle(loop, interval, callback)


class _SteppedHandle(TimerHandle):
    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self.elapsed = 0.0
        self._active = True

    def cancel(self) -> None:
        self._active = False

    @property
    def active(self) -> bool:
        return self._active


class SteppedTimer(Timer):
    """Timer whose ticks are driven explicitly by the caller.

    Used for offline rendering, where the scene decides when time passes.
    """

    def __init__(self):
        self.handles: List[_SteppedHandle] = []

    def start(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _SteppedHandle(interval, callback)
        # Cancelled handles never fire again.
        self.handles = self.active_handles
        self.handles.append(handle)
        return handle

    @property
    def active_handles(self) -> List[_SteppedHandle]:
        return [h for h in self.handles if h.active]

    def fire(self) -> int:
        """Tick every active handle once. Returns the number of ticks delivered."""
        fired = 0
        for handle in self.active_handles:
            if handle.active:
                handle.callback()
                fired += 1
        return fired

    def advance(self, seconds: float) -> int:
        """Let ``seconds`` pass, delivering every tick that falls due."""
        fired = 0
        for handle in self.active_handles:
            handle.elapsed += seconds
            while handle.active and handle.elapsed >= handle.interval:
                handle.elapsed -= handle.interval
                handle.callback()
                fired += 1
        return fired


# =================================================================
# Controller
# =================================================================

class PlaybackState(Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


class PlaybackController:

    def __init__(self, response: AlgorithmResponse, frame_builder: FrameBuilder,
                 timer: Optional[Timer] = None, settings: Optional[Settings] = None,
                 interval: Optional[float] = None, restart_timer_on_step: Optional[bool] = None,
                 on_frame: Optional[FrameListener] = None):
        self.response = response
        self.frame_builder = frame_builder
        self.settings = settings or frame_builder.settings
        self.timer = timer or AsyncioTimer()
        self.interval = self.settings.play_interval if interval is None else interval
        if restart_timer_on_step is None:
            restart_timer_on_step = self.settings.restart_timer_on_step
        self.restart_timer_on_step = restart_timer_on_step

        self.index = 0
        self.state = PlaybackState.IDLE
        self.frame: Optional[Frame] = None
        self._listeners: List[FrameListener] = [on_frame] if on_frame else []
        self._handle: Optional[TimerHandle] = None
        self._generation = 0
        self._closed = False

        self._render()

    def __enter__(self) -> "PlaybackController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -----------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------

    @property
    def has_steps(self) -> bool:
        return bool(self.response.steps)

    @property
    def last_index(self) -> int:
        return max(self.response.last_index, 0)

    @property
    def is_playing(self) -> bool:
        return self.state is PlaybackState.PLAYING

    @property
    def at_end(self) -> bool:
        return self.index >= self.last_index

    @property
    def timer_active(self) -> bool:
        return self._handle is not None and self._handle.active

    @property
    def closed(self) -> bool:
        return self._closed

    def add_listener(self, listener: FrameListener) -> None:
        self._listeners.append(listener)

    # -----------------------------------------------------------------
    # Transitions
    # -----------------------------------------------------------------

    def play(self) -> None:
        if self._closed or not self.has_steps:
            logger.debug("Nothing to play")
            return

        # A restart must never leave two timers running.
        self._cancel_timer()
        if self.at_end:
            self.state = PlaybackState.PAUSED
            self._render()
            return

        # Timer first: if it cannot start, the state is left untouched.
        self._start_timer()
        self.state = PlaybackState.PLAYING
        try:
            self._render()
        except Exception:
            self._cancel_timer()
            self.state = PlaybackState.PAUSED
            raise

    def pause(self) -> None:
        if self._closed or self.state is not PlaybackState.PLAYING:
            return
        self._cancel_timer()
        self.state = PlaybackState.PAUSED
        self._render()

    def toggle(self) -> None:
        """Play/pause button behaviour."""
        if self.is_playing:
            self.pause()
        else:
            self.play()

    def step_forward(self) -> None:
        if self._closed or self.at_end:
            logger.debug("step_forward ignored at index %d", self.index)
            return
        self.index += 1
        self._after_step()

    def step_back(self) -> None:
        if self._closed or self.index <= 0:
            logger.debug("step_back ignored at index %d", self.index)
            return
        self.index -= 1
        self._after_step()

    def reset(self) -> None:
        if self._closed:
            return
        self._cancel_timer()
        self.index = 0
        self.state = PlaybackState.PAUSED
        self._render()

    def show_solution(self) -> None:
        """Auto-advance to the last step; same as play() unless already there."""
        if self._closed or not self.has_steps or self.at_end:
            return
        self.play()

    def close(self) -> None:
        """Tear down: cancel any timer and refuse further transitions."""
        if self._closed:
            return
        self._cancel_timer()
        if self.state is PlaybackState.PLAYING:
            self.state = PlaybackState.PAUSED
        self._closed = True
        self._listeners.clear()
        logger.debug("Playback of '%s' closed at step %d", self.response.title, self.index)

    # -----------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------

    def _after_step(self) -> None:
        if self.is_playing and self.restart_timer_on_step:
            self._cancel_timer()
            self._start_timer()
        self._render()

    def _start_timer(self) -> None:
        generation = self._generation
        self._handle = self.timer.start(self.interval, lambda: self._on_tick(generation))
        logger.debug("Auto-advance every %.2fs from step %d", self.interval, self.index)

    def _cancel_timer(self) -> None:
        # Bumping the generation turns any tick already in flight into a no-op.
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _on_tick(self, generation: int) -> None:
        if generation != self._generation or self.state is not PlaybackState.PLAYING:
            return

        if self.at_end:
            self._cancel_timer()
            self.state = PlaybackState.PAUSED
            self._render()
            return

        self.index += 1
        try:
            self._render()
        except Exception:
            self._cancel_timer()
            self.state = PlaybackState.PAUSED
            raise

    def _render(self) -> Frame:
        frame = self.frame_builder.build_frame(self.response, self.index)
        self.frame = frame
        logger.debug("Step %d/%d (%s, %s)", frame.index + 1, len(self.response.steps),
                     frame.kind.value, self.state.value)
        for listener in list(self._listeners):
            listener(frame)
        return frame
