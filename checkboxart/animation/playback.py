"""
Playback Engine

Steps through a FrameSequence in real time. The engine owns no timer
of its own: a scheduler with schedule(delay_ms, callback) -> handle and
cancel(handle) drives it, which is exactly the shape of Tk's
after()/after_cancel(). At most one tick is pending at any time.
"""

import math
import operator
import time
from enum import Enum
from typing import Any, Callable, List, Optional

from ..config import TICK_INTERVAL_MS
from ..grid import Grid
from .sequence import Frame, FrameSequence

FrameListener = Callable[[int], None]


class PlaybackState(Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class TkScheduler:
    """Adapt a Tk widget's after()/after_cancel() to the scheduler interface."""

    def __init__(self, widget):
        self.widget = widget

    def schedule(self, delay_ms: int, callback: Callable[[], Any]):
        return self.widget.after(delay_ms, callback)

    def cancel(self, handle):
        self.widget.after_cancel(handle)


class PlaybackEngine:
    """
    Time-driven, looping playback of a frame sequence.

    While playing, every tick compares the time since the last advance
    with the current frame's duration divided by the speed multiplier.
    Once it has elapsed the index moves forward by one, wrapping to 0
    after the last frame.

    Resuming from pause restarts at frame 0; no elapsed-in-frame time
    is kept.
    """

    def __init__(self,
                 sequence: FrameSequence,
                 scheduler,
                 clock: Callable[[], float] = monotonic_ms,
                 tick_interval_ms: int = TICK_INTERVAL_MS):
        """
        Args:
            sequence: Non-empty frame sequence to play
            scheduler: Object with schedule(delay_ms, callback) and cancel(handle)
            clock: Returns the current time in milliseconds
            tick_interval_ms: Delay between ticks
        """
        if sequence is None or sequence.frame_count == 0:
            raise ValueError("Playback needs a non-empty frame sequence")

        self.sequence = sequence
        self.scheduler = scheduler
        self.clock = clock
        self.tick_interval_ms = tick_interval_ms

        self.state = PlaybackState.STOPPED
        self.current_index = 0
        self.speed = 1.0
        self.last_advance = 0.0

        self._pending = None
        self._listeners: List[FrameListener] = []

    # Properties

    @property
    def frame_count(self) -> int:
        return self.sequence.frame_count

    @property
    def is_playing(self) -> bool:
        return self.state is PlaybackState.PLAYING

    @property
    def has_pending_tick(self) -> bool:
        return self._pending is not None

    @property
    def current_frame(self) -> Frame:
        return self.sequence[self.current_index]

    @property
    def current_grid(self) -> Grid:
        return self.current_frame.grid

    @property
    def frame_delay(self) -> float:
        """Time in ms the current frame stays up at the current speed."""
        return self.current_frame.duration_ms / self.speed

    # Listeners

    def add_listener(self, listener: FrameListener):
        self._listeners.append(listener)

    def remove_listener(self, listener: FrameListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _set_index(self, index: int):
        changed = index != self.current_index
        self.current_index = index
        if changed:
            for listener in list(self._listeners):
                listener(index)

    # Scheduling

    def _schedule(self):
        self._cancel_pending()
        self._pending = self.scheduler.schedule(self.tick_interval_ms, self._on_tick)

    def _cancel_pending(self):
        if self._pending is not None:
            self.scheduler.cancel(self._pending)
            self._pending = None

    def _on_tick(self):
        self._pending = None
        self.tick()

    # Transport

    def play(self):
        """Start from frame 0."""
        self._cancel_pending()
        self.state = PlaybackState.PLAYING
        self._set_index(0)
        self.last_advance = self.clock()
        self._schedule()

    def pause(self):
        if self.state is not PlaybackState.PLAYING:
            return
        self._cancel_pending()
        self.state = PlaybackState.PAUSED

    def resume(self):
        """Continue after pause; playback restarts from frame 0."""
        if self.state is PlaybackState.PAUSED:
            self.play()

    def toggle(self):
        if self.state is PlaybackState.PLAYING:
            self.pause()
        elif self.state is PlaybackState.PAUSED:
            self.resume()
        else:
            self.play()

    def stop(self):
        self._cancel_pending()
        self.state = PlaybackState.STOPPED
        self._set_index(0)

    def seek(self, index: int) -> bool:
        """
        Jump to a frame. Out-of-range indices are ignored.

        Returns:
            True if the index was applied
        """
        if isinstance(index, bool):
            return False
        try:
            index = operator.index(index)
        except TypeError:
            return False
        if not 0 <= index < self.frame_count:
            return False
        self._set_index(index)
        return True

    def set_speed(self, multiplier: float):
        """Change the speed multiplier; applies from the next tick on."""
        speed = float(multiplier)
        if not math.isfinite(speed) or speed <= 0:
            raise ValueError(f"Speed multiplier must be positive and finite, got {multiplier}")
        self.speed = speed

    def tick(self, now: Optional[float] = None) -> bool:
        """
        Advance if the current frame's time is up, then schedule the
        next tick while playing.

        Returns:
            True if the frame index advanced
        """
        if self.state is not PlaybackState.PLAYING:
            return False

        now = self.clock() if now is None else now
        advanced = False
        if now - self.last_advance >= self.frame_delay:
            self._set_index((self.current_index + 1) % self.frame_count)
            self.last_advance = now
            advanced = True

        self._schedule()
        return advanced

    # Sequence management

    def load(self, sequence: FrameSequence):
        """Swap in a new sequence; playback stops at frame 0."""
        if sequence is None or sequence.frame_count == 0:
            raise ValueError("Playback needs a non-empty frame sequence")
        self.stop()
        self.sequence = sequence

    def close(self):
        """Stop and drop all listeners."""
        self.stop()
        self._listeners.clear()

    # Edits

    def _replace_frame(self, index: int, frame: Frame):
        frames = list(self.sequence.frames)
        frames[index] = frame
        self.sequence = self.sequence.replace_frames(frames)

    def toggle_cell(self, cell_index: int):
        """Flip one checkbox on the current frame."""
        frame = self.current_frame
        self._replace_frame(self.current_index,
                            frame.with_grid(frame.grid.toggle(cell_index)))

    def invert_all(self):
        """Invert every frame."""
        self.sequence = self.sequence.replace_frames(
            [f.with_grid(f.grid.inverted()) for f in self.sequence.frames])

    def clear_all(self):
        """Uncheck every cell of every frame."""
        self.sequence = self.sequence.replace_frames(
            [f.with_grid(f.grid.cleared()) for f in self.sequence.frames])
