"""
Animated Checkbox Art Module

Decodes animated GIFs frame by frame, converts every frame into a
checkbox grid, and plays the resulting sequence back in real time.
"""

from .decoder import GifDecoder, DecodedFrame, Disposal
from .sequence import (CancelToken, Frame, FrameSequence,
                       SequenceProcessor, process_sequence)
from .playback import PlaybackEngine, PlaybackState, TkScheduler

__all__ = [
    'GifDecoder',
    'DecodedFrame',
    'Disposal',
    'CancelToken',
    'Frame',
    'FrameSequence',
    'SequenceProcessor',
    'process_sequence',
    'PlaybackEngine',
    'PlaybackState',
    'TkScheduler',
]
