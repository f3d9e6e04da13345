"""
Tests for animated GIF decoding and the multi-frame pipeline.

Test GIFs are built in memory with Pillow so every frame's pixels,
delay and disposal method are known.
"""

import pytest
from PIL import Image

from checkboxart.animation import (CancelToken, Disposal, FrameSequence,
                                   GifDecoder, SequenceProcessor, process_sequence)
from checkboxart.config import MB, GifConfig
from checkboxart.errors import ErrorKind, ImageProcessingError, ProcessingCancelled
from checkboxart.source import SourceFile

from conftest import gif_source, solid_source


BLACK = (0, 0, 0)
WHITE = (255, 255, 255)


def frames_of(*colors, size=(10, 10)):
    return [Image.new('RGB', size, c) for c in colors]


def alternating(count, size=(10, 10)):
    return frames_of(*[BLACK if i % 2 == 0 else WHITE for i in range(count)], size=size)


class TestGifDecoder:

    def test_true_frame_content(self):
        """Each decoded frame carries its own pixels, not a copy of the first."""
        source = gif_source(frames_of(BLACK, WHITE, BLACK), [100, 100, 100])

        frames = GifDecoder().decode(source)

        assert len(frames) == 3
        assert frames[0].raster[..., 0].max() == 0
        assert frames[1].raster[..., 0].min() == 255
        assert frames[2].raster[..., 0].max() == 0

    def test_per_frame_delays(self):
        source = gif_source(frames_of(BLACK, WHITE, BLACK), [100, 250, 400])
        frames = GifDecoder().decode(source)
        assert [f.duration_ms for f in frames] == [100, 250, 400]

    def test_disposal_read_from_container(self):
        colors = [(200, 0, 0), (0, 200, 0), (0, 0, 200)]
        source = gif_source(frames_of(*colors), [100, 100, 100], disposal=2)

        frames = GifDecoder().decode(source)

        assert all(f.disposal is Disposal.BACKGROUND for f in frames)

    def test_dimensions_recorded(self):
        decoder = GifDecoder()
        decoder.decode(gif_source(alternating(2, size=(16, 12)), [100, 100]))
        assert (decoder.width, decoder.height) == (16, 12)

    def test_frame_cap_drops_extras(self):
        config = GifConfig(max_frames=3)
        frames = GifDecoder(config).decode(gif_source(alternating(5), [100] * 5))
        assert [f.index for f in frames] == [0, 1, 2]

    def test_default_cap_is_100(self):
        frames = GifDecoder().decode(gif_source(alternating(103, size=(4, 4)), [100] * 103))
        assert len(frames) == 100

    @pytest.mark.parametrize("raw, expected", [
        (None, 100),
        (0, 100),
        (20, 50),
        (120, 120),
        (9000, 5000),
        ("junk", 100),
    ])
    def test_normalize_delay(self, raw, expected):
        assert GifDecoder().normalize_delay(raw) == expected

    def test_undecodable_data(self):
        source = SourceFile(data=b"not a gif at all", mime_type='image/gif')
        with pytest.raises(ImageProcessingError) as exc:
            GifDecoder().decode(source)
        assert exc.value.kind is ErrorKind.LOAD_ERROR


class TestSequenceValidation:

    def test_no_file(self):
        with pytest.raises(ImageProcessingError) as exc:
            process_sequence(None, 4, 128)
        assert exc.value.kind is ErrorKind.NO_FILE

    def test_requires_gif(self):
        with pytest.raises(ImageProcessingError) as exc:
            process_sequence(solid_source(BLACK), 4, 128)
        assert exc.value.kind is ErrorKind.UNSUPPORTED_FORMAT

    def test_file_too_large_before_decode(self, monkeypatch):
        def fail_open(self):
            raise AssertionError("decode attempted")
        monkeypatch.setattr(SourceFile, 'open', fail_open)

        source = SourceFile(data=b"\0" * (60 * MB), mime_type='image/gif')
        with pytest.raises(ImageProcessingError) as exc:
            process_sequence(source, 4, 128)

        assert exc.value.kind is ErrorKind.FILE_TOO_LARGE
        assert "50.00MB" in exc.value.message


class TestSequenceProcessing:

    def test_grids_follow_frames(self):
        source = gif_source(frames_of(BLACK, WHITE, BLACK), [100, 200, 300])

        sequence = process_sequence(source, 3, 128)

        assert isinstance(sequence, FrameSequence)
        assert sequence.frame_count == 3
        assert all(sequence[0].grid)
        assert not any(sequence[1].grid)
        assert all(sequence[2].grid)
        assert [f.duration_ms for f in sequence.frames] == [100, 200, 300]
        assert sequence.total_duration_ms == 600

    def test_same_grid_size_for_every_frame(self):
        sequence = process_sequence(gif_source(alternating(4), [100] * 4), 7, 128)
        assert all(len(g) == 49 for g in sequence.grids)
        assert sequence.grid_size == 7

    def test_auto_threshold_from_first_frame(self):
        first = Image.new('RGB', (20, 20), (240, 240, 240))
        first.paste((10, 10, 10), (0, 0, 10, 20))
        second = Image.new('RGB', (20, 20), (60, 60, 60))
        source = gif_source([first, second], [100, 100])

        sequence = process_sequence(source, 2, None)

        assert 10 < sequence.threshold <= 60
        # 60 is not below a threshold computed from the first frame only
        assert not any(sequence[1].grid)

    def test_keep_rasters(self):
        sequence = SequenceProcessor().process(
            gif_source(alternating(2), [100, 100]), 2, 128, keep_rasters=True)
        assert sequence[0].raster.shape == (10, 10, 4)

    def test_progress_is_monotonic(self):
        seen = []
        process_sequence(gif_source(alternating(6), [100] * 6), 4, 128, progress=seen.append)

        assert seen[0] == 20
        assert seen[1] == 40
        assert seen[-1] == 100
        assert seen == sorted(seen)
        assert len(seen) == 2 + 6 + 1

    def test_iter_process_returns_sequence(self):
        steps = SequenceProcessor().iter_process(gif_source(alternating(2), [100, 100]), 2, 128)
        result = None
        while True:
            try:
                next(steps)
            except StopIteration as done:
                result = done.value
                break
        assert result.frame_count == 2

    def test_cancel_before_start(self):
        token = CancelToken()
        token.cancel()
        with pytest.raises(ProcessingCancelled):
            process_sequence(gif_source(alternating(2), [100, 100]), 2, 128, cancel_token=token)

    def test_cancel_between_frames(self):
        token = CancelToken()

        def on_progress(percent):
            if percent > 40:
                token.cancel()

        with pytest.raises(ProcessingCancelled):
            process_sequence(gif_source(alternating(5), [100] * 5), 2, 128,
                             progress=on_progress, cancel_token=token)

    def test_bad_threshold_aborts_whole_sequence(self):
        with pytest.raises(ImageProcessingError) as exc:
            process_sequence(gif_source(alternating(3), [100] * 3), 2, 300)
        assert exc.value.kind is ErrorKind.THRESHOLD_ERROR

    def test_info(self):
        info = process_sequence(gif_source(alternating(2), [100, 100]), 2, 128).get_info()
        assert info['frame_count'] == 2
        assert info['width'] == 10


class TestFrameSequence:

    def test_empty_sequence_rejected(self):
        with pytest.raises(ValueError):
            FrameSequence(frames=[], width=1, height=1, grid_size=1, threshold=128)
