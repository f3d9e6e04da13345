"""
Tests for GridExporter: PNG rendering, text patterns, per-frame
series and animated GIF output.
"""

import io

import pytest
from PIL import Image

from checkboxart.animation.sequence import Frame, FrameSequence
from checkboxart.config import GLYPH_OFF, GLYPH_ON, ExportSize
from checkboxart.errors import ErrorKind, ImageProcessingError
from checkboxart.exporter import GridExporter, render_grid, render_grid_as_text, render_sequence
from checkboxart.grid import Grid


def open_png(data):
    image = Image.open(io.BytesIO(data))
    assert image.format == 'PNG'
    return image.convert('RGB')


class TestRenderGrid:

    @pytest.mark.parametrize("size, pixels", [
        (ExportSize.SMALL, 4), (ExportSize.MEDIUM, 8), (ExportSize.LARGE, 12)])
    def test_dimensions(self, size, pixels):
        image = open_png(render_grid(Grid.empty(5), 5, size))
        assert image.size == (5 * pixels, 5 * pixels)

    def test_cells_drawn_at_row_and_column(self):
        # Only row 0, col 1 checked
        grid = Grid.from_cells([False, True, False, False], 2)
        image = open_png(render_grid(grid, 2, ExportSize.MEDIUM))

        assert image.getpixel((8, 0)) == (0, 0, 0)
        assert image.getpixel((15, 7)) == (0, 0, 0)
        assert image.getpixel((0, 0)) == (255, 255, 255)
        assert image.getpixel((8, 8)) == (255, 255, 255)

    def test_accepts_plain_list(self):
        image = open_png(GridExporter("small").render_grid([True] * 9, 3))
        assert image.getpixel((11, 11)) == (0, 0, 0)

    def test_length_mismatch(self):
        with pytest.raises(ImageProcessingError) as exc:
            render_grid([True] * 5, 2)
        assert exc.value.kind is ErrorKind.EXPORT_ERROR

    def test_unknown_size(self):
        with pytest.raises(ImageProcessingError) as exc:
            GridExporter("huge")
        assert exc.value.kind is ErrorKind.EXPORT_ERROR


class TestRenderText:

    def test_shape(self):
        grid = Grid.from_cells([i % 3 == 0 for i in range(16)], 4)
        lines = render_grid_as_text(grid, 4).splitlines()

        assert len(lines) == 4
        assert all(len(line) == 4 for line in lines)

    def test_all_off(self):
        text = render_grid_as_text(Grid.empty(3), 3)
        assert set(text.replace("\n", "")) == {GLYPH_OFF}

    def test_all_on(self):
        text = render_grid_as_text(Grid.empty(3).inverted(), 3)
        assert set(text.replace("\n", "")) == {GLYPH_ON}

    def test_newline_after_each_row(self):
        text = render_grid_as_text([True, False, False, True], 2)
        assert text == f"{GLYPH_ON}{GLYPH_OFF}\n{GLYPH_OFF}{GLYPH_ON}\n"

    def test_length_mismatch(self):
        with pytest.raises(ImageProcessingError):
            render_grid_as_text([True] * 3, 2)


def sample_sequence():
    grids = [Grid.empty(3), Grid.empty(3).inverted(), Grid.empty(3).toggle(4)]
    frames = [Frame(grid=g, duration_ms=d) for g, d in zip(grids, (100, 200, 300))]
    return FrameSequence(frames=frames, width=30, height=30, grid_size=3, threshold=128)


class TestSequenceExport:

    def test_render_sequence_one_png_per_frame(self):
        rendered = render_sequence(sample_sequence(), 3, ExportSize.SMALL)

        assert len(rendered) == 3
        assert open_png(rendered[1]).getpixel((0, 0)) == (0, 0, 0)
        assert open_png(rendered[0]).getpixel((0, 0)) == (255, 255, 255)

    def test_render_sequence_from_grids(self):
        assert len(render_sequence([Grid.empty(2)] * 2, 2)) == 2

    def test_empty_sequence(self):
        with pytest.raises(ImageProcessingError):
            render_sequence([], 2)

    def test_animation_is_multi_frame(self):
        data = GridExporter().render_animation(sample_sequence(), 3)

        image = Image.open(io.BytesIO(data))
        assert image.format == 'GIF'
        assert image.n_frames == 3

        durations = []
        for i in range(image.n_frames):
            image.seek(i)
            durations.append(image.info['duration'])
        assert durations == [100, 200, 300]

    def test_animation_from_generator(self):
        frames = (f for f in sample_sequence().frames)
        data = GridExporter().render_animation(frames, 3)
        assert Image.open(io.BytesIO(data)).n_frames == 3

    def test_animation_duration_mismatch(self):
        with pytest.raises(ImageProcessingError):
            GridExporter().render_animation(sample_sequence(), 3, durations=[100])

    def test_image_sequence_files(self, tmp_path):
        paths = GridExporter().export_image_sequence(sample_sequence(), 3, str(tmp_path))

        assert len(paths) == 3
        assert [p.split("/")[-1] for p in paths] == ["frame_1.png", "frame_2.png", "frame_3.png"]
        assert open_png(open(paths[1], 'rb').read()).size == (24, 24)


class TestSaveFiles:

    def test_save_grid_image_and_text(self, tmp_path):
        exporter = GridExporter()
        grid = Grid.empty(4)

        png = exporter.save_grid_image(grid, 4, str(tmp_path))
        txt = exporter.save_grid_text(grid, 4, str(tmp_path))

        assert png.endswith("checkbox-art-4x4.png")
        assert txt.endswith("checkbox-pattern-4x4.txt")
        with open(txt, encoding='utf-8') as f:
            assert len(f.read().splitlines()) == 4

    def test_save_animation(self, tmp_path):
        path = GridExporter().save_animation(sample_sequence(), 3, str(tmp_path / "out.gif"))
        assert Image.open(path).n_frames == 3
