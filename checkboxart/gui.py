import os
import tkinter as tk
from tkinter import filedialog, messagebox
from typing import Optional

import customtkinter as ctk

from .animation import (CancelToken, FrameSequence, PlaybackEngine,
                        SequenceProcessor, TkScheduler)
from .config import GRID_PRESETS, SPEED_PRESETS, ExportSize
from .errors import ProcessingCancelled, get_error_message
from .exporter import GridExporter
from .grid import Grid
from .processor import ImageProcessor
from .source import SourceFile


class DesignToken:
    """Greyscale dark theme"""

    BG = "#1A1A1A"
    CARD = "#2A2A2A"
    BORDER = "#3A3A3A"
    BTN = "#404040"
    BTN_HOVER = "#4A4A4A"
    CELL_ON = "#000000"
    CELL_OFF = "#FEFEFE"
    ERROR = "#E5484D"

    FONT_FAMILY = "Helvetica Neue"

    SPACE_SM = 8
    SPACE_MD = 16

    CANVAS_SIZE = 480

    @staticmethod
    def get_font(size=14, weight="normal"):
        return (DesignToken.FONT_FAMILY, size, weight)


class CheckboxArtApp(ctk.CTk):
    def __init__(self):
        super().__init__()

        ctk.set_appearance_mode("dark")

        self.title("CHECKBOX ART")
        self.geometry("820x640")
        self.configure(fg_color=DesignToken.BG)

        self.image_processor = ImageProcessor()
        self.sequence_processor = SequenceProcessor()
        self.exporter = GridExporter()

        self.source: Optional[SourceFile] = None
        self.grid_state: Optional[Grid] = None
        self.engine: Optional[PlaybackEngine] = None
        self._job = None
        self._job_token: Optional[CancelToken] = None

        self.resolution = ctk.StringVar(value="Medium (50x50)")
        self.threshold = ctk.IntVar(value=128)
        self.export_size = ctk.StringVar(value="Medium")
        self.speed = ctk.StringVar(value="1.0x")
        self.error_text = ctk.StringVar(value="")
        self.frame_text = ctk.StringVar(value="")

        self.setup_ui()

    @property
    def grid_size(self) -> int:
        return GRID_PRESETS[self.resolution.get()]

    # Layout

    def setup_ui(self):
        self.grid_columnconfigure(1, weight=1)
        self.grid_rowconfigure(0, weight=1)

        panel = ctk.CTkFrame(self, fg_color=DesignToken.CARD, corner_radius=4)
        panel.grid(row=0, column=0, sticky="ns",
                   padx=DesignToken.SPACE_MD, pady=DesignToken.SPACE_MD)

        ctk.CTkButton(panel, text="UPLOAD IMAGE", command=self.browse_file,
                      fg_color=DesignToken.BTN, hover_color=DesignToken.BTN_HOVER
                      ).pack(fill="x", padx=DesignToken.SPACE_SM, pady=DesignToken.SPACE_SM)

        ctk.CTkLabel(panel, text="RESOLUTION", font=DesignToken.get_font(11, "bold")).pack(anchor="w", padx=DesignToken.SPACE_SM)
        ctk.CTkOptionMenu(panel, values=list(GRID_PRESETS.keys()), variable=self.resolution,
                          command=lambda _: self.reprocess()
                          ).pack(fill="x", padx=DesignToken.SPACE_SM, pady=(0, DesignToken.SPACE_SM))

        ctk.CTkLabel(panel, text="THRESHOLD", font=DesignToken.get_font(11, "bold")).pack(anchor="w", padx=DesignToken.SPACE_SM)
        self.threshold_slider = ctk.CTkSlider(panel, from_=0, to=255, number_of_steps=255,
                                              variable=self.threshold,
                                              command=lambda _: self.reprocess())
        self.threshold_slider.pack(fill="x", padx=DesignToken.SPACE_SM)
        ctk.CTkButton(panel, text="AUTO", command=self.auto_threshold,
                      fg_color=DesignToken.BTN, hover_color=DesignToken.BTN_HOVER
                      ).pack(fill="x", padx=DesignToken.SPACE_SM, pady=DesignToken.SPACE_SM)

        ctk.CTkButton(panel, text="INVERT", command=self.invert_cells,
                      fg_color=DesignToken.BTN).pack(fill="x", padx=DesignToken.SPACE_SM, pady=2)
        ctk.CTkButton(panel, text="CLEAR", command=self.clear_cells,
                      fg_color=DesignToken.BTN).pack(fill="x", padx=DesignToken.SPACE_SM, pady=2)

        ctk.CTkLabel(panel, text="EXPORT SIZE", font=DesignToken.get_font(11, "bold")).pack(anchor="w", padx=DesignToken.SPACE_SM)
        ctk.CTkOptionMenu(panel, values=[s.name.title() for s in ExportSize],
                          variable=self.export_size
                          ).pack(fill="x", padx=DesignToken.SPACE_SM)
        ctk.CTkButton(panel, text="SAVE AS PIXELS", command=self.save_pixels,
                      fg_color=DesignToken.BTN).pack(fill="x", padx=DesignToken.SPACE_SM, pady=2)
        ctk.CTkButton(panel, text="SAVE AS CHECKBOXES", command=self.save_text,
                      fg_color=DesignToken.BTN).pack(fill="x", padx=DesignToken.SPACE_SM, pady=2)

        # Animation controls, shown for GIF sources
        self.anim_frame = ctk.CTkFrame(panel, fg_color="transparent")
        ctk.CTkLabel(self.anim_frame, textvariable=self.frame_text).pack(anchor="w")
        self.btn_play = ctk.CTkButton(self.anim_frame, text="PLAY", command=self.toggle_playback,
                                      fg_color=DesignToken.BTN)
        self.btn_play.pack(fill="x", pady=2)
        ctk.CTkButton(self.anim_frame, text="STOP", command=self.stop_playback,
                      fg_color=DesignToken.BTN).pack(fill="x", pady=2)
        self.frame_slider = ctk.CTkSlider(self.anim_frame, from_=0, to=1,
                                          command=self.on_frame_slider)
        self.frame_slider.pack(fill="x", pady=2)
        ctk.CTkOptionMenu(self.anim_frame, values=[f"{s}x" for s in SPEED_PRESETS],
                          variable=self.speed, command=self.on_speed_change).pack(fill="x", pady=2)
        ctk.CTkButton(self.anim_frame, text="EXPORT ALL FRAMES", command=self.export_frames,
                      fg_color=DesignToken.BTN).pack(fill="x", pady=2)
        ctk.CTkButton(self.anim_frame, text="EXPORT GIF", command=self.export_gif,
                      fg_color=DesignToken.BTN).pack(fill="x", pady=2)

        # Canvas and status
        right = ctk.CTkFrame(self, fg_color="transparent")
        right.grid(row=0, column=1, sticky="nsew", pady=DesignToken.SPACE_MD)

        self.canvas = tk.Canvas(right, width=DesignToken.CANVAS_SIZE,
                                height=DesignToken.CANVAS_SIZE,
                                bg=DesignToken.CELL_OFF, highlightthickness=0)
        self.canvas.pack()
        self.canvas.bind("<Button-1>", self.on_canvas_click)

        self.progress = ctk.CTkProgressBar(right)
        self.progress.set(0)
        self.progress.pack(fill="x", pady=DesignToken.SPACE_SM)

        ctk.CTkLabel(right, textvariable=self.error_text,
                     text_color=DesignToken.ERROR, wraplength=460).pack()
        self.btn_retry = ctk.CTkButton(right, text="RETRY", command=self.reprocess,
                                       fg_color=DesignToken.BTN)

    # Processing

    def browse_file(self):
        f = filedialog.askopenfilename(
            filetypes=[("Images", "*.jpg *.jpeg *.png *.gif *.webp")])
        if not f:
            return
        try:
            self.source = SourceFile.from_path(f)
        except OSError as e:
            self.show_error(get_error_message(e))
            return
        self.reprocess()

    def cancel_work(self):
        """Stop playback and drop any in-flight job before new work starts."""
        if self._job_token is not None:
            self._job_token.cancel()
            self._job_token = None
        if self._job is not None:
            self._job.close()
            self._job = None
        if self.engine is not None:
            self.engine.close()
            self.engine = None

    def reprocess(self, auto: bool = False):
        if self.source is None:
            return
        self.cancel_work()
        self.clear_error()
        threshold = None if auto else int(self.threshold.get())

        if self.source.is_animated_format:
            self.start_sequence(threshold)
        else:
            self.process_still(threshold)

    def auto_threshold(self):
        self.reprocess(auto=True)

    def process_still(self, threshold: Optional[int]):
        self.anim_frame.pack_forget()
        try:
            result = self.image_processor.process(self.source, self.grid_size, threshold)
        except Exception as e:
            self.show_error(get_error_message(e))
            return
        self.progress.set(1)
        self.threshold.set(result.threshold)
        self.grid_state = result.grid
        self.draw_grid()

    def start_sequence(self, threshold: Optional[int]):
        self._job_token = CancelToken()
        self._job = self.sequence_processor.iter_process(
            self.source, self.grid_size, threshold, self._job_token)
        self.progress.set(0)
        self.after(0, self._step_sequence)

    def _step_sequence(self):
        job = self._job
        if job is None:
            return
        try:
            percent = next(job)
        except StopIteration as done:
            self._job = None
            self._job_token = None
            self.on_sequence_ready(done.value)
            return
        except ProcessingCancelled:
            return
        except Exception as e:
            self._job = None
            self._job_token = None
            self.show_error(get_error_message(e))
            return
        self.progress.set(percent / 100)
        self.after(0, self._step_sequence)

    def on_sequence_ready(self, sequence: FrameSequence):
        self.threshold.set(sequence.threshold)
        self.engine = PlaybackEngine(sequence, TkScheduler(self))
        self.engine.add_listener(lambda _: self.on_frame_change())
        self.engine.set_speed(float(self.speed.get().rstrip("x")))
        self.frame_slider.configure(to=max(1, sequence.frame_count - 1),
                                    number_of_steps=max(1, sequence.frame_count - 1))
        self.anim_frame.pack(fill="x", padx=DesignToken.SPACE_SM, pady=DesignToken.SPACE_SM)
        self.on_frame_change()

    # Playback

    def on_frame_change(self):
        if self.engine is None:
            return
        self.grid_state = self.engine.current_grid
        self.frame_text.set(f"Frame {self.engine.current_index + 1} of {self.engine.frame_count}")
        self.frame_slider.set(self.engine.current_index)
        self.btn_play.configure(text="PAUSE" if self.engine.is_playing else "PLAY")
        self.draw_grid()

    def toggle_playback(self):
        if self.engine is not None:
            self.engine.toggle()
            self.on_frame_change()

    def stop_playback(self):
        if self.engine is not None:
            self.engine.stop()
            self.on_frame_change()

    def on_frame_slider(self, value):
        if self.engine is not None:
            self.engine.seek(int(round(value)))

    def on_speed_change(self, value):
        if self.engine is not None:
            self.engine.set_speed(float(value.rstrip("x")))

    # Editing

    def on_canvas_click(self, event):
        if self.grid_state is None:
            return
        cell = DesignToken.CANVAS_SIZE / self.grid_state.size
        col, row = int(event.x // cell), int(event.y // cell)
        if not (0 <= col < self.grid_state.size and 0 <= row < self.grid_state.size):
            return
        index = row * self.grid_state.size + col
        if self.engine is not None:
            self.engine.toggle_cell(index)
            self.grid_state = self.engine.current_grid
        else:
            self.grid_state = self.grid_state.toggle(index)
        self.draw_grid()

    def invert_cells(self):
        if self.engine is not None:
            self.engine.invert_all()
            self.grid_state = self.engine.current_grid
        elif self.grid_state is not None:
            self.grid_state = self.grid_state.inverted()
        self.draw_grid()

    def clear_cells(self):
        if self.engine is not None:
            self.engine.clear_all()
            self.grid_state = self.engine.current_grid
        elif self.grid_state is not None:
            self.grid_state = self.grid_state.cleared()
        self.draw_grid()

    def draw_grid(self):
        self.canvas.delete("all")
        grid = self.grid_state
        if grid is None:
            return
        cell = DesignToken.CANVAS_SIZE / grid.size
        for i, checked in enumerate(grid):
            if checked:
                row, col = divmod(i, grid.size)
                self.canvas.create_rectangle(col * cell, row * cell,
                                             (col + 1) * cell, (row + 1) * cell,
                                             fill=DesignToken.CELL_ON, width=0)

    # Export

    def _output_dir(self) -> Optional[str]:
        d = filedialog.askdirectory()
        return d or None

    def save_pixels(self):
        if self.grid_state is None:
            return
        d = self._output_dir()
        if d:
            self._run_export(lambda: self.exporter.save_grid_image(
                self.grid_state, self.grid_state.size, d, self.export_size.get()))

    def save_text(self):
        if self.grid_state is None:
            return
        d = self._output_dir()
        if d:
            self._run_export(lambda: self.exporter.save_grid_text(
                self.grid_state, self.grid_state.size, d))

    def export_frames(self):
        if self.engine is None:
            return
        d = self._output_dir()
        if d:
            sequence = self.engine.sequence
            self._run_export(lambda: self.exporter.export_image_sequence(
                sequence, sequence.grid_size, d, size=self.export_size.get()))

    def export_gif(self):
        if self.engine is None:
            return
        d = self._output_dir()
        if d:
            sequence = self.engine.sequence
            path = os.path.join(d, f"checkbox-art-{sequence.grid_size}x{sequence.grid_size}.gif")
            self._run_export(lambda: self.exporter.save_animation(
                sequence, sequence.grid_size, path, self.export_size.get()))

    def _run_export(self, action):
        try:
            result = action()
        except Exception as e:
            self.show_error(get_error_message(e))
            return
        count = len(result) if isinstance(result, list) else 1
        print(f"[Viewer] Exported {count} file(s)")
        messagebox.showinfo("Complete", f"Saved {count} file(s).")

    # Errors

    def show_error(self, msg: str):
        print(f"[Viewer] {msg}")
        self.progress.set(0)
        self.error_text.set(msg)
        self.btn_retry.pack(pady=DesignToken.SPACE_SM)

    def clear_error(self):
        self.error_text.set("")
        self.btn_retry.pack_forget()
