"""Matplotlib drawing surface and frame loop for connector painting."""

import logging

from matplotlib import patheffects
from matplotlib.lines import Line2D

from .config import ConnectorStyle
from .errors import SurfaceUnavailableError
from .models import Point

logger = logging.getLogger(__name__)

CONNECTOR_ZORDER = 1


class MatplotlibSurface:
    """
    Immediate-mode drawing surface on a matplotlib Axes.

    The axes uses screen conventions: x grows right, y grows down. Every
    frame clears the previous connector artists and strokes new ones; card
    artists on the same axes are left alone.
    """

    def __init__(self, ax, fixed: bool = False):
        if ax is None or ax.figure is None or getattr(ax.figure, "canvas", None) is None:
            raise SurfaceUnavailableError("No matplotlib axes/canvas to draw connectors on")
        self.ax = ax
        self.fixed = fixed
        self.width = 0.0
        self.height = 0.0
        self.artists: list[Line2D] = []

    @property
    def canvas(self):
        return self.ax.figure.canvas

    def resize(self, width: float, height: float):
        """Resynchronize the surface to a new pixel size."""
        self.width = width
        self.height = height
        if self.fixed:
            # A viewport overlay maps pixels 1:1 with (0, 0) at the top left
            self.ax.set_xlim(0, width)
            self.ax.set_ylim(height, 0)

    def clear(self):
        for artist in self.artists:
            artist.remove()
        self.artists = []

    def stroke(self, points: list[Point], style: ConnectorStyle) -> Line2D:
        effects = []
        if style.glow:
            effects.append(
                patheffects.withStroke(
                    linewidth=style.width + style.glow,
                    foreground=style.glow_color or style.color,
                    alpha=0.35,
                )
            )
        line = Line2D(
            [p.x for p in points],
            [p.y for p in points],
            color=style.color,
            alpha=style.alpha,
            linewidth=style.width,
            solid_capstyle="round",
            solid_joinstyle="round",
            zorder=CONNECTOR_ZORDER,
        )
        if effects:
            line.set_path_effects(effects + [patheffects.Normal()])
        self.ax.add_line(line)
        self.artists.append(line)
        return line

    def flush(self):
        self.canvas.draw_idle()


class FrameLoop:
    """
    A cancellable repeating redraw driven by a matplotlib canvas timer.

    start() and stop() are both idempotent. A tick delivered after stop() is
    ignored, so no callback outlives the loop.
    """

    def __init__(self, canvas, callback, interval_ms: int = 16):
        self.canvas = canvas
        self.callback = callback
        self.interval_ms = interval_ms
        self._timer = None

    @property
    def running(self) -> bool:
        return self._timer is not None

    def start(self):
        if self._timer is not None:
            return
        timer = self.canvas.new_timer(interval=self.interval_ms)
        timer.add_callback(self._tick)
        self._timer = timer
        timer.start()

    def stop(self):
        if self._timer is None:
            return
        timer, self._timer = self._timer, None
        timer.stop()
        timer.remove_callback(self._tick)

    def _tick(self):
        if self._timer is None:
            return
        self.callback()


def call_later(canvas, delay_ms: int, callback):
    """Run callback once after delay_ms on the canvas event loop; returns the timer."""
    timer = canvas.new_timer(interval=delay_ms)
    timer.single_shot = True
    timer.add_callback(callback)
    timer.start()
    return timer
