"""Composition root: wires records, cards, focus and connectors onto a figure."""

import logging
import random

import networkx as nx
from matplotlib.figure import Figure

from .cards import CardBoard
from .config import ChartConfig
from .errors import SurfaceUnavailableError
from .geometry import GeometrySampler, Viewport
from .highlight import HighlightSession
from .renderer import ConnectorRenderer
from .surface import MatplotlibSurface, call_later
from .visibility import VisibilityOracle

logger = logging.getLogger(__name__)


class FamilyChart:
    """
    An interactive family chart on one matplotlib figure.

    Owns the viewport, the card board, the highlight session and the connector
    renderer, and routes matplotlib resize/scroll/click events to them. If no
    drawing surface can be created the chart still shows cards and focus,
    without connectors.
    """

    def __init__(
        self,
        G: nx.DiGraph,
        figure: Figure,
        config: ChartConfig | None = None,
        filtered_out: set[str] | None = None,
        layout: str = "rows",
    ):
        self.graph = G
        self.figure = figure
        self.config = config or ChartConfig()
        self.viewport = Viewport(self.config.viewport_width, self.config.viewport_height)

        self.board = CardBoard(G, self.viewport, filtered_out=filtered_out, layout=layout)
        self.session = HighlightSession(G, self.board.elements)
        self.oracle = VisibilityOracle(self.board.elements, filtered_out)
        self.sampler = GeometrySampler(
            self.board,
            self.viewport,
            snap_threshold=self.config.snap_threshold,
            radius_inset=self.config.radius_inset,
            document_space=self.config.document_space,
        )

        self._resize_figure()
        self.ax, overlay_ax = self._create_axes()
        self.renderer = self._create_renderer(overlay_ax)
        self._connections: list[int] = []
        self._init_timer = None

    def _resize_figure(self):
        dpi = self.figure.dpi
        self.figure.set_size_inches(self.viewport.width / dpi, self.viewport.height / dpi)

    def _create_axes(self):
        """Card axes in document coordinates, plus an overlay axes for a viewport-fixed surface."""
        self.figure.set_facecolor(self.config.background)
        ax = self.figure.add_axes((0, 0, 1, 1))
        ax.set_axis_off()
        ax.set_facecolor(self.config.background)
        if self.config.document_space:
            return ax, ax

        # Connectors are painted behind the cards
        overlay = self.figure.add_axes((0, 0, 1, 1), zorder=0)
        overlay.set_axis_off()
        ax.set_zorder(1)
        ax.patch.set_visible(False)
        return ax, overlay

    def _create_renderer(self, surface_ax) -> ConnectorRenderer | None:
        try:
            surface = MatplotlibSurface(surface_ax, fixed=not self.config.document_space)
        except SurfaceUnavailableError as exc:
            logger.error("Connector rendering disabled: %s", exc)
            return None
        rng = random.Random(self.config.seed)
        return ConnectorRenderer(
            self.graph, self.session, self.oracle, self.sampler, surface, self.config, rng=rng
        )

    # Lifecycle

    def hydrate(self, focus_id: str | None = None):
        """Lay out and draw the cards, apply the initial focus and build the connectors."""
        self.board.layout()
        self.board.apply_viewport(self.ax)
        self.board.draw(self.ax)
        if self.config.progressive_reveal:
            self.board.reveal_roots()
        else:
            self.board.reveal_all()

        focus_id = focus_id or self.default_focus()
        if focus_id is not None:
            self.focus(focus_id)

        if self.renderer is not None:
            self.renderer.resize()
        self.board.loaded = True

    def default_focus(self) -> str | None:
        for entity_id in self.graph.nodes():
            if self.oracle.is_renderable(entity_id):
                return entity_id
        return None

    def start(self):
        """Connect event handlers and start the frame loop."""
        canvas = self.figure.canvas
        self._connections = [
            canvas.mpl_connect("resize_event", self.on_resize),
            canvas.mpl_connect("scroll_event", self.on_scroll),
            canvas.mpl_connect("button_press_event", self.on_click),
        ]
        if self.renderer is not None:
            # Measure again once fonts and window layout have settled
            self._init_timer = call_later(canvas, self.config.init_delay_ms, self.relayout)
            self.renderer.start()

    def stop(self):
        canvas = self.figure.canvas
        for cid in self._connections:
            canvas.mpl_disconnect(cid)
        self._connections = []
        if self._init_timer is not None:
            self._init_timer.stop()
            self._init_timer = None
        if self.renderer is not None:
            self.renderer.stop()

    # Events

    def focus(self, entity_id: str) -> bool:
        changed = self.session.set_focus(entity_id)
        if changed:
            self.board.restyle()
        return changed

    def relayout(self):
        self.board.layout()
        self.board.apply_viewport(self.ax)
        self.board.draw(self.ax)
        if self.renderer is not None:
            self.renderer.resize()
        self.figure.canvas.draw_idle()

    def on_resize(self, event):
        if not event.width or not event.height:
            return
        self.viewport.resize(event.width, event.height)
        self.relayout()

    def on_scroll(self, event):
        # Wheel up (positive step) moves toward the top of the document
        self.viewport.scroll_by(-event.step * self.config.scroll_step)
        self.board.apply_viewport(self.ax)
        if self.renderer is not None:
            self.renderer.draw_frame()
        else:
            self.figure.canvas.draw_idle()

    def on_click(self, event):
        if event.x is None or event.y is None:
            return
        # Canvas pixels have their origin at the bottom left
        x = self.viewport.scroll_x + event.x
        y = self.viewport.scroll_y + (self.viewport.height - event.y)
        entity_id = self.board.hit_test(x, y)
        if entity_id is not None:
            self.focus(entity_id)
            if self.renderer is not None:
                self.renderer.draw_frame()

    # Export

    def save(self, output_path):
        """Write the current frame; the format follows the file extension."""
        if self.renderer is not None:
            self.renderer.draw_frame()
        ext = output_path.suffix.lower().lstrip(".")
        if ext not in ("png", "svg", "pdf"):
            ext = "png"
        self.figure.savefig(output_path, format=ext, facecolor=self.figure.get_facecolor())
