"""Connector computation and painting, one pass per animation frame."""

import logging
import random

import networkx as nx

from .config import ChartConfig, ConnectorStyle
from .curves import OrganicCurve
from .errors import ChartError, DegenerateGeometryError
from .geometry import GeometrySampler
from .highlight import HighlightSession
from .models import Connector
from .surface import FrameLoop, MatplotlibSurface
from .visibility import VisibilityOracle

logger = logging.getLogger(__name__)


class ConnectorRenderer:
    """
    Draws partner lines and parent-child branches between rendered cards.

    Partner lines are straight, clipped to the portrait circles and sampled
    afresh every frame. Parent-child branches are organic curves built on
    structural changes (first layout, resize) and redrawn unchanged until the
    next one. Curves are kept in document coordinates; a viewport-fixed
    surface shifts them by the scroll offset when painting.
    """

    def __init__(
        self,
        G: nx.DiGraph,
        session: HighlightSession,
        oracle: VisibilityOracle,
        sampler: GeometrySampler,
        surface: MatplotlibSurface,
        config: ChartConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.graph = G
        self.session = session
        self.oracle = oracle
        self.sampler = sampler
        self.viewport = sampler.viewport
        self.surface = surface
        self.config = config or ChartConfig()
        self.rng = rng or random.Random(self.config.seed)
        self.curves: list[OrganicCurve] = []
        self.last_frame: list[Connector] = []
        self.loop = FrameLoop(surface.canvas, self.draw_frame, self.config.frame_interval_ms)
        self._reported: set[str] = set()

    # Structure

    def _scroll_offset(self) -> tuple[float, float]:
        if self.sampler.document_space:
            return 0.0, 0.0
        return self.viewport.scroll_x, self.viewport.scroll_y

    def regenerate(self):
        """Rebuild every parent-child curve from the current layout."""
        self.curves = []
        dx, dy = self._scroll_offset()

        for node, data in self.graph.nodes(data=True):
            entity = data["entity"]
            if not entity.parents or not self.oracle.is_renderable(node):
                continue
            parents = [p for p in entity.parents if p in self.graph and self.oracle.is_renderable(p)]
            if not parents:
                continue

            try:
                start, end = self.sampler.sample_lineage(parents, node)
            except ChartError as exc:
                self._report(f"lineage:{node}", exc)
                continue

            self.curves.append(
                OrganicCurve(
                    start.offset(dx, dy),
                    end.offset(dx, dy),
                    target_id=node,
                    source_ids=tuple(parents),
                    steps=self.config.curve_steps,
                    jitter=self.config.curve_jitter,
                    rng=self.rng,
                )
            )

        logger.debug("Generated %d parent-child curves", len(self.curves))

    def resize(self):
        """Resynchronize the surface to the viewport and rebuild all curves."""
        if self.sampler.document_space:
            width, height = self.viewport.surface_size
        else:
            width, height = self.viewport.width, self.viewport.height
        self.surface.resize(width, height)
        self.regenerate()
        self.draw_frame()

    # Per-frame computation

    def partner_connectors(self) -> list[Connector]:
        """Straight partner lines, one per unordered pair of renderable partners."""
        connectors: list[Connector] = []
        processed_pairs: set[tuple[str, str]] = set()

        for node, data in self.graph.nodes(data=True):
            entity = data["entity"]
            if not entity.partners or not self.oracle.is_renderable(node):
                continue

            for partner_id in entity.partners:
                if not self.oracle.is_renderable(partner_id):
                    continue

                pair = tuple(sorted((node, partner_id)))
                # Avoid drawing twice when both sides store the partnership
                if pair in processed_pairs:
                    continue
                processed_pairs.add(pair)

                try:
                    start, end = self.sampler.sample_portraits(node, partner_id)
                except ChartError as exc:
                    self._report(f"partner:{pair[0]}-{pair[1]}", exc)
                    continue

                connectors.append(
                    Connector(
                        kind="partner",
                        entity_ids=pair,
                        points=[start, end],
                        active=self.session.is_active(node, partner_id),
                    )
                )

        return connectors

    def reveal_threshold(self) -> float | None:
        """Document y below which curves are not drawn yet, or None when reveal is off."""
        if not self.config.progressive_reveal:
            return None
        return self.viewport.scroll_y + self.viewport.height + self.config.reveal_buffer

    def lineage_connectors(self) -> list[Connector]:
        connectors: list[Connector] = []
        threshold = self.reveal_threshold()
        dx, dy = self._scroll_offset()

        for curve in self.curves:
            # Hidden ends drop the branch until they render again or the next regenerate
            if not all(self.oracle.is_renderable(i) for i in (*curve.source_ids, curve.target_id)):
                continue
            points, reached = curve.visible_points(threshold)
            if not points:
                continue
            if dx or dy:
                points = [p.offset(-dx, -dy) for p in points]

            entity_ids = (*curve.source_ids, curve.target_id)
            connectors.append(
                Connector(
                    kind="lineage",
                    entity_ids=entity_ids,
                    points=points,
                    active=self.session.is_active(*entity_ids),
                    reached=reached and threshold is not None,
                )
            )

        return connectors

    def compute_frame(self) -> list[Connector]:
        return self.lineage_connectors() + self.partner_connectors()

    # Painting

    def style_for(self, connector: Connector) -> ConnectorStyle:
        if connector.active:
            return self.config.active_style
        if connector.kind == "lineage":
            return self.config.lineage_style
        return self.config.inactive_style

    def draw_frame(self) -> list[Connector]:
        """Clear the surface and repaint every connector from current focus and geometry."""
        connectors = self.compute_frame()

        self.surface.clear()
        for connector in connectors:
            self.surface.stroke(connector.points, self.style_for(connector))
            if connector.reached:
                self._reveal(connector.entity_ids[-1])
        self.surface.flush()

        self.last_frame = connectors
        return connectors

    def _reveal(self, entity_id: str):
        element = self.session.elements.get(entity_id)
        if element is not None and not element.revealed:
            element.reveal()

    def _report(self, key: str, exc: ChartError):
        # Reported once per connector; the same failure recurs every frame
        if key in self._reported:
            return
        self._reported.add(key)
        if isinstance(exc, DegenerateGeometryError):
            logger.debug("Skipping connector %s: %s", key, exc)
        else:
            logger.warning("Skipping connector %s: %s", key, exc)

    # Animation loop

    def start(self):
        self.loop.start()

    def stop(self):
        self.loop.stop()
