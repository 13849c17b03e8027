"""Anchor point sampling between rendered cards."""

from dataclasses import dataclass
from typing import Protocol

from .errors import DegenerateGeometryError, MissingElementError
from .models import Point, Rect


class GeometryProvider(Protocol):
    """Live layout geometry, in viewport coordinates. Missing elements give None."""

    def rect(self, entity_id: str) -> Rect | None: ...

    def portrait_rect(self, entity_id: str) -> Rect | None: ...


@dataclass
class Viewport:
    width: float
    height: float
    document_width: float = 0.0
    document_height: float = 0.0
    scroll_x: float = 0.0
    scroll_y: float = 0.0

    @property
    def max_scroll_y(self) -> float:
        return max(self.document_height - self.height, 0.0)

    @property
    def surface_size(self) -> tuple[float, float]:
        """Size of a drawing surface spanning the whole scrollable document."""
        return max(self.document_width, self.width), max(self.document_height, self.height)

    def resize(self, width: float, height: float):
        self.width = width
        self.height = height
        self.scroll_to(self.scroll_y)

    def scroll_to(self, y: float):
        self.scroll_y = min(max(y, 0.0), self.max_scroll_y)

    def scroll_by(self, dy: float):
        self.scroll_to(self.scroll_y + dy)


class GeometrySampler:
    """
    Computes connector endpoints from rendered card positions.

    With document_space set, every point includes the current scroll offset so
    connectors drawn on a document-sized surface stay attached to their cards
    while the page scrolls.
    """

    def __init__(
        self,
        provider: GeometryProvider,
        viewport: Viewport,
        snap_threshold: float = 20.0,
        radius_inset: float = 2.0,
        document_space: bool = True,
    ):
        self.provider = provider
        self.viewport = viewport
        self.snap_threshold = snap_threshold
        self.radius_inset = radius_inset
        self.document_space = document_space

    def _to_surface(self, rect: Rect) -> Rect:
        if self.document_space:
            return rect.offset(self.viewport.scroll_x, self.viewport.scroll_y)
        return rect

    def card_rect(self, entity_id: str) -> Rect:
        rect = self.provider.rect(entity_id)
        if rect is None:
            raise MissingElementError(entity_id)
        return self._to_surface(rect)

    def portrait_rect(self, entity_id: str) -> Rect:
        rect = self.provider.portrait_rect(entity_id)
        if rect is None:
            # Cards without a portrait anchor on themselves
            return self.card_rect(entity_id)
        return self._to_surface(rect)

    def sample_portraits(self, a: str, b: str) -> tuple[Point, Point]:
        """Edge-to-edge segment between the portrait circles of two cards."""
        r1 = self.portrait_rect(a)
        r2 = self.portrait_rect(b)

        c1, c2 = r1.center, r2.center
        y1, y2 = c1.y, c2.y

        # Near-equal rows are drawn perfectly horizontal
        if abs(y1 - y2) < self.snap_threshold:
            y1 = y2 = (y1 + y2) / 2

        dx = c2.x - c1.x
        dy = y2 - y1
        dist = (dx * dx + dy * dy) ** 0.5
        if dist == 0:
            raise DegenerateGeometryError(f"Portraits of '{a}' and '{b}' coincide")

        ux, uy = dx / dist, dy / dist
        radius1 = r1.width / 2 - self.radius_inset
        radius2 = r2.width / 2 - self.radius_inset

        start = Point(c1.x + ux * radius1, y1 + uy * radius1)
        end = Point(c2.x - ux * radius2, y2 - uy * radius2)
        return start, end

    def sample_lineage(self, parent_ids: list[str], child_id: str) -> tuple[Point, Point]:
        """
        Trunk from the parents' lower edge to the child's upper edge.

        Two parents start at the horizontal midpoint of their centers; one
        parent starts at its own bottom center. Parents without a rendered
        card are left out.
        """
        parent_rects = []
        for parent_id in parent_ids:
            try:
                parent_rects.append(self.card_rect(parent_id))
            except MissingElementError:
                continue
        if not parent_rects:
            raise MissingElementError(child_id, f"No rendered parent for '{child_id}'")

        if len(parent_rects) > 1:
            p1, p2 = parent_rects[:2]
            start = Point((p1.center.x + p2.center.x) / 2, p1.bottom)
        else:
            start = parent_rects[0].bottom_center

        end = self.card_rect(child_id).top_center
        if start == end:
            raise DegenerateGeometryError(f"Lineage anchors of '{child_id}' coincide")
        return start, end
