"""Exceptions raised while resolving and drawing the chart."""


class ChartError(Exception):
    """Base class for chart rendering errors."""


class MissingElementError(ChartError, LookupError):
    """Raised when an entity id has no graph node or no rendered card."""

    def __init__(self, entity_id: str, message: str | None = None) -> None:
        super().__init__(message or f"No rendered element for entity '{entity_id}'")
        self.entity_id = entity_id


class DegenerateGeometryError(ChartError, ValueError):
    """Raised when two anchors coincide and no direction can be derived."""


class SurfaceUnavailableError(ChartError, RuntimeError):
    """Raised when the drawing surface or its canvas cannot be obtained."""
