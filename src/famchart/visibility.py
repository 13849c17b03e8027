"""Decides which cards may currently be connected."""

from collections.abc import Mapping


class VisibilityOracle:
    """
    Answers whether an entity's card is renderable right now.

    Nothing is cached: filtering, layout and attachment can change between
    frames, so every call looks at the element afresh.
    """

    def __init__(self, elements: Mapping, filtered_out: set[str] | None = None):
        self.elements = elements
        self.filtered_out = set(filtered_out or ())

    def is_renderable(self, entity_id: str) -> bool:
        if entity_id in self.filtered_out:
            return False
        element = self.elements.get(entity_id)
        if element is None or not element.is_attached():
            return False
        rect = element.bounding_rect()
        return rect is not None and not rect.is_empty()
