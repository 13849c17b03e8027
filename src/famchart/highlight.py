"""Focus state and relationship role classes for chart cards."""

import logging
from collections.abc import Mapping

import networkx as nx

from .graph import resolve
from .models import Relationships

logger = logging.getLogger(__name__)

ROLE_CLASSES = ("focused", "partner", "lineage", "sibling", "dimmed")


def assign_roles(entity_ids, focus_id: str, relationships: Relationships) -> dict[str, str]:
    """
    Map every entity id to exactly one role class.

    An entity holding several relationships to the focus gets the first role in
    the order focused, partner, lineage (parent or child), sibling; everyone
    else is dimmed.
    """
    roles = {entity_id: "dimmed" for entity_id in entity_ids}
    lineage = set(relationships.parents) | set(relationships.children)
    partners = set(relationships.partners)
    siblings = set(relationships.siblings)

    for entity_id in roles:
        if entity_id == focus_id:
            roles[entity_id] = "focused"
        elif entity_id in partners:
            roles[entity_id] = "partner"
        elif entity_id in lineage:
            roles[entity_id] = "lineage"
        elif entity_id in siblings:
            roles[entity_id] = "sibling"
    return roles


class HighlightSession:
    """
    The single owner of the chart's focus.

    Holds the focused entity id and the role of every card, and writes role
    classes onto the card elements whenever the focus changes.
    """

    def __init__(self, G: nx.DiGraph, elements: Mapping):
        self.graph = G
        self.elements = elements
        self.focus_id: str | None = None
        self.relationships = Relationships()
        self.roles: dict[str, str] = {}

    def set_focus(self, focus_id: str) -> bool:
        """
        Focus a new entity, replacing the previous highlight set.

        Returns False and leaves the current highlight untouched when the id is
        not in the graph.
        """
        if focus_id not in self.graph:
            logger.warning("Cannot focus unknown entity '%s'", focus_id)
            return False

        logger.debug("Setting focus to: %s", focus_id)
        self.focus_id = focus_id
        self.relationships = resolve(self.graph, focus_id)
        self.roles = assign_roles(self.graph.nodes(), focus_id, self.relationships)
        self.apply()
        return True

    def role_of(self, entity_id: str) -> str:
        return self.roles.get(entity_id, "dimmed")

    def is_active(self, *entity_ids: str) -> bool:
        return self.focus_id is not None and self.focus_id in entity_ids

    def apply(self):
        """Write role classes onto the card elements; entities without a card are skipped."""
        for entity_id, element in self.elements.items():
            element.classes.difference_update(ROLE_CLASSES)
            element.classes.add(self.role_of(entity_id))
