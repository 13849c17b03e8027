"""Card layout and artwork: the rendered elements connectors attach to."""

from dataclasses import dataclass, field
import logging

import matplotlib.image as mpimg
import networkx as nx
from matplotlib.patches import Circle, FancyBboxPatch
import pydot

from .geometry import Viewport
from .graph import build_union_layout_graph
from .models import Entity, Rect

logger = logging.getLogger(__name__)

CARD_WIDTH = 150.0
CARD_HEIGHT = 150.0
PORTRAIT_SIZE = 72.0
PORTRAIT_TOP = 12.0
GAP_X = 40.0
GAP_Y = 110.0
MARGIN = 60.0

CARD_ZORDER = 2

# Edge color and opacity per role class
ROLE_STYLE = {
    "focused": ("#FFD700", 1.0),
    "partner": ("#e8c468", 0.95),
    "lineage": ("#c9a66b", 0.9),
    "sibling": ("#a08c6c", 0.85),
    "dimmed": ("#5c5040", 0.4),
}
UNREVEALED_ALPHA = 0.08


@dataclass(eq=False)
class CardElement:
    """One person's card: its document rectangle, role classes and reveal flag."""

    entity: Entity
    viewport: Viewport
    rect: Rect | None = None  # document coordinates; None until laid out
    hidden: bool = False
    classes: set[str] = field(default_factory=set)
    revealed: bool = False
    artists: list = field(default_factory=list)

    def is_attached(self) -> bool:
        return self.rect is not None and not self.hidden

    def bounding_rect(self) -> Rect:
        """Rectangle in viewport coordinates; detached cards measure as empty."""
        if not self.is_attached():
            return Rect(0.0, 0.0, 0.0, 0.0)
        return self.rect.offset(-self.viewport.scroll_x, -self.viewport.scroll_y)

    def portrait_rect(self) -> Rect:
        card = self.bounding_rect()
        if card.is_empty():
            return card
        size = min(PORTRAIT_SIZE, card.width)
        return Rect(card.left + (card.width - size) / 2, card.top + PORTRAIT_TOP, size, size)

    def reveal(self):
        self.revealed = True
        self.classes.add("visible")
        self.restyle()

    @property
    def role(self) -> str:
        for role in ROLE_STYLE:
            if role in self.classes:
                return role
        return "dimmed"

    def restyle(self):
        edge, alpha = ROLE_STYLE[self.role]
        if not self.revealed:
            alpha = UNREVEALED_ALPHA
        for artist in self.artists:
            if isinstance(artist, FancyBboxPatch):
                artist.set_edgecolor(edge)
                artist.set_linewidth(2.5 if self.role == "focused" else 1.2)
            artist.set_alpha(alpha)


def order_generation(entities: list[Entity]) -> list[Entity]:
    """Keep record order within a row but seat partners next to each other."""
    by_id = {e.id: e for e in entities}
    ordered: list[Entity] = []
    placed: set[str] = set()
    for entity in entities:
        if entity.id in placed:
            continue
        ordered.append(entity)
        placed.add(entity.id)
        for partner_id in entity.partners:
            if partner_id in by_id and partner_id not in placed:
                ordered.append(by_id[partner_id])
                placed.add(partner_id)
    return ordered


def dot_positions(G: nx.DiGraph, ids: set[str]) -> dict[str, tuple[float, float]]:
    """
    Card centers from a Graphviz dot layout of the union-node graph.

    Partners are pinned to one rank. Positions come back in points with y
    growing upward, as Graphviz reports them.
    """
    H = build_union_layout_graph(G.subgraph(ids))

    P = pydot.Dot(graph_type="digraph")
    P.set("rankdir", "TB")
    P.set("nodesep", str(GAP_X / 72))
    P.set("ranksep", str(GAP_Y / 144))

    spouse_pairs: list[tuple] = []
    for node, data in H.nodes(data=True):
        if data.get("node_type") == "family":
            P.add_node(pydot.Node(str(node), shape="point", width="0.05", label=""))
            spouses = data.get("spouses", ())
            if len(spouses) == 2:
                spouse_pairs.append(spouses)
        else:
            P.add_node(
                pydot.Node(
                    str(node),
                    shape="box",
                    fixedsize="true",
                    width=str(CARD_WIDTH / 72),
                    height=str(CARD_HEIGHT / 72),
                    label="",
                )
            )

    for u, v in H.edges():
        P.add_edge(pydot.Edge(str(u), str(v)))

    for i, (a, b) in enumerate(spouse_pairs):
        sg = pydot.Subgraph(f"couple_{i}", rank="same")
        sg.add_node(pydot.Node(str(a)))
        sg.add_node(pydot.Node(str(b)))
        P.add_subgraph(sg)

    laid_out = pydot.graph_from_dot_data(P.create(prog="dot", format="dot").decode("utf-8"))[0]

    positions: dict[str, tuple[float, float]] = {}
    for node in laid_out.get_nodes():
        name = node.get_name().strip('"')
        pos = node.get_pos()
        if name not in ids or not pos:
            continue
        x, y = pos.strip('"').split(",")[:2]
        positions[name] = (float(x), float(y))
    return positions


class CardBoard:
    """
    Lays out one card per entity and serves their live geometry.

    The board is the geometry provider the connector sampler reads from, and
    `elements` is the id-to-card mapping handed to the rest of the chart.
    """

    def __init__(
        self,
        G: nx.DiGraph,
        viewport: Viewport,
        filtered_out: set[str] | None = None,
        layout: str = "rows",
    ):
        if layout not in ("rows", "dot"):
            raise ValueError(f"Unknown card layout '{layout}'")
        self.graph = G
        self.viewport = viewport
        self.layout_name = layout
        self.loaded = False
        filtered_out = filtered_out or set()
        self.elements: dict[str, CardElement] = {
            node: CardElement(entity=data["entity"], viewport=viewport, hidden=node in filtered_out)
            for node, data in G.nodes(data=True)
        }

    # Geometry provider

    def rect(self, entity_id: str) -> Rect | None:
        element = self.elements.get(entity_id)
        if element is None or not element.is_attached():
            return None
        return element.bounding_rect()

    def portrait_rect(self, entity_id: str) -> Rect | None:
        element = self.elements.get(entity_id)
        if element is None or not element.is_attached():
            return None
        return element.portrait_rect()

    # Layout

    def visible_entities(self) -> list[Entity]:
        return [el.entity for el in self.elements.values() if not el.hidden]

    def layout(self):
        """Place every visible card and update the document size on the viewport."""
        entities = self.visible_entities()
        if self.layout_name == "dot" and entities:
            self._layout_dot(entities)
        else:
            self._layout_rows(entities)

        placed = [el.rect for el in self.elements.values() if el.is_attached()]
        right = max((r.right for r in placed), default=0.0)
        bottom = max((r.bottom for r in placed), default=0.0)
        self.viewport.document_width = right + MARGIN
        self.viewport.document_height = bottom + MARGIN
        self.viewport.scroll_to(self.viewport.scroll_y)

    def _layout_rows(self, entities: list[Entity]):
        rows: dict[int, list[Entity]] = {}
        for entity in entities:
            rows.setdefault(entity.generation, []).append(entity)

        for row_index, generation in enumerate(sorted(rows)):
            row = order_generation(rows[generation])
            row_width = len(row) * CARD_WIDTH + (len(row) - 1) * GAP_X
            left = max((self.viewport.width - row_width) / 2, MARGIN)
            top = MARGIN + row_index * (CARD_HEIGHT + GAP_Y)
            for i, entity in enumerate(row):
                x = left + i * (CARD_WIDTH + GAP_X)
                self.elements[entity.id].rect = Rect(x, top, CARD_WIDTH, CARD_HEIGHT)

    def _layout_dot(self, entities: list[Entity]):
        positions = dot_positions(self.graph, {e.id for e in entities})
        if not positions:
            self._layout_rows(entities)
            return

        min_x = min(x for x, _ in positions.values())
        max_y = max(y for _, y in positions.values())
        for entity_id, (x, y) in positions.items():
            left = MARGIN + (x - min_x)
            top = MARGIN + (max_y - y)
            self.elements[entity_id].rect = Rect(left, top, CARD_WIDTH, CARD_HEIGHT)

    def hit_test(self, x: float, y: float) -> str | None:
        """Entity id of the card under a document-space point."""
        for entity_id, element in self.elements.items():
            if element.is_attached() and element.rect.contains(x, y):
                return entity_id
        return None

    def reveal_roots(self):
        """Cards without a laid-out parent have no branch to reveal them."""
        for element in self.elements.values():
            parents = [self.elements.get(p) for p in element.entity.parents]
            if not any(p is not None and p.is_attached() for p in parents):
                element.reveal()

    def reveal_all(self):
        for element in self.elements.values():
            element.reveal()

    # Artwork

    def apply_viewport(self, ax):
        """Show the scrolled window of the document on a y-down axes."""
        vp = self.viewport
        ax.set_xlim(vp.scroll_x, vp.scroll_x + vp.width)
        ax.set_ylim(vp.scroll_y + vp.height, vp.scroll_y)

    def draw(self, ax):
        """(Re)create every card's artists on the axes."""
        # Limits follow the viewport, never the artists
        ax.set_autoscale_on(False)
        for element in self.elements.values():
            for artist in element.artists:
                artist.remove()
            element.artists = []
            if element.is_attached():
                element.artists = self._card_artists(ax, element)
                element.restyle()

    def restyle(self):
        for element in self.elements.values():
            element.restyle()

    def _card_artists(self, ax, element: CardElement) -> list:
        r = element.rect
        entity = element.entity
        box = FancyBboxPatch(
            (r.left, r.top),
            r.width,
            r.height,
            boxstyle="round,pad=0,rounding_size=12",
            facecolor="#2b241c",
            edgecolor="#5c5040",
            zorder=CARD_ZORDER,
        )
        ax.add_patch(box)

        size = min(PORTRAIT_SIZE, r.width)
        cx = r.left + r.width / 2
        cy = r.top + PORTRAIT_TOP + size / 2
        portrait = Circle((cx, cy), size / 2, facecolor="#3d3328", edgecolor="#c9a66b", zorder=CARD_ZORDER + 1)
        ax.add_patch(portrait)
        artists = [box, portrait]

        photo = self._load_photo(entity)
        if photo is not None:
            image = ax.imshow(
                photo,
                extent=[cx - size / 2, cx + size / 2, cy + size / 2, cy - size / 2],
                aspect="auto",
                zorder=CARD_ZORDER + 2,
            )
            image.set_clip_path(portrait)
            artists.append(image)
        else:
            artists.append(
                ax.text(cx, cy, entity.initials, ha="center", va="center", color="#e8dcc4",
                        fontsize=16, zorder=CARD_ZORDER + 2)
            )

        artists.append(
            ax.text(cx, r.top + PORTRAIT_TOP + size + 18, entity.display_name, ha="center",
                    va="center", color="#f3ead8", fontsize=8, wrap=True, zorder=CARD_ZORDER + 2)
        )
        artists.append(
            ax.text(cx, r.top + PORTRAIT_TOP + size + 40, entity.year_span, ha="center",
                    va="center", color="#b8a98c", fontsize=7, zorder=CARD_ZORDER + 2)
        )
        return artists

    def _load_photo(self, entity: Entity):
        if not entity.photo:
            return None
        try:
            return mpimg.imread(entity.photo)
        except (OSError, ValueError) as exc:
            logger.warning("Could not load photo for %s: %s", entity.id, exc)
            return None
