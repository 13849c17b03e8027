"""NetworkX relationship graph building and relationship resolution."""

import logging

import networkx as nx

from .models import Entity, Relationships

logger = logging.getLogger(__name__)


def build_graph(entities: list[Entity]) -> nx.DiGraph:
    """
    Build a NetworkX directed graph from entity records.

    Every node carries its Entity under the 'entity' attribute. PARENT_OF edges
    run parent -> child and SPOUSE_OF edges run from the entity that stores the
    partner. References to unknown ids are skipped with a warning.
    """
    G = nx.DiGraph()

    for entity in entities:
        if entity.id in G:
            logger.warning("Duplicate entity id '%s'; keeping the first record", entity.id)
            continue
        G.add_node(entity.id, entity=entity)

    for node, data in G.nodes(data=True):
        entity = data["entity"]
        for parent_id in entity.parents:
            if parent_id not in G:
                logger.warning("Parent '%s' of '%s' not found in records", parent_id, node)
                continue
            G.add_edge(parent_id, node, relationship_type="PARENT_OF")
        for partner_id in entity.partners:
            if partner_id not in G:
                logger.warning("Partner '%s' of '%s' not found in records", partner_id, node)
                continue
            G.add_edge(node, partner_id, relationship_type="SPOUSE_OF")

    return G


def get_entity(G: nx.DiGraph, entity_id: str) -> Entity | None:
    if entity_id not in G:
        return None
    return G.nodes[entity_id]["entity"]


def resolve(G: nx.DiGraph, focus_id: str) -> Relationships:
    """
    Find the partners, parents, children and siblings of the focused entity.

    Partners and parents are the focused entity's own stored lists, so a partner
    recorded only on the other side is not reported. An unknown focus id yields
    empty relationships.
    """
    target = get_entity(G, focus_id)
    if target is None:
        return Relationships()

    relationships = Relationships(
        partners=list(target.partners),
        parents=list(target.parents),
    )

    for node, data in G.nodes(data=True):
        entity = data["entity"]
        if focus_id in entity.parents:
            relationships.children.append(node)
        # Siblings share at least one parent; without parents there are none
        if node != focus_id and target.parents:
            if any(parent in target.parents for parent in entity.parents):
                relationships.siblings.append(node)

    return relationships


def partner_pairs(G: nx.DiGraph) -> list[tuple[str, str]]:
    """Return each partnership once as a sorted id pair, in discovery order."""
    pairs: dict[tuple[str, str], None] = {}
    for u, v, edata in G.edges(data=True):
        if edata.get("relationship_type") == "SPOUSE_OF":
            a, b = tuple(sorted([u, v], key=str))
            pairs.setdefault((a, b), None)
    return list(pairs)


def compute_generations(G: nx.DiGraph) -> dict[str, int]:
    """
    Compute the generation depth of every entity along PARENT_OF edges.

    Entities without recorded parents are generation 0; everyone else sits one
    below their deepest parent. If the parent edges contain a cycle, every
    entity falls back to generation 0.
    """
    parent_graph = nx.DiGraph()
    parent_graph.add_nodes_from(G.nodes())
    parent_graph.add_edges_from(
        (u, v) for u, v, d in G.edges(data=True) if d.get("relationship_type") == "PARENT_OF"
    )

    try:
        order = list(nx.topological_sort(parent_graph))
    except nx.NetworkXUnfeasible:
        logger.warning("Cycle in parent-child relationships; generations reset to 0")
        return {node: 0 for node in G.nodes()}

    generations: dict[str, int] = {}
    for node in order:
        parents = list(parent_graph.predecessors(node))
        generations[node] = max((generations[p] + 1 for p in parents), default=0)
    return generations


def _family_node(H: nx.DiGraph, members: tuple[str, ...]) -> str:
    fam_id = "FAM_" + "_".join(members)
    if fam_id not in H:
        H.add_node(fam_id, node_type="family", spouses=members)
        for member in members:
            H.add_edge(member, fam_id)
    return fam_id


def build_union_layout_graph(G: nx.DiGraph) -> nx.DiGraph:
    """
    Build a layout graph where each couple or single parent is one family node.

    Partners point into their family node and shared children hang from it, so
    a dot layout puts partners on one rank and siblings under one point.
    Family nodes carry their members under 'spouses'.
    """
    H = nx.DiGraph()
    H.add_nodes_from(G.nodes(), node_type="person")

    for pair in partner_pairs(G):
        _family_node(H, pair)

    for node, data in G.nodes(data=True):
        parents = sorted({p for p in data["entity"].parents if p in G}, key=str)
        if parents:
            H.add_edge(_family_node(H, tuple(parents)), node)

    return H
