"""Graph validation for family chart records."""

import networkx as nx

from .models import extract_year


def _year(date_str: str | None) -> int | None:
    year = extract_year(date_str)
    return int(year) if len(year) == 4 and year.isdigit() else None


def validate_graph(G: nx.DiGraph) -> list[str]:
    """
    Validate the relationship graph for:
    - Cycles in parent-child relationships
    - Impossible ages (child born before parent)
    - Death before birth
    - Parent or partner ids that reference no entity

    Returns a list of warning messages.
    """
    warnings: list[str] = []

    parent_edges = [
        (u, v) for u, v, d in G.edges(data=True) if d.get("relationship_type") == "PARENT_OF"
    ]
    parent_graph = nx.DiGraph(parent_edges)

    try:
        cycle = nx.find_cycle(parent_graph, orientation="original")
        cycle_nodes = [edge[0] for edge in cycle]
        warnings.append(f"Cycle detected in parent-child relationships: {cycle_nodes}")
    except nx.NetworkXNoCycle:
        pass

    # Dates are free-form, so only whole years are compared
    for parent, child, data in G.edges(data=True):
        if data.get("relationship_type") != "PARENT_OF":
            continue

        parent_entity = G.nodes[parent]["entity"]
        child_entity = G.nodes[child]["entity"]

        parent_year = _year(parent_entity.birth_date)
        child_year = _year(child_entity.birth_date)

        if parent_year and child_year:
            if child_year < parent_year:
                warnings.append(
                    f"Impossible: {child_entity.name} born before parent {parent_entity.name}"
                )
            elif child_year - parent_year < 12:
                warnings.append(
                    f"Suspicious: {parent_entity.name} was less than 12 years "
                    f"old when {child_entity.name} was born"
                )

    for node, data in G.nodes(data=True):
        entity = data["entity"]
        birth = _year(entity.birth_date)
        death = _year(entity.death_date)

        if birth and death and death < birth:
            warnings.append(f"Impossible: {entity.name} died before being born")

        for ref in [*entity.parents, *entity.partners]:
            if ref not in G:
                warnings.append(f"Dangling reference: {entity.name} ({node}) refers to unknown '{ref}'")

    return warnings
