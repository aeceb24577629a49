"""Adjacency graph of fragments and its connected components.

Nodes are fragment indices (see ``FragmentArena``); each node carries the
fragment itself under the ``fragment`` attribute. Edges link fragments close
enough to belong to the same symbol and carry their ``distance``.
"""

import networkx as nx

from key_extractor.models import Fragment


def build_links(parts: list[Fragment], max_gap: float) -> nx.Graph:
    """Link every pair of fragments separated by no more than max_gap.

    Args:
        parts: Fragments to link.
        max_gap: Maximum distance in pixels between two linked bounding boxes.

    Returns:
        Undirected graph with one node per fragment.
    """
    graph = nx.Graph()
    for part in parts:
        graph.add_node(part.index, fragment=part)

    for i, part in enumerate(parts):
        for other in parts[i + 1 :]:
            gap = part.bounds.gap_to(other.bounds)
            if gap <= max_gap:
                graph.add_edge(part.index, other.index, distance=gap)

    return graph


def connected_sets(graph: nx.Graph) -> list[set[int]]:
    """Maximal connected node sets, ordered by their smallest index."""
    return sorted(nx.connected_components(graph), key=min)


def sub_graph(nodes: set[int], graph: nx.Graph) -> nx.Graph:
    """Independent copy of the subgraph induced by the given nodes."""
    return graph.subgraph(nodes).copy()
