import pytest

from key_extractor.graph import build_links, connected_sets, sub_graph


def test_build_links(make_fragment):
    parts = [
        make_fragment(0, 0, 0, 2, 10),
        make_fragment(1, 6, 0, 2, 10),  # gap 4 to part 0
        make_fragment(2, 30, 0, 2, 10),  # far away
    ]
    graph = build_links(parts, max_gap=5.0)

    assert set(graph.nodes) == {0, 1, 2}
    assert graph.has_edge(0, 1)
    assert not graph.has_edge(1, 2)
    assert graph.edges[0, 1]["distance"] == pytest.approx(4.0)
    assert graph.nodes[2]["fragment"] is parts[2]


def test_build_links_empty():
    assert build_links([], max_gap=5.0).number_of_nodes() == 0


def test_connected_sets_and_sub_graph(make_fragment):
    parts = [
        make_fragment(3, 40, 0, 2, 10),
        make_fragment(0, 0, 0, 2, 10),
        make_fragment(1, 4, 0, 2, 10),
        make_fragment(2, 8, 0, 2, 10),
    ]
    graph = build_links(parts, max_gap=3.0)

    sets = connected_sets(graph)
    assert sets == [{0, 1, 2}, {3}]

    sub = sub_graph(sets[0], graph)
    assert set(sub.nodes) == {0, 1, 2}
    assert sub.number_of_edges() == 2
    sub.remove_node(0)
    assert graph.has_node(0)
