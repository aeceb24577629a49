from key_extractor.cluster import GlyphCluster
from key_extractor.graph import build_links


class RecordingAdapter:
    def __init__(self, graph, max_width=1000, min_weight=0):
        self.graph = graph
        self.max_width = max_width
        self.min_weight = min_weight
        self.offered = []

    def is_too_small(self, bounds):
        return False

    def is_too_large(self, bounds):
        return bounds.w > self.max_width

    def is_too_light(self, weight):
        return weight < self.min_weight

    def is_too_heavy(self, weight):
        return False

    def evaluate_glyph(self, glyph):
        self.offered.append(glyph.parts)


def chain(make_fragment, count):
    # Fragments 2 px wide, 3 px apart: each one only links to its neighbors
    return [make_fragment(i, i * 5, 0, 2, 10) for i in range(count)]


def test_each_connected_subset_offered_once(make_fragment):
    adapter = RecordingAdapter(build_links(chain(make_fragment, 3), max_gap=3.0))

    GlyphCluster(adapter).decompose()

    offered = [tuple(sorted(p)) for p in adapter.offered]
    assert len(offered) == len(set(offered))
    # {0, 2} is not connected
    assert set(offered) == {(0,), (1,), (2,), (0, 1), (1, 2), (0, 1, 2)}


def test_triangle_subsets(make_fragment):
    parts = [make_fragment(0, 0, 0, 2, 2), make_fragment(1, 3, 0, 2, 2), make_fragment(2, 1, 3, 2, 2)]
    adapter = RecordingAdapter(build_links(parts, max_gap=5.0))

    count = GlyphCluster(adapter).decompose()

    assert count == 7
    assert len(adapter.offered) == 7


def test_too_large_stops_growth(make_fragment):
    # Any union of two neighbors is 7 px wide
    adapter = RecordingAdapter(build_links(chain(make_fragment, 4), max_gap=3.0), max_width=6)

    GlyphCluster(adapter).decompose()

    assert all(len(p) == 1 for p in adapter.offered)
    assert len(adapter.offered) == 4


def test_too_light_skips_evaluation_but_keeps_growing(make_fragment):
    # Single parts weigh 20, pairs weigh 40
    adapter = RecordingAdapter(build_links(chain(make_fragment, 2), max_gap=3.0), min_weight=30)

    GlyphCluster(adapter).decompose()

    assert adapter.offered == [frozenset({0, 1})]
