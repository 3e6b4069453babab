# tests/graphs/test_topology_graph.py
import pytest

from transit_grid.domain.accessability import ReachableNodes, UnreachableNodes
from transit_grid.domain.errors import DuplicateId, InconsistentTopology, NotFound, UnknownNode
from transit_grid.graphs.topology import Direction, TopologyGraph


def make(*node_ids):
    t = TopologyGraph()
    for n in node_ids:
        t.add_node(n)
    return t


def test_every_node_owns_two_halves():
    t = make(1, 2)
    assert t.id_to_index(1) == (0, 1)
    assert t.id_to_index(2) == (2, 3)
    assert t.add_node(1) == (0, 1)  # idempotent
    assert t.node_count() == 4
    assert t.get_other_toponode(0) == 1
    assert t.get_other_toponode(3) == 2
    assert t.get_other_toponode(42) is None
    assert t.index_to_id(3) == 2
    with pytest.raises(UnknownNode):
        t.id_to_index(9)
    with pytest.raises(NotFound):
        t.index_to_id(9)


def test_add_edge_creates_mirrored_dual_pair():
    t = make(1, 2)
    fwd, dual = t.add_edge(10, 1, 2)

    assert t.edge_endpoints(fwd) == (0, 2)
    assert t.edge_endpoints(dual) == (3, 1)
    assert t.edge(fwd).dual == dual and t.edge(dual).dual == fwd
    assert t.edges_of(10) == (fwd, dual)
    assert t.edge(dual).source == 2 and t.edge(dual).target == 1
    assert t.skew_violations() == []
    assert [t.has_incoming(i) for i in range(4)] == [False, True, True, False]


def test_add_edge_rejects_duplicates_and_unknown_nodes():
    t = make(1, 2)
    t.add_edge(10, 1, 2)
    with pytest.raises(DuplicateId):
        t.add_edge(10, 2, 1)
    with pytest.raises(UnknownNode):
        t.add_edge(11, 1, 42)
    assert t.edge_count() == 2


def test_reverse_dual_edge():
    t = make(1, 2)
    fwd, dual = t.add_edge(10, 1, 2)
    assert t.reverse_dual_edge(1, 2) == [10]

    assert t.edge_endpoints(fwd) == (2, 0)
    assert t.edge_endpoints(dual) == (1, 3)
    assert t.edge(fwd).reversed and t.edge(dual).reversed
    assert [t.has_incoming(i) for i in range(4)] == [True, False, False, True]
    assert t.skew_violations() == []

    t.reverse_edge(fwd)
    assert t.edge_endpoints(fwd) == (0, 2)
    assert not t.edge(fwd).reversed


def test_cross_link_dual_edge():
    t = make(1, 2)
    fwd, dual = t.add_edge(10, 1, 2)
    assert t.cross_link_dual_edge(1, 2) == [10]

    assert t.edge_endpoints(fwd) == (0, 3)
    assert t.edge_endpoints(dual) == (2, 1)
    assert t.edge(fwd).cross_linked
    assert [t.has_incoming(i) for i in range(4)] == [False, True, False, True]
    assert t.skew_violations() == []

    t.cross_link(fwd, dual)
    assert t.edge_endpoints(fwd) == (0, 2)
    assert t.edge_endpoints(dual) == (3, 1)


def test_link_dual_edges_checks_the_mirror():
    t = make(1, 2)
    a = t.add_directed_edge(10, 0, 2)
    wrong = t.add_directed_edge(11, 3, 1)
    with pytest.raises(InconsistentTopology):
        t.link_dual_edges(a, wrong)
    assert a in t.skew_violations()

    b = t.add_directed_edge(10, 3, 1)
    t.link_dual_edges(a, b)
    assert t.edge(a).dual == b and t.edge(b).dual == a
    assert t.skew_violations() == [wrong]
    with pytest.raises(InconsistentTopology):
        t.check_skew_symmetry()
    with pytest.raises(DuplicateId):
        t.add_directed_edge(10, 1, 3)


def test_no_edges_in_direction():
    t = make(1, 2, 3)
    t.add_edge(1, 1, 2)  # 0 -> 2, 3 -> 1
    t.add_edge(2, 1, 3)  # 0 -> 4, 5 -> 1

    assert not t.no_edges_in_direction(0, [2], Direction.OUTGOING)
    assert not t.no_edges_in_direction(0, [2, 3], Direction.OUTGOING)
    assert t.no_edges_in_direction(2, [1], Direction.OUTGOING)
    assert not t.no_edges_in_direction(2, [1], Direction.INCOMING)
    assert not t.no_edges_in_direction(1, [2, 3], Direction.INCOMING)
    assert t.no_edges_in_direction(0, [], Direction.OUTGOING)


def test_find_node_index_with_edges():
    t = make(1, 2)
    t.add_edge(1, 1, 2)  # 0 -> 2, 3 -> 1

    # a half of 1 that nothing from 2 arrives on
    assert t.find_node_index_with_edges(1, [2], Direction.OUTGOING) == 0
    # a half of 1 with no edge out to 2
    assert t.find_node_index_with_edges(1, [2], Direction.INCOMING) == 1
    assert t.find_node_index_with_edges(2, [1], Direction.OUTGOING) == 3

    t.add_edge(2, 1, 2)  # 0 -> 3, 2 -> 1
    assert t.find_node_index_with_edges(2, [1], Direction.OUTGOING) is None


def test_accessability_that_no_half_admits_is_rejected():
    t = make(1, 2)
    t.add_edge(1, 1, 2)
    t.add_edge(2, 1, 2)
    with pytest.raises(InconsistentTopology):
        t.add_edge(3, 2, 1, ReachableNodes([1]))
    assert t.edge_count() == 4
    assert not t.has_edge_id(3)


def test_reachable_edge_continues_from_listed_nodes():
    t = make(0, 1, 2)
    t.add_edge(1, 0, 1)  # 0 -> 2
    fwd, _ = t.add_edge(12, 1, 2, ReachableNodes([0]))
    # leaves the half that travellers from node 0 arrive on
    assert t.edge_endpoints(fwd) == (2, 4)
    assert t.edge_is_in_neighbors_direction(fwd, node=1)


def test_unreachable_edge_leaves_the_other_half():
    t = make(1, 2, 3)
    t.add_edge(12, 1, 2, UnreachableNodes([]))  # 0 -> 2, 3 -> 1
    fwd, dual = t.add_edge(23, 2, 3, UnreachableNodes([1]))
    assert t.edge_endpoints(fwd) == (3, 4)
    assert t.edge_endpoints(dual) == (5, 2)
    # half 2 is where travellers from 1 arrive; nothing leaves it
    assert t.out_edges(2) == []
    assert t.skew_violations() == []


def test_edge_is_in_neighbors_direction():
    t = make(1, 2, 3)
    a, _ = t.add_edge(12, 1, 2, UnreachableNodes([]))  # 0 -> 2
    b, _ = t.add_edge(23, 2, 3, ReachableNodes([1]))  # 2 -> 4
    assert t.edge_endpoints(b) == (2, 4)

    assert not t.edge_is_in_neighbors_direction(a)  # nothing arrives at 1
    assert t.edge_is_in_neighbors_direction(a, node=2)
    assert not t.edge_is_in_neighbors_direction(a, node=1)
    assert not t.edge_is_in_neighbors_direction(b)  # nothing leaves 3
    assert t.edge_is_in_neighbors_direction(b, node=2)
    with pytest.raises(ValueError):
        t.edge_is_in_neighbors_direction(a, node=3)


def test_dual_pairs_groups_parallel_edges():
    t = make(1, 2)
    t.add_edge(1, 1, 2)
    t.add_edge(2, 2, 1)
    assert t.find_edge_indices(1, 2) == [0, 1, 2, 3]
    assert t.dual_pairs(2, 1) == [(0, 1), (2, 3)]

    t.add_directed_edge(3, 0, 3)
    with pytest.raises(InconsistentTopology):
        t.dual_pairs(1, 2)


def test_remove_edge_pair_and_node():
    t = make(1, 2)
    t.add_edge(1, 1, 2)
    with pytest.raises(InconsistentTopology):
        t.remove_node(2)
    t.remove_edge_pair(1)
    assert t.edge_count() == 0 and not t.has_edge_id(1)
    t.remove_node(2)
    assert not t.has_node(2)
    assert t.get_other_toponode(2) is None


def test_view_carries_owner_and_dual():
    t = make(1, 2)
    fwd, dual = t.add_edge(10, 1, 2)
    view = t.as_view()
    assert view.nodes[3]["node_id"] == 2
    assert view.edges[0, 2, fwd]["dual"] == dual
    assert view.edges[3, 1, dual]["edge_id"] == 10
