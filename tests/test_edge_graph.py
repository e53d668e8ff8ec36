"""Tests for the edge graph."""

import pytest

from py_hexworld.core.edge_graph import EdgeGraph
from py_hexworld.core.hexgrid import DIRECTION_ORDER, OPPOSITE_DIRECTIONS, HexGrid


class TestEdgeGraph:
    """Test edge construction and linking."""

    @pytest.fixture
    def grid(self):
        return HexGrid.from_size(5)

    @pytest.fixture
    def graph(self, grid):
        graph = EdgeGraph(grid)
        graph.build()
        return graph

    def test_one_edge_per_adjacent_pair(self, grid, graph):
        pairs = set()
        for index in range(grid.n_hexes):
            for neighbor in grid.iter_neighbors(index):
                pairs.add(frozenset((index, neighbor)))
        assert graph.n_edges == len(pairs)

        built = {frozenset((int(a), int(b))) for a, b in zip(graph.h1, graph.h2)}
        assert len(built) == graph.n_edges

    def test_edge_count_boundary_effect(self, grid, graph):
        """Each pole row loses two directed slots per column."""
        assert graph.n_edges == 3 * grid.n_hexes - 2 * grid.width

    def test_shared_slots(self, grid, graph):
        for index in range(grid.n_hexes):
            for direction in DIRECTION_ORDER:
                neighbor = grid.neighbor_indices[index, direction]
                edge_id = graph.hex_edges[index, direction]
                if neighbor < 0:
                    assert edge_id == -1
                else:
                    assert graph.hex_edges[neighbor, OPPOSITE_DIRECTIONS[direction]] == edge_id

    def test_ids_increase(self, graph):
        assert list(graph.h1) == sorted(graph.h1)

    def test_edge_between(self, grid, graph):
        a = grid.at(2, 2).index
        b = grid.at(2, 3).index
        edge_id = graph.edge_between(a, b)
        assert edge_id is not None
        assert graph.edge_between(b, a) == edge_id
        assert graph.edge_between(a, grid.at(7, 2).index) is None

    def test_opposite_hexes(self, grid, graph):
        edge = graph.edge(graph.edge_between(grid.at(2, 2).index, grid.at(2, 3).index))
        # S edge of an even column hex: endpoints touch the SW and SE neighbors
        assert {edge.o1, edge.o2} == {grid.at(1, 2).index, grid.at(3, 2).index}

    def test_neighbor_edges_touch_endpoints(self, grid, graph):
        for edge_id in range(graph.n_edges):
            edge = graph.edge(edge_id)
            if edge.o1 < 0 or edge.o2 < 0:
                continue
            neighbors = graph.neighbor_edges(edge_id)
            assert len(neighbors) == 4
            for other_id in neighbors:
                other = graph.edge(other_id)
                hexes = {other.h1, other.h2}
                assert hexes & {edge.h1, edge.h2}
                assert hexes & {edge.o1, edge.o2}

    def test_edges_for_hex(self, grid, graph):
        edges = graph.edges_for_hex(grid.at(4, 0).index)
        assert sum(1 for e in edges.values() if e is None) == 3

    def test_unknown_edge(self, graph):
        with pytest.raises(ValueError):
            graph.edge(graph.n_edges)
        with pytest.raises(ValueError):
            graph.edge(-1)
