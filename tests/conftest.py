"""Test configuration and fixtures for mosaicmap."""
import pytest

from mosaicmap.domain.models import (
    HexagonalCartogram, HexCoordinate, SquareCartogram, SquareCoordinate, WeightedGraph
)


def hex_disk(radius, centre=None):
    centre = centre or HexCoordinate(0, 0, 0)
    return list(centre.disk(radius))


@pytest.fixture
def cycle_graph():
    """Four-cycle A-B-C-D-A with unit-length edges."""
    graph = WeightedGraph()
    a = graph.add_vertex(label="A", position=(0.0, 0.0))
    b = graph.add_vertex(label="B", position=(1.0, 0.0))
    c = graph.add_vertex(label="C", position=(1.0, 1.0))
    d = graph.add_vertex(label="D", position=(0.0, 1.0))
    graph.add_edge(a, b)
    graph.add_edge(b, c)
    graph.add_edge(c, d)
    graph.add_edge(d, a)
    return graph


@pytest.fixture
def pair_graph():
    """Two adjacent vertices: A wants 7 cells, B wants 1."""
    graph = WeightedGraph()
    a = graph.add_vertex(weight=7.0, label="A", position=(0.0, 0.0))
    b = graph.add_vertex(weight=1.0, label="B", position=(2.0, 0.0))
    graph.add_edge(a, b)
    return graph


@pytest.fixture
def hex_grid(pair_graph):
    """Valid hexagonal grid: A fills the 7-cell disk at the origin, B sits at (2, 0, 0).

    B touches A only through the cell (1, 0, 0).
    """
    grid = HexagonalCartogram(pair_graph)
    a, b = pair_graph.vertices
    for c in hex_disk(1):
        grid.set_vertex(c, a)
    grid.set_vertex(HexCoordinate(2, 0, 0), b)
    return grid


@pytest.fixture
def square_pair_grid():
    """Square grid with two single-cell regions side by side."""
    graph = WeightedGraph.from_edges(2, [(0, 1)])
    grid = SquareCartogram(graph)
    grid.set_vertex(SquareCoordinate(0, 0), graph.get_vertex(0))
    grid.set_vertex(SquareCoordinate(1, 0), graph.get_vertex(1))
    return grid
