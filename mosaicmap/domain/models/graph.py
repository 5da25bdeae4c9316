"""Domain models for the weighted region-adjacency graph."""
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from ...shared.exceptions import GraphError
from ...shared.utils.validation_utils import validate_non_negative_number


@dataclass(eq=False)
class Vertex:
    """One region of the input network.

    Vertices are addressed by their stable ``index`` inside the owning graph.
    Equality is identity; two vertices with the same label are still distinct.
    """
    index: int
    weight: float = 1.0
    label: Optional[str] = None
    position: Optional[Tuple[float, float]] = None
    edges: List['Edge'] = field(default_factory=list, repr=False)

    @property
    def degree(self) -> int:
        return len(self.edges)

    def neighbours(self) -> Iterator['Vertex']:
        for edge in self.edges:
            yield edge.other_vertex(self)

    def __str__(self) -> str:
        return self.label if self.label is not None else f"v{self.index}"


@dataclass(eq=False)
class Edge:
    """Undirected edge stored with a fixed start and end."""
    index: int
    start: Vertex
    end: Vertex
    weight: Optional[float] = None

    def other_vertex(self, vertex: Vertex) -> Vertex:
        """Get the endpoint opposite to ``vertex``.

        Raises:
            GraphError: If ``vertex`` is not incident to this edge
        """
        if vertex is self.start:
            return self.end
        if vertex is self.end:
            return self.start
        raise GraphError(
            f"Vertex {vertex} is not incident to edge {self.start}-{self.end}",
            vertex_index=vertex.index,
            details={'edge_index': self.index}
        )

    def is_incident(self, vertex: Vertex) -> bool:
        return vertex is self.start or vertex is self.end

    def length(self) -> float:
        """Euclidean distance between the endpoint positions (1.0 without positions)."""
        if self.start.position is None or self.end.position is None:
            return 1.0
        (x1, y1), (x2, y2) = self.start.position, self.end.position
        return math.hypot(x2 - x1, y2 - y1)


EdgeWeight = Callable[[Edge], float]


def LENGTH_WEIGHTS(edge: Edge) -> float:
    return edge.length()


def UNIT_WEIGHTS(edge: Edge) -> float:
    return 1.0


def EXPLICIT_WEIGHTS(edge: Edge) -> float:
    return edge.weight if edge.weight is not None else edge.length()


class WeightedGraph:
    """Arena of vertices and edges addressed by integer handles.

    Handles are assigned in insertion order and never reused; algorithms keep
    scratch arrays indexed by ``vertex.index``.
    """

    def __init__(self):
        self._vertices: List[Vertex] = []
        self._edges: List[Edge] = []
        self._adjacency: Dict[Tuple[int, int], Edge] = {}

    @classmethod
    def from_edges(cls, size: int, pairs, weights: Optional[List[float]] = None) -> 'WeightedGraph':
        """Build a graph with ``size`` unit-weight vertices and the given index pairs."""
        graph = cls()
        for _ in range(size):
            graph.add_vertex()
        for i, (u, v) in enumerate(pairs):
            weight = weights[i] if weights is not None else None
            graph.add_edge(graph.get_vertex(u), graph.get_vertex(v), weight)
        return graph

    def add_vertex(self, weight: float = 1.0, label: Optional[str] = None,
                   position: Optional[Tuple[float, float]] = None) -> Vertex:
        validate_non_negative_number(weight, "weight", allow_infinite=False)
        vertex = Vertex(index=len(self._vertices), weight=weight, label=label, position=position)
        self._vertices.append(vertex)
        return vertex

    def add_edge(self, u: Vertex, v: Vertex, weight: Optional[float] = None) -> Edge:
        """Connect two vertices of this graph.

        Raises:
            GraphError: On self loops, duplicate edges or foreign vertices
            ValidationError: On a negative or NaN weight
        """
        self._check_owned(u)
        self._check_owned(v)
        if u is v:
            raise GraphError(f"Self loop on vertex {u} is not allowed", vertex_index=u.index)
        if self.has_edge(u, v):
            raise GraphError(f"Edge {u}-{v} already exists", vertex_index=u.index)
        if weight is not None:
            validate_non_negative_number(weight, "weight")

        edge = Edge(index=len(self._edges), start=u, end=v, weight=weight)
        self._edges.append(edge)
        u.edges.append(edge)
        v.edges.append(edge)
        self._adjacency[self._key(u, v)] = edge
        return edge

    def get_vertex(self, index: int) -> Vertex:
        if index < 0 or index >= len(self._vertices):
            raise GraphError(f"Unknown vertex handle {index}", vertex_index=index)
        return self._vertices[index]

    def get_edge(self, index: int) -> Edge:
        if index < 0 or index >= len(self._edges):
            raise GraphError(f"Unknown edge handle {index}", details={'edge_index': index})
        return self._edges[index]

    @property
    def vertices(self) -> List[Vertex]:
        return list(self._vertices)

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges)

    def neighbours(self, vertex: Vertex) -> List[Vertex]:
        return list(vertex.neighbours())

    def has_edge(self, u: Vertex, v: Vertex) -> bool:
        return self._key(u, v) in self._adjacency

    def edge_between(self, u: Vertex, v: Vertex) -> Optional[Edge]:
        return self._adjacency.get(self._key(u, v))

    def degree(self, vertex: Vertex) -> int:
        return vertex.degree

    def number_of_vertices(self) -> int:
        return len(self._vertices)

    def number_of_edges(self) -> int:
        return len(self._edges)

    def __len__(self) -> int:
        return len(self._vertices)

    def __iter__(self) -> Iterator[Vertex]:
        return iter(self._vertices)

    @staticmethod
    def _key(u: Vertex, v: Vertex) -> Tuple[int, int]:
        return (u.index, v.index) if u.index < v.index else (v.index, u.index)

    def _check_owned(self, vertex: Vertex) -> None:
        if vertex.index >= len(self._vertices) or self._vertices[vertex.index] is not vertex:
            raise GraphError(f"Vertex {vertex} does not belong to this graph",
                             vertex_index=vertex.index)
