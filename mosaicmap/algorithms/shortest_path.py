"""Dijkstra shortest paths with detour and length-cap queries."""
import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from .priority_queue import Indexable, IndexedPriorityQueue
from ..domain.models.graph import Edge, EdgeWeight, LENGTH_WEIGHTS, Vertex, WeightedGraph

logger = logging.getLogger(__name__)


@dataclass
class PathResult:
    """Edges of a shortest path (in walking order) and its total length."""
    edges: List[Edge]
    length: float


class _IndexedVertex(Indexable):

    def __init__(self, vertex: Vertex):
        self.vertex = vertex
        self.index = -1
        self.distance = math.inf
        self.previous_edge: Optional[Edge] = None


def _distance(state: _IndexedVertex) -> float:
    return state.distance


class DijkstraShortestPath:
    """Shortest-path queries against an unchanging graph.

    Every query resets its scratch state before returning, so one instance can
    answer any number of independent queries (but not concurrently).
    Unreachable targets are reported as ``None`` paths and ``inf`` lengths.
    Edges with infinite weight are never used.
    """

    def __init__(self, graph: WeightedGraph, weights: EdgeWeight = LENGTH_WEIGHTS):
        self.graph = graph
        self.weights = weights
        self._states = [_IndexedVertex(v) for v in graph.vertices]

    def compute_shortest_path(self, source: Vertex, target: Vertex,
                              length_cap: float = math.inf) -> Optional[List[Edge]]:
        """Edges of a shortest path from ``source`` to ``target``, or None."""
        result = self.compute_shortest_path_and_length(source, target, length_cap)
        return None if result is None else result.edges

    def compute_shortest_path_and_length(self, source: Vertex, target: Vertex,
                                         length_cap: float = math.inf) -> Optional[PathResult]:
        try:
            self._run(source, target, None, length_cap)
            return self._result(source, target, length_cap)
        finally:
            self._clean()

    def compute_shortest_path_length(self, source: Vertex, target: Vertex,
                                     length_cap: float = math.inf) -> float:
        """Length of a shortest path, ``inf`` when unreachable within the cap."""
        result = self.compute_shortest_path_and_length(source, target, length_cap)
        return math.inf if result is None else result.length

    def compute_shortest_detour(self, edge: Edge, length_cap: float = math.inf) -> Optional[List[Edge]]:
        """Shortest path between the endpoints of ``edge`` that avoids ``edge``."""
        result = self.compute_shortest_detour_and_length(edge, length_cap)
        return None if result is None else result.edges

    def compute_shortest_detour_and_length(self, edge: Edge,
                                           length_cap: float = math.inf) -> Optional[PathResult]:
        try:
            self._run(edge.start, edge.end, edge, length_cap)
            return self._result(edge.start, edge.end, length_cap)
        finally:
            self._clean()

    def compute_shortest_detour_length(self, edge: Edge, length_cap: float = math.inf) -> float:
        result = self.compute_shortest_detour_and_length(edge, length_cap)
        return math.inf if result is None else result.length

    def _run(self, source: Vertex, target: Vertex, ignore: Optional[Edge], length_cap: float) -> None:
        first = self._states[source.index]
        first.distance = 0.0
        queue = IndexedPriorityQueue(_distance, [first])

        while not queue.is_empty():
            state = queue.poll()
            if state.vertex is target or state.distance > length_cap:
                break

            for edge in state.vertex.edges:
                if edge is ignore:
                    continue
                w = self.weights(edge)
                if not math.isfinite(w):
                    continue
                neighbour = self._states[edge.other_vertex(state.vertex).index]
                distance = state.distance + w
                if math.isinf(neighbour.distance):
                    neighbour.distance = distance
                    neighbour.previous_edge = edge
                    queue.add(neighbour)
                elif distance < neighbour.distance and queue.contains(neighbour):
                    neighbour.distance = distance
                    neighbour.previous_edge = edge
                    queue.priority_increased(neighbour)

    def _result(self, source: Vertex, target: Vertex, length_cap: float) -> Optional[PathResult]:
        if source is target:
            return PathResult([], 0.0)
        end = self._states[target.index]
        if end.previous_edge is None or end.distance > length_cap:
            return None

        edges = []
        vertex = target
        while vertex is not source:
            edge = self._states[vertex.index].previous_edge
            edges.append(edge)
            vertex = edge.other_vertex(vertex)
        edges.reverse()
        return PathResult(edges, end.distance)

    def _clean(self) -> None:
        for state in self._states:
            state.distance = math.inf
            state.previous_edge = None
            state.index = -1
