"""Prim's minimum spanning tree and forest over a WeightedGraph."""
import logging
import math
from typing import List, Optional

from .priority_queue import Indexable, IndexedPriorityQueue
from ..domain.models.graph import Edge, EdgeWeight, LENGTH_WEIGHTS, Vertex, WeightedGraph
from ..shared.exceptions import GraphError

logger = logging.getLogger(__name__)


class DirectedTreeNode:
    """Node of a rooted spanning tree.

    ``incoming_edge`` is the tree edge from the parent, None for the root.
    """

    def __init__(self, vertex: Vertex, incoming_edge: Optional[Edge] = None):
        self.vertex = vertex
        self.incoming_edge = incoming_edge
        self.children: List['DirectedTreeNode'] = []

    def is_root(self) -> bool:
        return self.incoming_edge is None

    def is_leaf(self) -> bool:
        return not self.children

    def degree(self) -> int:
        """Number of children."""
        return len(self.children)

    def outgoing_edges(self) -> List[Edge]:
        return [child.incoming_edge for child in self.children]

    def child_vertices(self) -> List[Vertex]:
        return [child.vertex for child in self.children]

    def all_vertices_in_subtree(self) -> List[Vertex]:
        """Vertices of the subtree in pre-order, starting with this node."""
        vertices = []
        stack = [self]
        while stack:
            node = stack.pop()
            vertices.append(node.vertex)
            stack.extend(reversed(node.children))
        return vertices

    def all_edges_in_subtree(self) -> List[Edge]:
        """Tree edges below this node in pre-order."""
        edges = []
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            edges.append(node.incoming_edge)
            stack.extend(reversed(node.children))
        return edges

    def __repr__(self) -> str:
        return f"DirectedTreeNode({self.vertex}, children={len(self.children)})"


class _VertexState(Indexable):

    def __init__(self, vertex: Vertex):
        self.vertex = vertex
        self.index = -1
        self.incoming_edge: Optional[Edge] = None
        self.incoming_weight = math.inf
        self.tree_node: Optional[DirectedTreeNode] = None

    def reset(self) -> None:
        self.incoming_edge = None
        self.incoming_weight = math.inf
        self.tree_node = None


def _incoming_weight(state: _VertexState) -> float:
    return state.incoming_weight


class MinimumSpanningTree:
    """Prim's algorithm with an indexed priority queue.

    The graph must not gain or lose vertices while this object is in use;
    build a new instance instead. Instances keep per-query scratch state and
    are not safe for concurrent queries.
    """

    def __init__(self, graph: WeightedGraph, weights: EdgeWeight = LENGTH_WEIGHTS):
        """Initialize the algorithm.

        Args:
            graph: Graph to span
            weights: Edge weight function; infinite weights mark unusable edges
        """
        self.graph = graph
        self.weights = weights
        self._states = [_VertexState(v) for v in graph.vertices]
        self.weight_of_last_query = math.nan

    def compute_minimum_spanning_forest(self) -> List[DirectedTreeNode]:
        """Compute one spanning tree per connected component.

        Returns:
            Root nodes, one per component, in the order they were discovered
        """
        for state in self._states:
            state.reset()
        queue = IndexedPriorityQueue(_incoming_weight, self._states)

        total = 0.0
        roots = []
        while not queue.is_empty():
            state = queue.poll()
            if math.isfinite(state.incoming_weight):
                total += state.incoming_weight
            self._attach(state, roots)

            for edge in state.vertex.edges:
                neighbour = self._states[edge.other_vertex(state.vertex).index]
                if queue.contains(neighbour):
                    w = self.weights(edge)
                    if w < neighbour.incoming_weight:
                        neighbour.incoming_edge = edge
                        neighbour.incoming_weight = w
                        queue.priority_increased(neighbour)

        self.weight_of_last_query = total
        logger.debug(f"Spanning forest: {len(roots)} component(s), weight {total:.3f}")
        return roots

    def compute_minimum_spanning_tree(self, root: Vertex) -> DirectedTreeNode:
        """Compute the spanning tree of the component containing ``root``.

        Only vertices reachable from ``root`` enter the queue.

        Raises:
            GraphError: If ``root`` is not a vertex of the graph
        """
        if self.graph.get_vertex(root.index) is not root:
            raise GraphError(f"Vertex {root} does not belong to the graph", vertex_index=root.index)

        for state in self._states:
            state.reset()
        start = self._states[root.index]
        start.incoming_weight = 0.0
        queue = IndexedPriorityQueue(_incoming_weight, [start])

        total = 0.0
        while not queue.is_empty():
            state = queue.poll()
            total += state.incoming_weight
            self._attach(state, None)

            for edge in state.vertex.edges:
                neighbour = self._states[edge.other_vertex(state.vertex).index]
                w = self.weights(edge)
                if not math.isfinite(w):
                    continue
                queued = queue.contains(neighbour)
                if queued and w < neighbour.incoming_weight:
                    neighbour.incoming_edge = edge
                    neighbour.incoming_weight = w
                    queue.priority_increased(neighbour)
                elif not queued and neighbour.tree_node is None and math.isinf(neighbour.incoming_weight):
                    neighbour.incoming_edge = edge
                    neighbour.incoming_weight = w
                    queue.add(neighbour)

        self.weight_of_last_query = total
        return start.tree_node

    def _attach(self, state: _VertexState, roots: Optional[List[DirectedTreeNode]]) -> None:
        state.tree_node = DirectedTreeNode(state.vertex, state.incoming_edge)
        if state.incoming_edge is None:
            if roots is not None:
                roots.append(state.tree_node)
        else:
            parent = state.incoming_edge.other_vertex(state.vertex)
            self._states[parent.index].tree_node.children.append(state.tree_node)
