"""Graph algorithms and grid moves."""
from .priority_queue import Indexable, BasicIndexable, IndexedPriorityQueue
from .spanning_tree import MinimumSpanningTree, DirectedTreeNode
from .shortest_path import DijkstraShortestPath, PathResult
from .min_cost_flow import FlowArc, FlowNetwork, FlowStatus, SuccessiveShortestPathFlow

__all__ = [
    'Indexable', 'BasicIndexable', 'IndexedPriorityQueue',
    'MinimumSpanningTree', 'DirectedTreeNode',
    'DijkstraShortestPath', 'PathResult',
    'FlowArc', 'FlowNetwork', 'FlowStatus', 'SuccessiveShortestPathFlow'
]
