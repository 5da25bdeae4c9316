"""Minimum-cost flow by successive shortest paths.

Nodes with a finite throughput capacity are split into an in-node and an
out-node joined by an arc of that capacity. Arcs with negative cost are
saturated up front and replaced by their reverse, so every Dijkstra run over
the residual network sees non-negative reduced costs.
"""
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .priority_queue import Indexable, IndexedPriorityQueue
from ..shared.exceptions import GraphError
from ..shared.utils.validation_utils import validate_non_negative_number

logger = logging.getLogger(__name__)


class FlowStatus(Enum):
    FEASIBLE = "feasible"
    EXCESS = "excess"
    DEFICIT = "deficit"
    EXCESS_AND_DEFICIT = "excess_and_deficit"


@dataclass
class FlowArc:
    """Directed arc of a flow network; ``flow`` is set by the solver."""
    source: int
    target: int
    capacity: float
    cost: float
    flow: float = 0


class FlowNetwork:
    """Directed network with integral node supplies.

    A positive supply must leave its node, a negative supply (a demand) must
    arrive there. Nodes may limit the flow passing through them.
    """

    def __init__(self):
        self.supplies: List[int] = []
        self.capacities: List[float] = []
        self.arcs: List[FlowArc] = []

    def add_node(self, supply: int = 0, capacity: float = math.inf) -> int:
        """Add a node and return its handle."""
        validate_non_negative_number(capacity, "capacity")
        self.supplies.append(supply)
        self.capacities.append(capacity)
        return len(self.supplies) - 1

    def add_arc(self, source: int, target: int, capacity: float = math.inf, cost: float = 0) -> FlowArc:
        """Add an arc from ``source`` to ``target``.

        Raises:
            GraphError: If either node handle is unknown
            ValidationError: If the capacity is negative
        """
        for node in (source, target):
            if not 0 <= node < len(self.supplies):
                raise GraphError(f"Unknown flow node {node}", vertex_index=node)
        validate_non_negative_number(capacity, "capacity")
        arc = FlowArc(source, target, capacity, cost)
        self.arcs.append(arc)
        return arc

    def number_of_nodes(self) -> int:
        return len(self.supplies)

    def number_of_arcs(self) -> int:
        return len(self.arcs)

    def shift_costs_non_negative(self) -> float:
        """Raise every arc cost by the same amount so that none is negative.

        Returns:
            The amount added, 0 when no cost was negative
        """
        if not self.arcs:
            return 0
        shift = -min(arc.cost for arc in self.arcs)
        if shift <= 0:
            return 0
        for arc in self.arcs:
            arc.cost += shift
        return shift


class _NodeState(Indexable):

    def __init__(self, node: int):
        self.node = node
        self.index = -1
        self.distance = math.inf
        self.previous_arc = -1


def _distance(state: _NodeState) -> float:
    return state.distance


class SuccessiveShortestPathFlow:
    """Minimum-cost flow solver for a ``FlowNetwork``.

    Repeatedly sends flow from a node with excess along a cheapest residual
    path to the nearest node with a deficit. Excess that cannot reach any
    deficit stays where it is and is reported through the status; the flow
    that was routed is still of minimum cost for its amount.
    """

    def __init__(self, network: FlowNetwork):
        self.network = network
        self.status: Optional[FlowStatus] = None
        self._head: List[int] = []
        self._residual: List[float] = []
        self._cost: List[float] = []
        self._out: List[List[int]] = []
        self._imbalance: List[float] = []
        self._arc_ids: List[int] = []

    def solve(self) -> FlowStatus:
        """Compute the flow and store it in the ``flow`` field of every arc.

        Raises:
            GraphError: If an arc with negative cost has unbounded capacity
        """
        self._build()
        potential = [0.0] * len(self._out)
        blocked = set()
        paths = 0
        while True:
            source = next((v for v, b in enumerate(self._imbalance) if b > 0 and v not in blocked), None)
            if source is None:
                break
            states = self._shortest_paths(source, potential)
            sinks = [s for s in states if self._imbalance[s.node] < 0 and math.isfinite(s.distance)]
            if not sinks:
                blocked.add(source)
                continue
            sink = min(sinks, key=_distance).node

            reached = max(s.distance for s in states if math.isfinite(s.distance))
            for state in states:
                potential[state.node] += min(state.distance, reached)
            self._augment(source, sink, states)
            blocked.clear()
            paths += 1

        self._store_flows()
        excess = any(b > 0 for b in self._imbalance)
        deficit = any(b < 0 for b in self._imbalance)
        if excess and deficit:
            self.status = FlowStatus.EXCESS_AND_DEFICIT
        elif excess:
            self.status = FlowStatus.EXCESS
        elif deficit:
            self.status = FlowStatus.DEFICIT
        else:
            self.status = FlowStatus.FEASIBLE
        logger.debug(f"Min-cost flow: {paths} augmenting path(s), status {self.status.value}")
        return self.status

    def total_cost(self) -> float:
        return sum(arc.flow * arc.cost for arc in self.network.arcs)

    def _build(self) -> None:
        network = self.network
        self._head, self._residual, self._cost, self._out = [], [], [], []
        self._imbalance, self._arc_ids = [], []
        incoming, outgoing = [], []
        for node in range(network.number_of_nodes()):
            supply = network.supplies[node]
            capacity = network.capacities[node]
            if math.isinf(capacity):
                v = self._add_node(supply)
                incoming.append(v)
                outgoing.append(v)
            else:
                v_in = self._add_node(min(supply, 0))
                v_out = self._add_node(max(supply, 0))
                self._add_arc(v_in, v_out, capacity, 0)
                incoming.append(v_in)
                outgoing.append(v_out)

        for arc in network.arcs:
            source, target = outgoing[arc.source], incoming[arc.target]
            if arc.cost >= 0:
                self._arc_ids.append(self._add_arc(source, target, arc.capacity, arc.cost))
                continue
            if math.isinf(arc.capacity):
                raise GraphError(f"Arc {arc.source}->{arc.target} has negative cost and unbounded capacity",
                                 details={'cost': arc.cost})
            self._arc_ids.append(self._add_arc(target, source, arc.capacity, -arc.cost))
            self._imbalance[source] -= arc.capacity
            self._imbalance[target] += arc.capacity

    def _add_node(self, supply: float) -> int:
        self._out.append([])
        self._imbalance.append(supply)
        return len(self._out) - 1

    def _add_arc(self, source: int, target: int, capacity: float, cost: float) -> int:
        # Residual pairs: arc i and its reverse i ^ 1.
        arc = len(self._head)
        self._head.extend((target, source))
        self._residual.extend((capacity, 0))
        self._cost.extend((cost, -cost))
        self._out[source].append(arc)
        self._out[target].append(arc + 1)
        return arc

    def _shortest_paths(self, source: int, potential: List[float]) -> List[_NodeState]:
        states = [_NodeState(v) for v in range(len(self._out))]
        first = states[source]
        first.distance = 0.0
        queue = IndexedPriorityQueue(_distance, [first])

        while not queue.is_empty():
            state = queue.poll()
            u = state.node
            for arc in self._out[u]:
                if self._residual[arc] <= 0:
                    continue
                v = self._head[arc]
                neighbour = states[v]
                distance = state.distance + self._cost[arc] + potential[u] - potential[v]
                if math.isinf(neighbour.distance):
                    neighbour.distance = distance
                    neighbour.previous_arc = arc
                    queue.add(neighbour)
                elif distance < neighbour.distance and queue.contains(neighbour):
                    neighbour.distance = distance
                    neighbour.previous_arc = arc
                    queue.priority_increased(neighbour)
        return states

    def _augment(self, source: int, sink: int, states: List[_NodeState]) -> None:
        path = []
        v = sink
        while v != source:
            arc = states[v].previous_arc
            path.append(arc)
            v = self._head[arc ^ 1]
        delta = min(self._imbalance[source], -self._imbalance[sink],
                    min(self._residual[arc] for arc in path))
        for arc in path:
            self._residual[arc] -= delta
            self._residual[arc ^ 1] += delta
        self._imbalance[source] -= delta
        self._imbalance[sink] += delta

    def _store_flows(self) -> None:
        for arc, residual_arc in zip(self.network.arcs, self._arc_ids):
            pushed = self._residual[residual_arc ^ 1]
            arc.flow = pushed if arc.cost >= 0 else arc.capacity - pushed
