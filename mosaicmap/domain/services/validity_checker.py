"""Domain service for checking the topological invariants of a cartogram."""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class ViolationType(Enum):
    DISCONNECTED = "disconnected"
    MISSING_ADJACENCY = "missing_adjacency"
    FOREIGN_ADJACENCY = "foreign_adjacency"
    EMPTY_REGION = "empty_region"


@dataclass(frozen=True)
class Violation:
    """One broken invariant of a region."""
    kind: ViolationType
    vertex: int
    message: str
    other_vertex: Optional[int] = None

    def __str__(self):
        return f"{self.kind.value.upper()}: {self.message}"


class ValidityChecker:
    """Reports why a cartogram is invalid.

    The cartogram's own ``is_valid`` answers yes or no; this service lists
    every violation so that callers can log them or compare the state before
    and after a move.
    """

    def __init__(self, report_empty_regions: bool = False):
        """Initialize checker.

        Args:
            report_empty_regions: Also report regions without cells
        """
        self.report_empty_regions = report_empty_regions

    def report(self, grid) -> List[Violation]:
        """Check every region of ``grid``."""
        violations = []
        for region in grid.regions():
            violations.extend(self.check_region(region))
        return violations

    def check_region(self, region) -> List[Violation]:
        vertex = region.vertex
        if region.size() == 0:
            if not self.report_empty_regions:
                return []
            return [Violation(ViolationType.EMPTY_REGION, vertex.index,
                              f"Region of {vertex} has no cells")]

        violations = []
        if not region.is_connected():
            violations.append(Violation(
                ViolationType.DISCONNECTED, vertex.index,
                f"Region of {vertex} ({region.size()} cells) is not connected"
            ))

        touching = region.neighbour_vertices
        for neighbour in vertex.neighbours():
            if neighbour not in touching:
                violations.append(Violation(
                    ViolationType.MISSING_ADJACENCY, vertex.index,
                    f"Region of {vertex} does not touch neighbour {neighbour}",
                    other_vertex=neighbour.index
                ))

        graph_neighbours = set(vertex.neighbours())
        for other in touching:
            if other not in graph_neighbours:
                violations.append(Violation(
                    ViolationType.FOREIGN_ADJACENCY, vertex.index,
                    f"Region of {vertex} touches non-neighbour {other}",
                    other_vertex=other.index
                ))
        return violations

    def is_valid(self, grid) -> bool:
        return not self.report(grid)
