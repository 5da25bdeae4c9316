"""Region scoring strategies.

A scorer maps a region to a non-negative integer deviation: lower is better
and zero means the region has exactly the desired size (and shape, when a
guiding shape is set). Grid quality is the sum of the region scores,
optionally divided by each region's target size.
"""
from abc import ABC, abstractmethod

from ...shared.exceptions import ConfigurationError


class RegionScorer(ABC):
    """Strategy that measures how far a region is from its ideal."""

    name = "abstract"

    @abstractmethod
    def score(self, region) -> int:
        """Deviation of ``region`` from its ideal (0 is perfect)."""

    def normalized_score(self, region) -> float:
        return abs(self.score(region) / max(region.target_size, 1))


class SizeDeviationScorer(RegionScorer):
    """Absolute difference between the target cell count and the actual count."""

    name = "size_deviation"

    def score(self, region) -> int:
        return abs(region.target_size - region.size())


class SymmetricDifferenceScorer(RegionScorer):
    """Number of cells in exactly one of the region and its guiding shape.

    Regions without a guiding shape fall back to the size deviation.
    """

    name = "symmetric_difference"

    def score(self, region) -> int:
        guide = region.guiding_shape
        if guide is None:
            return abs(region.target_size - region.size())
        return region.size() + len(guide) - 2 * region.hits


_SCORERS = {
    SizeDeviationScorer.name: SizeDeviationScorer,
    SymmetricDifferenceScorer.name: SymmetricDifferenceScorer,
}


def create_scorer(name: str) -> RegionScorer:
    """Create a scorer by its configuration name.

    Raises:
        ConfigurationError: If the name is unknown
    """
    try:
        return _SCORERS[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown scorer '{name}'", error_code="CONFIG_SCORER",
            details={'available': sorted(_SCORERS)}
        ) from None
