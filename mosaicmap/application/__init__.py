"""Application layer: seeding, optimization and cartogram building."""
