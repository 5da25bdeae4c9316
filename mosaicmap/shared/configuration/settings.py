"""Settings dataclasses for mosaicmap."""
from dataclasses import dataclass, field
from typing import Dict, List

LATTICES = ("hexagonal", "square")
SCORERS = ("symmetric_difference", "size_deviation")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class OptimizerSettings:
    """Stopping criteria and move selection for the local search."""
    max_moves: int = 10000
    max_no_improve_iterations: int = 5
    time_budget_seconds: float = 0.0  # 0 disables the wall-clock budget
    use_swap_moves: bool = False
    normalize_quality: bool = True
    require_valid_start: bool = False
    fill_holes: bool = True
    fill_alleys: bool = True
    align_guiding_shapes: bool = True
    polish: bool = True
    exact_tiles: bool = False  # polish may break adjacencies to hit every target size

    def validate(self) -> List[str]:
        errors = []
        if self.max_moves < 0:
            errors.append(f"max_moves must be non-negative, got {self.max_moves}")
        if self.max_no_improve_iterations < 1:
            errors.append("max_no_improve_iterations must be at least 1, "
                          f"got {self.max_no_improve_iterations}")
        if self.time_budget_seconds < 0:
            errors.append(f"time_budget_seconds must be non-negative, got {self.time_budget_seconds}")
        return errors


@dataclass
class GridSettings:
    """Lattice and scoring choice for a cartogram."""
    lattice: str = "hexagonal"
    cell_weight: float = 1.0
    scorer: str = "symmetric_difference"

    def validate(self) -> List[str]:
        errors = []
        if self.lattice not in LATTICES:
            errors.append(f"Unknown lattice '{self.lattice}', expected one of {LATTICES}")
        if self.cell_weight <= 0:
            errors.append(f"cell_weight must be positive, got {self.cell_weight}")
        if self.scorer not in SCORERS:
            errors.append(f"Unknown scorer '{self.scorer}', expected one of {SCORERS}")
        return errors


@dataclass
class LoggingSettings:
    """Logging configuration."""
    level: str = "INFO"
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    console_output: bool = True
    file_output: bool = False
    log_file: str = "logs/mosaicmap.log"
    max_file_size_mb: int = 10
    backup_count: int = 3
    component_levels: Dict[str, str] = field(default_factory=dict)

    def validate(self) -> List[str]:
        errors = []
        if self.level.upper() not in LOG_LEVELS:
            errors.append(f"Unknown log level '{self.level}'")
        for component, level in self.component_levels.items():
            if level.upper() not in LOG_LEVELS:
                errors.append(f"Unknown log level '{level}' for component {component}")
        if self.max_file_size_mb <= 0:
            errors.append(f"max_file_size_mb must be positive, got {self.max_file_size_mb}")
        return errors


@dataclass
class ApplicationSettings:
    """Top-level settings container."""
    version: str = "1.0.0"
    config_version: int = 1
    optimizer: OptimizerSettings = field(default_factory=OptimizerSettings)
    grid: GridSettings = field(default_factory=GridSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    def validate(self) -> Dict[str, List[str]]:
        """Validate all categories.

        Returns:
            Mapping of category name to a list of error messages
        """
        return {
            "optimizer": self.optimizer.validate(),
            "grid": self.grid.validate(),
            "logging": self.logging.validate(),
        }
