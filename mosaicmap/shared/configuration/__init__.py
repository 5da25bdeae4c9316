"""Configuration management."""
from .config_manager import ConfigManager
from .settings import (
    OptimizerSettings, GridSettings, LoggingSettings, ApplicationSettings
)

__all__ = [
    'ConfigManager',
    'OptimizerSettings', 'GridSettings', 'LoggingSettings', 'ApplicationSettings'
]
