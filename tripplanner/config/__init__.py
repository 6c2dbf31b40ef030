"""
tripplanner configuration module
Handles YAML/JSON configuration files
"""

from .models import (
    CacheBackend,
    CacheConfig,
    PlannerConfig,
    RoutingConfig,
    SchedulePlan,
    SelectionConfig,
)
from .parser import ConfigParser, ConfigParserError

__all__ = [
    "CacheBackend",
    "CacheConfig",
    "PlannerConfig",
    "RoutingConfig",
    "SchedulePlan",
    "SelectionConfig",
    "ConfigParser",
    "ConfigParserError",
]
