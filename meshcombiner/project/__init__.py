"""
Configuration values and scene/config file handling.
"""

from meshcombiner.project.schema import (
    ClusteringConfig,
    CombinerConfig,
    ConfigurationError,
    PostProcessConfig,
    config_from_dict,
)

__all__ = [
    "ClusteringConfig",
    "CombinerConfig",
    "ConfigurationError",
    "PostProcessConfig",
    "config_from_dict",
]
