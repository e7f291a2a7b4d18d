"""
SLA Infrastructure Layer
=========================

Infrastructure implementations for the SLA module:
- Config provider: YAML-backed SLA configuration
"""

from slaengine.sla.infrastructure.config_provider import (
    YAMLConfigProvider,
    build_sla_config,
)

__all__ = [
    "YAMLConfigProvider",
    "build_sla_config",
]
