"""
SLA Engine - Composition Root
=============================

Wires settings, logging, the YAML configuration and the services into one
object for the HTTP layer or a report export job.

STARTUP:
1. Setup structured logging
2. Load SLA configuration (fails fast on a bad allotment table)
3. Build the SLA service and the report assembler
"""

from dataclasses import dataclass
from typing import Optional

from slaengine.config import Settings, get_settings
from slaengine.reports import ReportAssembler
from slaengine.shared.infrastructure.logging import get_logger, setup_logging
from slaengine.sla.application import SLAService
from slaengine.sla.infrastructure import YAMLConfigProvider

logger = get_logger(__name__)


@dataclass(frozen=True)
class Engine:
    """Services shared by every report request."""
    config_provider: YAMLConfigProvider
    sla_service: SLAService
    reports: ReportAssembler


def create_engine(settings: Optional[Settings] = None, configure_logging: bool = True) -> Engine:
    """
    Build the engine from settings.

    Raises:
        ConfigurationException: if the SLA configuration file is unusable
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.log_level, settings.environment, service=settings.app_name)

    provider = YAMLConfigProvider(settings.sla_config_path)
    sla_service = SLAService(provider)
    engine = Engine(
        config_provider=provider,
        sla_service=sla_service,
        reports=ReportAssembler.from_service(sla_service),
    )
    logger.info(
        "SLA engine started",
        extra={"version": settings.app_version, "config_path": str(settings.sla_config_path)}
    )
    return engine
