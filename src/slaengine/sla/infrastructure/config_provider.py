"""
SLA Configuration Provider
===========================

Loads the business calendar and allotment table from YAML.

The file is read and validated once at startup; a bad file is a
ConfigurationException, never a per-request failure.
"""

import threading
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from slaengine.core import ConfigurationException
from slaengine.shared.infrastructure.logging import get_logger
from slaengine.sla.application.services import ISLAConfigProvider
from slaengine.sla.domain import SLAConfig

logger = get_logger(__name__)


def build_sla_config(data: Optional[Mapping[str, Any]]) -> SLAConfig:
    """
    Validate a raw mapping into an SLAConfig.

    Raises:
        ConfigurationException: if any value fails validation
    """
    try:
        return SLAConfig(**(data or {}))
    except ValidationError as e:
        raise ConfigurationException(
            "Invalid SLA configuration",
            {"errors": e.errors(include_url=False)}
        ) from e


class YAMLConfigProvider(ISLAConfigProvider):
    """
    SLA configuration provider that loads from YAML.

    Missing file falls back to defaults (Mon-Sat, 09:00-17:30, UTC,
    4/8/24/48 hours).
    """

    def __init__(self, config_path: Union[str, Path]):
        self._config_path = Path(config_path)
        self._lock = threading.Lock()
        self._config: SLAConfig = self._load_from_file(self._config_path)

    def _load_from_file(self, path: Path) -> SLAConfig:
        """Load and parse YAML config file."""
        if not path.exists():
            logger.warning(f"SLA config file not found: {path}, using defaults")
            return SLAConfig()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationException(
                f"SLA config file is not valid YAML: {path}",
                {"path": str(path)}
            ) from e

        if not isinstance(data, Mapping):
            raise ConfigurationException(
                f"SLA config file must contain a mapping: {path}",
                {"path": str(path)}
            )

        config = build_sla_config(data)
        logger.info("SLA configuration loaded", extra={"path": str(path)})
        return config

    def get_config(self) -> SLAConfig:
        """Get current SLA configuration."""
        with self._lock:
            return self._config

    def reload(self) -> SLAConfig:
        """
        Re-read the file.

        The previous configuration stays active if the new file is invalid.
        Services already built keep the clock they were created with.
        """
        new_config = self._load_from_file(self._config_path)
        with self._lock:
            self._config = new_config
        logger.info("SLA configuration reloaded successfully")
        return new_config
