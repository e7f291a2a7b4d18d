"""
Reports Module
==============

Bounded context for the named operational reports built from a ticket
snapshot and the configured SLA clock.
"""

from slaengine.reports.application import NameDirectory, ReportAssembler

__all__ = ["NameDirectory", "ReportAssembler"]
