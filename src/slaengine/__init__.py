"""
SLA Engine
==========

Business-hours SLA arithmetic and ticket metrics aggregation for the
field-service reporting backend.

Modules:
- SLA: Business calendar, SLA clock and per-ticket outcomes
- Metrics: Distribution, rate, average, trend and ranking primitives
- Reports: Named report shapes composed from the two modules above
"""

__version__ = "1.0.0"
