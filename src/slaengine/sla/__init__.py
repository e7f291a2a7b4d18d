"""
SLA Module
==========

Bounded context for business-hours SLA arithmetic.

Responsibilities:
- Count business hours between two instants on a working calendar
- Project SLA deadlines from creation time and priority allotment
- Classify tickets as met, on track, at risk or breached
- Validate ticket snapshots handed over by the data store
"""
