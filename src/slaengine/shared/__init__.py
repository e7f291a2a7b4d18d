"""
Shared Kernel Module
====================

Shared infrastructure used by the SLA, metrics and reports modules.

DO NOT add SLA or reporting business logic to the shared kernel.
"""
