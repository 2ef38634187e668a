"""Service layer package.

Exports high-level services consumed by the command-line entry point.
"""

from .aggregate_service import AggregateService, AggregateServiceConfig

__all__ = ["AggregateService", "AggregateServiceConfig"]
