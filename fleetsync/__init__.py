"""
Fleet sync package.
Plans routes with Route Optimization and tracks them with Fleet Engine Deliveries.
"""

__version__ = "0.1.0"

from .service import FleetSyncService, UseCaseResult

__all__ = [
    "FleetSyncService",
    "UseCaseResult",
]
