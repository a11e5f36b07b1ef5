"""Clients for the remote optimization and fleet-tracking services."""

from .errors import AlreadyExistsError, NotFoundError, RemoteServiceError
from .fleet_engine import DeliveryServiceClient
from .route_optimization import RouteOptimizationClient

__all__ = [
    "AlreadyExistsError",
    "NotFoundError",
    "RemoteServiceError",
    "DeliveryServiceClient",
    "RouteOptimizationClient",
]
