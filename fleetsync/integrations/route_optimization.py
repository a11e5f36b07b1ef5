"""
Route Optimization API client.
Sends a shipment model to optimizeTours and returns the per-vehicle routes.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..models import OptimizeToursRequest, OptimizeToursResponse, ShipmentModel, ShipmentRoute
from ..schemas import AppConfig, Settings
from ..util.time_utils import format_duration
from .errors import raise_for_google_status


logger = logging.getLogger(__name__)

CONSUME_ALL_AVAILABLE_TIME = "CONSUME_ALL_AVAILABLE_TIME"


class RouteOptimizationClient:
    """Thin async client for the optimizeTours REST method."""

    def __init__(
        self,
        config: AppConfig,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize client with configuration."""
        self.config = config
        self.token = settings.route_optimization_token
        self.base_url = config.route_optimization.base_url.rstrip("/")
        self.client = http_client or httpx.AsyncClient(
            timeout=config.route_optimization.http_timeout_seconds
        )

        if not self.token:
            logger.warning("Route Optimization token not configured - requests will be unauthenticated")

    def _headers(self) -> Dict[str, str]:
        headers = {"X-Goog-User-Project": self.config.project.provider_id}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def optimize_tours(self, request: OptimizeToursRequest) -> OptimizeToursResponse:
        """
        Call optimizeTours for a request.

        Args:
            request: Request with parent, timeout and shipment model

        Returns:
            Optimized routes with aggregated metrics
        """
        parent = request.parent or self.config.project.project_parent
        url = f"{self.base_url}/{parent}:optimizeTours"
        body = request.to_api(exclude={"parent"})

        logger.info(
            f"Requesting optimization for {len(request.model.vehicles)} vehicles, "
            f"{len(request.model.shipments)} shipments"
        )
        response = await self.client.post(url, json=body, headers=self._headers())
        raise_for_google_status(response)

        result = OptimizeToursResponse.model_validate(response.json())
        self._log_metrics(result)
        return result

    def _log_metrics(self, response: OptimizeToursResponse) -> None:
        """Report unused vehicles and skipped shipments."""
        logger.info(f"Used vehicle count: {response.metrics.used_vehicle_count}")

        skipped = response.metrics.skipped_mandatory_shipment_count
        if skipped > 0:
            logger.warning(f"There is a problem with your plan! {skipped} shipment(s) skipped.")

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()


def build_request(
    model: ShipmentModel,
    parent: str,
    timeout_seconds: int,
    **fields: Any,
) -> OptimizeToursRequest:
    """Build a request for an already loaded (possibly modified) model."""
    return OptimizeToursRequest(
        parent=parent,
        timeout=format_duration(timeout_seconds),
        model=model,
        **fields,
    )


def build_reoptimization_request(
    model: ShipmentModel,
    routes: List[ShipmentRoute],
    parent: str,
    timeout_seconds: int,
) -> OptimizeToursRequest:
    """Re-optimize starting from a previous solution."""
    return build_request(
        model,
        parent,
        timeout_seconds,
        search_mode=CONSUME_ALL_AVAILABLE_TIME,
        injected_first_solution_routes=list(routes),
    )
