"""
Main service layer.
Runs the planning use cases: load a model, optimize it, publish the routes.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .integrations.fleet_engine import DeliveryServiceClient
from .integrations.route_optimization import (
    RouteOptimizationClient, build_reoptimization_request, build_request
)
from .model_loader import create_new_shipment, load_optimize_request
from .models import (
    DeliveryVehicle, LatLng, OptimizeToursRequest, OptimizeToursResponse,
    ShipmentModel, Task
)
from .publisher import PublishReport, TrackingPublisher
from .schemas import AppConfig, Settings


logger = logging.getLogger(__name__)


@dataclass
class UseCaseResult:
    """Outcome of one use case run."""
    name: str
    ok: bool
    reports: List[PublishReport] = field(default_factory=list)
    error: Optional[str] = None
    used_vehicle_count: int = 0
    skipped_shipment_count: int = 0


class FleetSyncService:
    """Sequences Route Optimization and Fleet Engine calls."""

    def __init__(
        self,
        config_path: str = "config/params.yaml",
        config: Optional[AppConfig] = None,
        settings: Optional[Settings] = None,
        optimizer: Optional[RouteOptimizationClient] = None,
        tracker: Optional[DeliveryServiceClient] = None,
    ):
        """Initialize service with configuration and service clients."""
        self.config = config or self._load_config(config_path)
        self.settings = settings or Settings()

        self.optimizer = optimizer or RouteOptimizationClient(self.config, self.settings)
        self.tracker = tracker or DeliveryServiceClient(self.config, self.settings)
        self.publisher = TrackingPublisher(self.config, self.tracker)

        # Request/response of the most recent optimization
        self.last_request: Optional[OptimizeToursRequest] = None
        self.last_response: Optional[OptimizeToursResponse] = None

        self._setup_logging()

    def _load_config(self, config_path: str) -> AppConfig:
        """Load configuration from YAML file."""
        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
            return AppConfig(**config_data)
        except Exception as e:
            logger.error(f"Failed to load configuration: {e}")
            raise

    def _setup_logging(self) -> None:
        """Setup logging configuration."""
        logging.basicConfig(
            level=getattr(logging, self.config.logging.level),
            format=self.config.logging.format
        )

    def apply_overrides(self, overrides: Dict[str, Any]) -> None:
        """Apply dot-path overrides onto loaded config (CLI > YAML)."""
        if not overrides:
            return
        def set_dot(obj, path, val):
            parts = path.split('.')
            cur = obj
            for p in parts[:-1]:
                cur = getattr(cur, p)
            setattr(cur, parts[-1], val)
        for k, v in overrides.items():
            try:
                set_dot(self.config, k, v)
            except Exception as e:
                logger.warning(f"Override failed for {k}: {e}")

        # Clients cache the provider id
        self.tracker.provider_id = self.config.project.provider_id
        self.publisher.provider_id = self.config.project.provider_id

    @property
    def parent(self) -> str:
        return self.config.project.project_parent

    @property
    def timeout_seconds(self) -> int:
        return self.config.route_optimization.timeout_seconds

    async def _optimize(self, request: OptimizeToursRequest) -> OptimizeToursResponse:
        self.last_request = request
        self.last_response = await self.optimizer.optimize_tours(request)
        return self.last_response

    async def _publish(self) -> PublishReport:
        return await self.publisher.publish_plan(self.last_request, self.last_response)

    def _result(self, name: str, reports: List[PublishReport]) -> UseCaseResult:
        metrics = self.last_response.metrics
        return UseCaseResult(
            name=name,
            ok=True,
            reports=reports,
            used_vehicle_count=metrics.used_vehicle_count,
            skipped_shipment_count=metrics.skipped_mandatory_shipment_count,
        )

    async def _initial_planning(self, model_path: str) -> PublishReport:
        request = load_optimize_request(model_path, self.parent, self.timeout_seconds)
        await self._optimize(request)
        return await self._publish()

    async def initial_planning(self, model_path: str) -> UseCaseResult:
        """
        Use case 1: optimize a model and publish the routes.

        Args:
            model_path: Model file to plan

        Returns:
            UseCaseResult with one publish report
        """
        try:
            report = await self._initial_planning(model_path)
            return self._result("initial_planning", [report])
        except Exception as e:
            logger.error(f"Initial planning failed: {e}")
            return UseCaseResult(name="initial_planning", ok=False, error=str(e))

    async def reoptimize(self, model_path: str, relocate_to: Optional[LatLng] = None) -> UseCaseResult:
        """
        Use case 2: plan, then re-optimize from the first solution.

        When relocate_to is given, every tracked vehicle is moved there (in
        Fleet Engine and as the model start location) before re-optimizing.
        """
        reports: List[PublishReport] = []
        try:
            reports.append(await self._initial_planning(model_path))

            model = self.last_request.model
            if relocate_to is not None:
                model = await self._relocate_vehicles(model, relocate_to)

            request = build_reoptimization_request(
                model, self.last_response.routes, self.parent, self.timeout_seconds
            )
            logger.info("Re-optimize request")
            await self._optimize(request)

            reports.append(await self._publish())
            return self._result("reoptimization", reports)
        except Exception as e:
            logger.error(f"Re-optimization failed: {e}")
            return UseCaseResult(name="reoptimization", ok=False, reports=reports, error=str(e))

    async def _relocate_vehicles(self, model: ShipmentModel, location: LatLng) -> ShipmentModel:
        vehicles = list(model.vehicles)
        for i, vehicle in enumerate(vehicles):
            if not vehicle.label:
                continue
            existing = await self.tracker.get_delivery_vehicle(vehicle.label)
            if existing is None:
                continue
            await self.tracker.update_delivery_vehicle_location(vehicle.label, location)
            vehicles[i] = vehicle.model_copy(
                update={"start_location": location, "start_waypoint": None}
            )
            logger.info(f"Moved vehicle '{vehicle.label}' to {location.latitude},{location.longitude}")
        return model.model_copy(update={"vehicles": vehicles})

    async def new_stop(
        self,
        model_path: str,
        pickup: Optional[LatLng] = None,
        delivery: Optional[LatLng] = None,
    ) -> UseCaseResult:
        """Use case 3: plan, add a pickup-and-delivery shipment, plan again."""
        stop_config = self.config.new_stop
        pickup = pickup or LatLng(**stop_config.pickup.model_dump())
        delivery = delivery or LatLng(**stop_config.delivery.model_dump())

        reports: List[PublishReport] = []
        try:
            reports.append(await self._initial_planning(model_path))

            shipment = create_new_shipment(
                pickup, delivery,
                stop_config.pickup_duration_seconds,
                stop_config.delivery_duration_seconds,
                stop_config,
            )
            model = self.last_request.model
            model = model.model_copy(update={"shipments": [*model.shipments, shipment]})

            logger.info("Creating new plan with added shipment")
            await self._optimize(build_request(model, self.parent, self.timeout_seconds))

            logger.info("Creating routes in Fleet Engine")
            reports.append(await self._publish())
            return self._result("new_stop", reports)
        except Exception as e:
            logger.error(f"New stop planning failed: {e}")
            return UseCaseResult(name="new_stop", ok=False, reports=reports, error=str(e))

    async def run_demo(self) -> List[UseCaseResult]:
        """Run the three use cases with the configured model files."""
        paths = self.config.use_cases
        steps = [
            ("Use Case 1", self.initial_planning, paths.initial_planning_model),
            ("Use Case 2", self.reoptimize, paths.reoptimization_model),
            ("Use Case 3", self.new_stop, paths.new_stop_model),
        ]
        results = []
        for title, run, model_path in steps:
            logger.info(f"*** {title} - STARTED! ***")
            results.append(await run(model_path))
            logger.info(f"*** {title} - DONE! ***")
        return results

    async def inspect_vehicle(self, vehicle_id: str) -> Optional[Tuple[DeliveryVehicle, List[Task]]]:
        """Fetch a tracked vehicle and the tasks on its remaining journey."""
        vehicle = await self.tracker.get_delivery_vehicle(vehicle_id)
        if vehicle is None:
            return None

        names = [
            self.tracker.task_name(info.task_id)
            for segment in vehicle.remaining_vehicle_journey_segments or []
            for info in segment.stop.tasks
        ]
        tasks = await self.tracker.check_tasks([Task(name=n) for n in names])
        return vehicle, tasks

    async def close(self) -> None:
        """Clean up resources."""
        await self.optimizer.close()
        await self.tracker.close()
