"""
Publishing of an optimized plan to Fleet Engine.
Creates one delivery vehicle per used model vehicle, one task per planned
stop, and attaches the journey segments to the vehicle.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from .integrations.errors import AlreadyExistsError
from .integrations.fleet_engine import DeliveryServiceClient
from .models import (
    DeliveryVehicle, LatLng, OptimizeToursRequest, OptimizeToursResponse,
    ShipmentModel, ShipmentRoute, Task, Vehicle
)
from .schemas import AppConfig
from .translator import (
    build_delivery_vehicle, build_journey_segments, build_stop_plan,
    build_task, pair_routes_with_vehicles
)


logger = logging.getLogger(__name__)

JOURNEY_SEGMENTS_MASK = "remaining_vehicle_journey_segments"


@dataclass
class PublishedRoute:
    """Outcome for one vehicle."""
    vehicle_id: str
    vehicle_name: str
    task_names: List[str] = field(default_factory=list)
    segments_attached: bool = False


@dataclass
class PublishReport:
    """Outcome of publishing a whole plan."""
    routes: List[PublishedRoute] = field(default_factory=list)
    vehicles_without_visits: List[str] = field(default_factory=list)
    failed_vehicles: List[str] = field(default_factory=list)

    @property
    def tasks_created(self) -> int:
        return sum(len(r.task_names) for r in self.routes)


class TrackingPublisher:
    """Pushes optimized routes into Fleet Engine."""

    def __init__(self, config: AppConfig, tracker: DeliveryServiceClient):
        self.config = config
        self.tracker = tracker
        self.provider_id = config.project.provider_id

    async def publish_plan(
        self,
        request: OptimizeToursRequest,
        response: OptimizeToursResponse,
    ) -> PublishReport:
        """
        Create vehicles, tasks and journey segments for every route.

        A vehicle whose tasks cannot be created is logged and skipped; the
        remaining vehicles are still published.

        Args:
            request: Request the plan was optimized from
            response: Optimized plan

        Returns:
            PublishReport for all routes
        """
        report = PublishReport()
        model = request.model

        for vehicle, route in pair_routes_with_vehicles(model, response):
            vehicle_id = vehicle.label or f"vehicle-{route.vehicle_index}"

            if not route.visits:
                logger.info(f"There are no visits for vehicle: '{vehicle_id}'")
                report.vehicles_without_visits.append(vehicle_id)
                continue

            try:
                delivery_vehicle = await self.create_delivery_vehicle(vehicle_id, vehicle.start)
                published = await self.create_route(model, delivery_vehicle, vehicle_id, vehicle, route)
                report.routes.append(published)
            except Exception as e:
                logger.error(f"Creating route for vehicle '{vehicle_id}' failed: {e}")
                report.failed_vehicles.append(vehicle_id)

        logger.info(
            f"Published {len(report.routes)} routes with {report.tasks_created} tasks "
            f"({len(report.vehicles_without_visits)} idle, {len(report.failed_vehicles)} failed)"
        )
        return report

    async def create_delivery_vehicle(
        self,
        vehicle_id: str,
        last_location: Optional[LatLng],
    ) -> DeliveryVehicle:
        """Create the vehicle, or keep the local record when it already exists."""
        delivery_vehicle = build_delivery_vehicle(self.provider_id, vehicle_id, last_location)
        try:
            return await self.tracker.create_delivery_vehicle(vehicle_id, delivery_vehicle)
        except AlreadyExistsError:
            logger.info(f"This vehicle already exists! {vehicle_id}")
            return delivery_vehicle

    async def create_route(
        self,
        model: ShipmentModel,
        delivery_vehicle: DeliveryVehicle,
        vehicle_id: str,
        vehicle: Vehicle,
        route: ShipmentRoute,
    ) -> PublishedRoute:
        """Create the tasks of one route and attach them as journey segments."""
        stops = build_stop_plan(model, vehicle, route, self.config.tasks)

        tasks: List[Task] = []
        for stop in stops:
            task_id = str(uuid.uuid4())
            task = await self.tracker.create_task(task_id, build_task(stop))
            logger.debug(f"Created task {task.name} ({stop.task_type.value}, {stop.label})")
            tasks.append(task)

        attached = await self.update_segments(tasks, delivery_vehicle)
        logger.info(f"Vehicle assigned: {delivery_vehicle.name}")

        return PublishedRoute(
            vehicle_id=vehicle_id,
            vehicle_name=delivery_vehicle.name,
            task_names=[t.name for t in tasks],
            segments_attached=attached,
        )

    async def update_segments(self, tasks: List[Task], delivery_vehicle: DeliveryVehicle) -> bool:
        """Replace the vehicle's remaining segments with the held ones plus one segment per task."""
        try:
            segments = list(delivery_vehicle.remaining_vehicle_journey_segments or [])
            segments.extend(build_journey_segments(tasks))

            updated = delivery_vehicle.model_copy(
                update={"remaining_vehicle_journey_segments": segments}
            )
            await self.tracker.update_delivery_vehicle(updated, [JOURNEY_SEGMENTS_MASK])
            return True
        except Exception as e:
            logger.error(f"Adding journey segments failed: {e}")
            return False
