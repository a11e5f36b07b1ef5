"""
Translation of optimized routes into the Fleet Engine delivery model.

Each route becomes an ordered list of planned stops: the vehicle start, one
stop per visit, the vehicle end. Every stop is registered as a task, and every
task then becomes one journey segment on the delivery vehicle.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from .models import (
    DeliveryVehicle, DeliveryVehicleLocation, LatLng, LocationInfo,
    OptimizeToursResponse, ShipmentModel, ShipmentRoute, Task, TaskInfo,
    TaskState, TaskType, Vehicle, VehicleJourneySegment, VehicleStop,
    VehicleStopState, Visit
)
from .schemas import TasksConfig
from .util.time_utils import format_duration, parse_duration_seconds


logger = logging.getLogger(__name__)


class PlanTranslationError(ValueError):
    """Route cannot be mapped onto the shipment model."""


@dataclass
class PlannedStop:
    """A location the vehicle has to visit, with its task attributes."""
    location: LatLng
    duration_seconds: int
    task_type: TaskType
    tracking_id: Optional[str] = None
    label: Optional[str] = None


def strip_full_path_from_id(full_path: str) -> str:
    """Return the id part of a resource name ('providers/p/tasks/42' -> '42')."""
    return full_path[full_path.rfind("/") + 1:]


def pair_routes_with_vehicles(
    model: ShipmentModel,
    response: OptimizeToursResponse,
) -> Iterator[Tuple[Vehicle, ShipmentRoute]]:
    """Yield each route with the model vehicle at the same position."""
    for i, route in enumerate(response.routes):
        if i >= len(model.vehicles):
            logger.warning(f"Route {i} has no matching vehicle in the model; skipping")
            continue
        vehicle = model.vehicles[i]
        if route.vehicle_label != (vehicle.label or ""):
            logger.warning(
                f"Route {i} is labelled '{route.vehicle_label}' but vehicle {i} "
                f"is '{vehicle.label}'; skipping"
            )
            continue
        yield vehicle, route


def resolve_visit_location(model: ShipmentModel, visit: Visit) -> LatLng:
    """
    Find where a visit takes place.

    The visit's shipment and visit request indices select the location; a
    visit that cannot be resolved that way is looked up by its label.

    Raises:
        PlanTranslationError: no location for the visit
    """
    if 0 <= visit.shipment_index < len(model.shipments):
        shipment = model.shipments[visit.shipment_index]
        requests = shipment.pickups if visit.is_pickup else shipment.deliveries
        if 0 <= visit.visit_request_index < len(requests):
            location = requests[visit.visit_request_index].location
            if location is not None:
                return location

    if visit.visit_label:
        location = _visit_location_by_label(model, visit.visit_label)
        if location is not None:
            return location

    raise PlanTranslationError(
        f"No location for visit of shipment {visit.shipment_index} "
        f"(label '{visit.visit_label or ''}')"
    )


def _visit_location_by_label(model: ShipmentModel, label: str) -> Optional[LatLng]:
    for shipment in model.shipments:
        if shipment.deliveries and shipment.deliveries[0].label == label:
            return shipment.deliveries[0].location
        if shipment.pickups and shipment.pickups[0].label == label:
            return shipment.pickups[0].location
    return None


def _visit_duration_seconds(model: ShipmentModel, visit: Visit, source: str) -> int:
    if source == "detour":
        return parse_duration_seconds(visit.detour)

    if not 0 <= visit.shipment_index < len(model.shipments):
        return 0
    shipment = model.shipments[visit.shipment_index]
    requests = shipment.pickups if visit.is_pickup else shipment.deliveries
    if not 0 <= visit.visit_request_index < len(requests):
        return 0
    return parse_duration_seconds(requests[visit.visit_request_index].duration)


def build_stop_plan(
    model: ShipmentModel,
    vehicle: Vehicle,
    route: ShipmentRoute,
    task_config: Optional[TasksConfig] = None,
) -> List[PlannedStop]:
    """
    Derive the ordered stops of a route.

    Args:
        model: Shipment model the route was optimized from
        vehicle: Vehicle driving the route
        route: Optimized route
        task_config: Task type and duration settings

    Returns:
        Start stop, one stop per visit, end stop
    """
    task_config = task_config or TasksConfig()
    pickup_type = TaskType(task_config.pickup_task_type)

    stops: List[PlannedStop] = []

    if vehicle.start is not None:
        stops.append(PlannedStop(vehicle.start, 0, TaskType.SCHEDULED_STOP, label="start"))
    else:
        logger.debug(f"Vehicle '{vehicle.label}' has no start location")

    for visit in route.visits:
        location = resolve_visit_location(model, visit)
        duration = _visit_duration_seconds(model, visit, task_config.duration_source)
        if visit.is_pickup:
            stops.append(PlannedStop(location, duration, pickup_type, label=visit.visit_label))
        else:
            # Should come from the shipment tracking system; shipment label stands in for it
            tracking_id = visit.shipment_label or str(uuid.uuid4())
            stops.append(PlannedStop(location, duration, TaskType.DELIVERY, tracking_id, visit.visit_label))

    if vehicle.end is not None:
        stops.append(PlannedStop(vehicle.end, 0, TaskType.SCHEDULED_STOP, label="end"))
    else:
        logger.debug(f"Vehicle '{vehicle.label}' has no end location")

    return stops


def build_task(stop: PlannedStop) -> Task:
    """Build an open task for a planned stop."""
    return Task(
        type=stop.task_type,
        state=TaskState.OPEN,
        task_duration=format_duration(stop.duration_seconds),
        planned_location=LocationInfo(point=stop.location),
        tracking_id=stop.tracking_id,
    )


def build_journey_segment(task: Task) -> VehicleJourneySegment:
    """One new vehicle stop carrying a single task."""
    if not task.name:
        raise PlanTranslationError("Task has no name; was it created?")

    stop = VehicleStop(
        planned_location=task.planned_location,
        state=VehicleStopState.NEW,
        tasks=[TaskInfo(
            task_id=strip_full_path_from_id(task.name),
            task_duration=format_duration(parse_duration_seconds(task.task_duration)),
        )],
    )
    return VehicleJourneySegment(stop=stop)


def build_journey_segments(tasks: List[Task]) -> List[VehicleJourneySegment]:
    return [build_journey_segment(task) for task in tasks]


def build_delivery_vehicle(provider_id: str, vehicle_id: str, last_location: Optional[LatLng]) -> DeliveryVehicle:
    """Delivery vehicle record for a model vehicle."""
    return DeliveryVehicle(
        name=f"providers/{provider_id}/deliveryVehicles/{vehicle_id}",
        last_location=DeliveryVehicleLocation(location=last_location) if last_location else None,
        navigation_status="UNKNOWN_NAVIGATION_STATUS",
    )
