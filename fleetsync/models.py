"""
Transport records for the two remote services.
Field names follow the services' REST JSON (camelCase on the wire); unknown
fields are kept so a model file can carry anything the optimizer accepts.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for records exchanged with the REST endpoints."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_api(self, **kwargs) -> Dict[str, Any]:
        """Serialize to the camelCase JSON body the services expect."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json", **kwargs)


class LatLng(ApiModel):
    latitude: float = 0.0
    longitude: float = 0.0


# Route Optimization records
class WaypointLocation(ApiModel):
    lat_lng: Optional[LatLng] = None


class Waypoint(ApiModel):
    location: Optional[WaypointLocation] = None

    @property
    def lat_lng(self) -> Optional[LatLng]:
        return self.location.lat_lng if self.location else None


class TimeWindow(ApiModel):
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class Load(ApiModel):
    amount: Optional[int] = None


class VisitRequest(ApiModel):
    """Pickup or delivery alternative of a shipment."""
    arrival_location: Optional[LatLng] = None
    arrival_waypoint: Optional[Waypoint] = None
    duration: Optional[str] = None
    time_windows: Optional[List[TimeWindow]] = None
    label: Optional[str] = None

    @property
    def location(self) -> Optional[LatLng]:
        if self.arrival_location is not None:
            return self.arrival_location
        if self.arrival_waypoint is not None:
            return self.arrival_waypoint.lat_lng
        return None


class Shipment(ApiModel):
    pickups: List[VisitRequest] = Field(default_factory=list)
    deliveries: List[VisitRequest] = Field(default_factory=list)
    load_demands: Optional[Dict[str, Load]] = None
    label: Optional[str] = None


class Vehicle(ApiModel):
    label: Optional[str] = None
    start_location: Optional[LatLng] = None
    start_waypoint: Optional[Waypoint] = None
    end_location: Optional[LatLng] = None
    end_waypoint: Optional[Waypoint] = None

    @property
    def start(self) -> Optional[LatLng]:
        if self.start_location is not None:
            return self.start_location
        return self.start_waypoint.lat_lng if self.start_waypoint else None

    @property
    def end(self) -> Optional[LatLng]:
        if self.end_location is not None:
            return self.end_location
        return self.end_waypoint.lat_lng if self.end_waypoint else None


class ShipmentModel(ApiModel):
    shipments: List[Shipment] = Field(default_factory=list)
    vehicles: List[Vehicle] = Field(default_factory=list)


class Visit(ApiModel):
    """One stop of an optimized route."""
    # proto3 JSON omits zero values, so every field needs a default
    shipment_index: int = 0
    is_pickup: bool = False
    visit_request_index: int = 0
    start_time: Optional[str] = None
    detour: Optional[str] = None
    shipment_label: Optional[str] = None
    visit_label: Optional[str] = None


class ShipmentRoute(ApiModel):
    vehicle_index: int = 0
    vehicle_label: str = ""
    visits: List[Visit] = Field(default_factory=list)


class OptimizeToursMetrics(ApiModel):
    used_vehicle_count: int = 0
    skipped_mandatory_shipment_count: int = 0


class OptimizeToursRequest(ApiModel):
    """
    Top-level request; unknown keys are rejected so a misspelled model file
    fails to load. Free-form fields are still kept below `model`.
    """
    model_config = ConfigDict(extra="forbid")

    parent: Optional[str] = None
    timeout: Optional[str] = None
    model: ShipmentModel = Field(default_factory=ShipmentModel)
    solving_mode: Optional[str] = None
    search_mode: Optional[str] = None
    injected_first_solution_routes: Optional[List[ShipmentRoute]] = None
    injected_solution_constraint: Optional[Dict[str, Any]] = None
    refresh_details_routes: Optional[List[Dict[str, Any]]] = None
    interpret_injected_solutions_using_labels: Optional[bool] = None
    consider_road_traffic: Optional[bool] = None
    populate_polylines: Optional[bool] = None
    populate_transition_polylines: Optional[bool] = None
    allow_large_deadline_despite_interruption_risk: Optional[bool] = None
    use_geodesic_distances: Optional[bool] = None
    geodesic_meters_per_second: Optional[float] = None
    max_validation_errors: Optional[int] = None
    label: Optional[str] = None


class OptimizeToursResponse(ApiModel):
    routes: List[ShipmentRoute] = Field(default_factory=list)
    metrics: OptimizeToursMetrics = Field(default_factory=OptimizeToursMetrics)


# Fleet Engine Deliveries records
class TaskType(str, Enum):
    """Fleet Engine task types."""
    PICKUP = "PICKUP"
    DELIVERY = "DELIVERY"
    SCHEDULED_STOP = "SCHEDULED_STOP"
    UNAVAILABLE = "UNAVAILABLE"


class TaskState(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class VehicleStopState(str, Enum):
    NEW = "NEW"
    ENROUTE = "ENROUTE"
    ARRIVED = "ARRIVED"


class LocationInfo(ApiModel):
    point: Optional[LatLng] = None


class Task(ApiModel):
    name: Optional[str] = None
    type: TaskType = TaskType.SCHEDULED_STOP
    state: TaskState = TaskState.OPEN
    task_duration: str = "0s"
    planned_location: Optional[LocationInfo] = None
    tracking_id: Optional[str] = None


class TaskInfo(ApiModel):
    task_id: str
    task_duration: Optional[str] = None


class VehicleStop(ApiModel):
    planned_location: Optional[LocationInfo] = None
    tasks: List[TaskInfo] = Field(default_factory=list)
    state: VehicleStopState = VehicleStopState.NEW


class VehicleJourneySegment(ApiModel):
    stop: VehicleStop


class DeliveryVehicleLocation(ApiModel):
    location: Optional[LatLng] = None
    update_time: Optional[str] = None


class DeliveryVehicle(ApiModel):
    name: Optional[str] = None
    last_location: Optional[DeliveryVehicleLocation] = None
    navigation_status: Optional[str] = None
    remaining_vehicle_journey_segments: Optional[List[VehicleJourneySegment]] = None
