"""
Shared fixtures: an in-memory stand-in for the two Google REST APIs.
"""

import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from fleetsync.integrations.fleet_engine import DeliveryServiceClient
from fleetsync.integrations.route_optimization import RouteOptimizationClient
from fleetsync.schemas import AppConfig, Settings
from fleetsync.service import FleetSyncService


PROVIDER = "test-provider"


def google_error(code: int, status: str, message: str) -> httpx.Response:
    return httpx.Response(code, json={"error": {"code": code, "status": status, "message": message}})


class FakeGoogleApis:
    """Routes optimizeTours and Fleet Engine calls to in-memory state."""

    def __init__(self, optimize_responses: Optional[List[Dict[str, Any]]] = None):
        self.optimize_responses = list(optimize_responses or [])
        self.optimize_requests: List[Dict[str, Any]] = []
        self.calls: List[Dict[str, Any]] = []
        self.vehicles: Dict[str, Dict[str, Any]] = {}
        self.tasks: Dict[str, Dict[str, Any]] = {}
        self.fail_task_after: Optional[int] = None
        self.fail_vehicle_patch = False

    def calls_to(self, method: str, fragment: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["method"] == method and fragment in c["path"]]

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        path = request.url.path
        params = dict(request.url.params)
        self.calls.append({
            "method": request.method,
            "path": path,
            "params": params,
            "json": body,
            "headers": dict(request.headers),
        })

        if path.endswith(":optimizeTours"):
            self.optimize_requests.append(body)
            if not self.optimize_responses:
                return google_error(500, "INTERNAL", "no response queued")
            return httpx.Response(200, json=self.optimize_responses.pop(0))

        prefix = f"/v1/providers/{PROVIDER}/"
        if not path.startswith(prefix):
            return google_error(404, "NOT_FOUND", f"unknown path {path}")
        rest = path[len(prefix):]

        if rest == "deliveryVehicles" and request.method == "POST":
            vehicle_id = params["deliveryVehicleId"]
            if vehicle_id in self.vehicles:
                return google_error(409, "ALREADY_EXISTS", f"vehicle {vehicle_id} exists")
            record = dict(body, name=f"providers/{PROVIDER}/deliveryVehicles/{vehicle_id}")
            self.vehicles[vehicle_id] = record
            return httpx.Response(200, json=record)

        if rest.startswith("deliveryVehicles/"):
            vehicle_id = rest.split("/", 1)[1]
            if vehicle_id not in self.vehicles:
                return google_error(404, "NOT_FOUND", f"vehicle {vehicle_id} not found")
            if request.method == "GET":
                return httpx.Response(200, json=self.vehicles[vehicle_id])
            if request.method == "PATCH":
                if self.fail_vehicle_patch:
                    return google_error(400, "INVALID_ARGUMENT", "bad journey segments")
                record = self.vehicles[vehicle_id]
                for field in params["updateMask"].split(","):
                    key = _camel(field)
                    if key in body:
                        record[key] = body[key]
                return httpx.Response(200, json=record)

        if rest == "tasks" and request.method == "POST":
            if self.fail_task_after is not None and len(self.tasks) >= self.fail_task_after:
                return google_error(400, "INVALID_ARGUMENT", "task rejected")
            task_id = params["taskId"]
            record = dict(body, name=f"providers/{PROVIDER}/tasks/{task_id}")
            self.tasks[task_id] = record
            return httpx.Response(200, json=record)

        if rest.startswith("tasks/") and request.method == "GET":
            task_id = rest.split("/", 1)[1]
            if task_id not in self.tasks:
                return google_error(404, "NOT_FOUND", f"task {task_id} not found")
            return httpx.Response(200, json=self.tasks[task_id])

        return google_error(400, "INVALID_ARGUMENT", f"unexpected {request.method} {path}")


def _camel(field: str) -> str:
    head, *tail = field.split("_")
    return head + "".join(part.title() for part in tail)


def create_test_config(**sections) -> AppConfig:
    """Create test configuration."""
    data = {
        "project": {"name": "Test", "provider_id": PROVIDER},
        "logging": {"level": "DEBUG", "format": "%(message)s"},
    }
    data.update(sections)
    return AppConfig(**data)


def sample_model() -> Dict[str, Any]:
    """Two vehicles, two pickup-and-delivery shipments."""
    return {
        "shipments": [
            {
                "label": "s1",
                "pickups": [{"label": "p1", "arrivalLocation": {"latitude": 60.1, "longitude": 24.1}, "duration": "60s"}],
                "deliveries": [{"label": "d1", "arrivalLocation": {"latitude": 60.2, "longitude": 24.2}, "duration": "90s"}],
            },
            {
                "label": "s2",
                "pickups": [{"label": "p2", "arrivalLocation": {"latitude": 60.3, "longitude": 24.3}, "duration": "60s"}],
                "deliveries": [{"label": "d2", "arrivalLocation": {"latitude": 60.4, "longitude": 24.4}, "duration": "90s"}],
            },
        ],
        "vehicles": [
            {
                "label": "v1",
                "startLocation": {"latitude": 60.0, "longitude": 24.0},
                "endLocation": {"latitude": 60.5, "longitude": 24.5},
            },
            {
                "label": "v2",
                "startLocation": {"latitude": 61.0, "longitude": 25.0},
                "endLocation": {"latitude": 61.0, "longitude": 25.0},
            },
        ],
    }


def sample_response() -> Dict[str, Any]:
    """v1 serves both shipments, v2 stays idle. Zero values are omitted as in proto3 JSON."""
    return {
        "routes": [
            {
                "vehicleLabel": "v1",
                "visits": [
                    {"isPickup": True, "shipmentLabel": "s1", "detour": "0s"},
                    {"isPickup": True, "shipmentIndex": 1, "shipmentLabel": "s2", "detour": "15s"},
                    {"shipmentLabel": "s1", "detour": "30s"},
                    {"shipmentIndex": 1, "shipmentLabel": "s2", "detour": "45s"},
                ],
            },
            {"vehicleIndex": 1, "vehicleLabel": "v2"},
        ],
        "metrics": {"usedVehicleCount": 1},
    }


@pytest.fixture
def config() -> AppConfig:
    return create_test_config()


@pytest.fixture
def fake_apis() -> FakeGoogleApis:
    return FakeGoogleApis([sample_response(), sample_response()])


@pytest.fixture
def settings() -> Settings:
    return Settings(route_optimization_token="ro-token", fleet_engine_token="fe-token")


def make_clients(fake: FakeGoogleApis, config: AppConfig, settings: Settings):
    transport = httpx.MockTransport(fake.handler)
    optimizer = RouteOptimizationClient(config, settings, http_client=httpx.AsyncClient(transport=transport))
    tracker = DeliveryServiceClient(config, settings, http_client=httpx.AsyncClient(transport=transport))
    return optimizer, tracker


@pytest.fixture
def service(fake_apis, config, settings) -> FleetSyncService:
    optimizer, tracker = make_clients(fake_apis, config, settings)
    return FleetSyncService(config=config, settings=settings, optimizer=optimizer, tracker=tracker)


@pytest.fixture
def model_file(tmp_path) -> str:
    path = tmp_path / "model.json"
    path.write_text(json.dumps({"model": sample_model()}))
    return str(path)
