"""
Tests for the Fleet Engine Deliveries client.
"""

import asyncio

import pytest

from fleetsync.integrations.errors import AlreadyExistsError, RemoteServiceError
from fleetsync.models import DeliveryVehicle, LatLng, LocationInfo, Task, TaskType
from fleetsync.translator import build_delivery_vehicle

from conftest import FakeGoogleApis, make_clients


@pytest.fixture
def fake():
    return FakeGoogleApis()


@pytest.fixture
def tracker(fake, config, settings):
    _, tracker = make_clients(fake, config, settings)
    return tracker


def test_create_delivery_vehicle(fake, tracker):
    record = build_delivery_vehicle("test-provider", "v1", LatLng(latitude=1, longitude=2))

    created = asyncio.run(tracker.create_delivery_vehicle("v1", record))

    call = fake.calls[0]
    assert call["path"] == "/v1/providers/test-provider/deliveryVehicles"
    assert call["params"] == {"deliveryVehicleId": "v1"}
    assert call["headers"]["authorization"] == "Bearer fe-token"
    assert call["json"]["navigationStatus"] == "UNKNOWN_NAVIGATION_STATUS"
    assert created.name == "providers/test-provider/deliveryVehicles/v1"


def test_create_existing_vehicle_raises(fake, tracker):
    fake.vehicles["v1"] = {"name": "providers/test-provider/deliveryVehicles/v1"}

    with pytest.raises(AlreadyExistsError):
        asyncio.run(tracker.create_delivery_vehicle("v1", DeliveryVehicle()))


def test_get_missing_vehicle_returns_none(tracker):
    assert asyncio.run(tracker.get_delivery_vehicle("ghost")) is None


def test_update_delivery_vehicle_sends_mask(fake, tracker):
    fake.vehicles["v1"] = {"name": "providers/test-provider/deliveryVehicles/v1"}
    vehicle = DeliveryVehicle(name="providers/test-provider/deliveryVehicles/v1", navigation_status="ARRIVED_AT_DESTINATION")

    asyncio.run(tracker.update_delivery_vehicle(vehicle, ["navigation_status"]))

    call = fake.calls_to("PATCH", "deliveryVehicles/v1")[0]
    assert call["params"] == {"updateMask": "navigation_status"}
    assert fake.vehicles["v1"]["navigationStatus"] == "ARRIVED_AT_DESTINATION"


def test_update_requires_name(tracker):
    with pytest.raises(ValueError):
        asyncio.run(tracker.update_delivery_vehicle(DeliveryVehicle(), ["last_location"]))


def test_update_delivery_vehicle_location(fake, tracker):
    fake.vehicles["v1"] = {"name": "providers/test-provider/deliveryVehicles/v1"}

    updated = asyncio.run(tracker.update_delivery_vehicle_location("v1", LatLng(latitude=60.17, longitude=24.94)))

    call = fake.calls_to("PATCH", "deliveryVehicles/v1")[0]
    assert call["params"] == {"updateMask": "last_location"}
    assert call["json"]["lastLocation"]["updateTime"].endswith("Z")
    assert updated.last_location.location == LatLng(latitude=60.17, longitude=24.94)


def test_update_unknown_vehicle_raises(tracker):
    with pytest.raises(RemoteServiceError) as exc_info:
        asyncio.run(tracker.update_delivery_vehicle_location("ghost", LatLng()))

    assert exc_info.value.status == "NOT_FOUND"


def test_create_and_check_tasks(fake, tracker):
    task = Task(
        type=TaskType.DELIVERY,
        task_duration="30s",
        planned_location=LocationInfo(point=LatLng(latitude=1, longitude=2)),
        tracking_id="s1",
    )

    created = asyncio.run(tracker.create_task("t-1", task))
    found = asyncio.run(tracker.check_tasks([created]))

    post = fake.calls_to("POST", "/tasks")[0]
    assert post["params"] == {"taskId": "t-1"}
    assert post["json"]["trackingId"] == "s1"
    assert created.name == "providers/test-provider/tasks/t-1"
    assert [t.name for t in found] == [created.name]


def test_get_unknown_task_raises(tracker):
    with pytest.raises(RemoteServiceError):
        asyncio.run(tracker.get_task(tracker.task_name("ghost")))
