"""
Fleet Engine Deliveries API client.
Registers delivery vehicles and tasks and updates vehicle journey segments.
"""

import logging
from typing import List, Optional

import httpx

from ..models import (
    DeliveryVehicle, DeliveryVehicleLocation, LatLng, Task
)
from ..schemas import AppConfig, Settings
from ..util.time_utils import now_timestamp
from .errors import NotFoundError, raise_for_google_status


logger = logging.getLogger(__name__)


class DeliveryServiceClient:
    """Async client for delivery vehicles and tasks of one provider."""

    def __init__(
        self,
        config: AppConfig,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize client with configuration."""
        self.config = config
        self.token = settings.fleet_engine_token
        self.base_url = config.fleet_engine.base_url.rstrip("/")
        self.provider_id = config.project.provider_id
        self.client = http_client or httpx.AsyncClient(
            timeout=config.fleet_engine.http_timeout_seconds
        )

        if not self.token:
            logger.warning("Fleet Engine token not configured - requests will be unauthenticated")

    @property
    def parent(self) -> str:
        return f"providers/{self.provider_id}"

    def vehicle_name(self, vehicle_id: str) -> str:
        return f"{self.parent}/deliveryVehicles/{vehicle_id}"

    def task_name(self, task_id: str) -> str:
        return f"{self.parent}/tasks/{task_id}"

    def _headers(self):
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def create_delivery_vehicle(self, vehicle_id: str, vehicle: DeliveryVehicle) -> DeliveryVehicle:
        """Create a delivery vehicle; AlreadyExistsError when the id is taken."""
        url = f"{self.base_url}/{self.parent}/deliveryVehicles"
        response = await self.client.post(
            url,
            params={"deliveryVehicleId": vehicle_id},
            json=vehicle.to_api(),
            headers=self._headers(),
        )
        raise_for_google_status(response)
        created = DeliveryVehicle.model_validate(response.json())
        logger.info(f"Delivery Vehicle with name '{created.name}' created")
        return created

    async def get_delivery_vehicle(self, vehicle_id: str) -> Optional[DeliveryVehicle]:
        """Fetch a delivery vehicle, or None when it does not exist."""
        url = f"{self.base_url}/{self.vehicle_name(vehicle_id)}"
        response = await self.client.get(url, headers=self._headers())
        try:
            raise_for_google_status(response)
        except NotFoundError:
            logger.info(f"Vehicle does not exist: {vehicle_id}")
            return None
        return DeliveryVehicle.model_validate(response.json())

    async def update_delivery_vehicle(
        self,
        vehicle: DeliveryVehicle,
        update_mask: List[str],
    ) -> DeliveryVehicle:
        """Patch the fields named in update_mask."""
        if not vehicle.name:
            raise ValueError("Delivery vehicle name is required for an update")
        url = f"{self.base_url}/{vehicle.name}"
        response = await self.client.patch(
            url,
            params={"updateMask": ",".join(update_mask)},
            json=vehicle.to_api(),
            headers=self._headers(),
        )
        raise_for_google_status(response)
        return DeliveryVehicle.model_validate(response.json())

    async def update_delivery_vehicle_location(self, vehicle_id: str, location: LatLng) -> DeliveryVehicle:
        """Move a vehicle's last known location."""
        vehicle = DeliveryVehicle(
            name=self.vehicle_name(vehicle_id),
            last_location=DeliveryVehicleLocation(
                location=location,
                update_time=now_timestamp(),
            ),
            navigation_status="UNKNOWN_NAVIGATION_STATUS",
        )
        updated = await self.update_delivery_vehicle(vehicle, ["last_location"])
        logger.debug(f"Updated vehicle location: {updated.last_location}")
        return updated

    async def create_task(self, task_id: str, task: Task) -> Task:
        """Create a task under the provider."""
        url = f"{self.base_url}/{self.parent}/tasks"
        response = await self.client.post(
            url,
            params={"taskId": task_id},
            json=task.to_api(),
            headers=self._headers(),
        )
        raise_for_google_status(response)
        return Task.model_validate(response.json())

    async def get_task(self, name: str) -> Task:
        """Fetch a task by full resource name."""
        response = await self.client.get(f"{self.base_url}/{name}", headers=self._headers())
        raise_for_google_status(response)
        return Task.model_validate(response.json())

    async def check_tasks(self, tasks: List[Task]) -> List[Task]:
        """Re-read tasks to confirm they exist. Debugging aid."""
        found = []
        for task in tasks:
            current = await self.get_task(task.name)
            logger.info(f"Task found: {current.name}")
            found.append(current)
        return found

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()
