"""
Loading of route-planning models from text files.
A model file holds an OptimizeToursRequest in REST JSON shape, written as
YAML or JSON.
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from .models import LatLng, Load, OptimizeToursRequest, Shipment, TimeWindow, VisitRequest
from .schemas import NewStopConfig
from .util.time_utils import epoch_to_timestamp, format_duration, to_timestamp


logger = logging.getLogger(__name__)


class ModelLoadError(ValueError):
    """Model file could not be turned into a request."""


def load_optimize_request(
    model_path: Union[str, Path],
    parent: str,
    timeout_seconds: int = 100,
) -> OptimizeToursRequest:
    """
    Build an optimization request from a model file.

    The parent and timeout are defaults; values present in the file win.

    Args:
        model_path: YAML or JSON file with the request
        parent: Project parent, "projects/<id>"
        timeout_seconds: Solver deadline

    Returns:
        Validated OptimizeToursRequest
    """
    path = Path(model_path)
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ModelLoadError(f"Cannot parse model file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ModelLoadError(f"Model file {path} must contain a mapping")
    if "model" not in data:
        raise ModelLoadError(f"Model file {path} has no 'model' section")

    merged: Dict[str, Any] = {
        "parent": parent,
        "timeout": format_duration(timeout_seconds),
    }
    merged.update(_normalize(data))

    try:
        request = OptimizeToursRequest.model_validate(merged)
    except ValidationError as e:
        raise ModelLoadError(f"Invalid model in {path}: {e}") from e

    logger.info(
        f"Loaded model {path.name}: {len(request.model.vehicles)} vehicles, "
        f"{len(request.model.shipments)} shipments"
    )
    return request


def _normalize(value: Any) -> Any:
    # YAML turns unquoted RFC 3339 strings into datetimes; the API wants strings
    if isinstance(value, dict):
        return {k: _normalize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_normalize(v) for v in value]
    if isinstance(value, (datetime, date)):
        return to_timestamp(value)
    return value


def create_new_shipment(
    pickup_point: LatLng,
    delivery_point: LatLng,
    pickup_duration: int,
    delivery_duration: int,
    settings: Optional[NewStopConfig] = None,
) -> Shipment:
    """Create a pickup-and-delivery shipment with one time window per visit."""
    settings = settings or NewStopConfig()

    pickup = VisitRequest(
        arrival_location=pickup_point,
        duration=format_duration(pickup_duration),
        time_windows=[TimeWindow(
            start_time=epoch_to_timestamp(settings.pickup_window.start_seconds),
            end_time=epoch_to_timestamp(settings.pickup_window.end_seconds),
        )],
    )
    delivery = VisitRequest(
        arrival_location=delivery_point,
        duration=format_duration(delivery_duration),
        time_windows=[TimeWindow(
            start_time=epoch_to_timestamp(settings.delivery_window.start_seconds),
            end_time=epoch_to_timestamp(settings.delivery_window.end_seconds),
        )],
    )

    return Shipment(
        pickups=[pickup],
        deliveries=[delivery],
        load_demands={
            name: Load(amount=amount) for name, amount in settings.load_demands.items()
        },
    )
