"""
Pydantic schemas for configuration and environment settings.
"""

from typing import Dict, Optional
from pydantic import BaseModel, Field, validator
from pydantic_settings import BaseSettings


class ProjectConfig(BaseModel):
    """Top-level project configuration."""
    name: str = Field(default="Fleet Sync")
    provider_id: str = Field(default="your-provider-id", min_length=1)
    version: str = Field(default="0.1.0")

    @property
    def project_parent(self) -> str:
        return f"projects/{self.provider_id}"


class RouteOptimizationConfig(BaseModel):
    """Route Optimization API configuration."""
    base_url: str = Field(default="https://routeoptimization.googleapis.com/v1")
    timeout_seconds: int = Field(default=100, gt=0)  # solver deadline sent with the request
    http_timeout_seconds: float = Field(default=180.0, gt=0)


class FleetEngineConfig(BaseModel):
    """Fleet Engine Deliveries API configuration."""
    base_url: str = Field(default="https://fleetengine.googleapis.com/v1")
    http_timeout_seconds: float = Field(default=30.0, gt=0)


class TasksConfig(BaseModel):
    """How optimized visits become Fleet Engine tasks."""
    pickup_task_type: str = Field(
        default="SCHEDULED_STOP",
        pattern="^(PICKUP|SCHEDULED_STOP)$"
    )
    duration_source: str = Field(default="detour", pattern="^(detour|visit_duration)$")


class UseCasesConfig(BaseModel):
    """Model files used by the demo run."""
    initial_planning_model: str = Field(default="models/UC1_InitialPlanning.yaml")
    reoptimization_model: str = Field(default="models/UC2_Reoptimization.yaml")
    new_stop_model: str = Field(default="models/UC3_NewStop.yaml")


class PointConfig(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class WindowConfig(BaseModel):
    """Time window as seconds since the epoch."""
    start_seconds: int = Field(ge=0)
    end_seconds: int = Field(ge=0)

    @validator('end_seconds')
    def end_after_start(cls, v, values):
        """Ensure the window is not empty."""
        if 'start_seconds' in values and v <= values['start_seconds']:
            raise ValueError('end_seconds must be after start_seconds')
        return v


class NewStopConfig(BaseModel):
    """Shipment added by the new-stop use case."""
    pickup: PointConfig = Field(
        default_factory=lambda: PointConfig(latitude=60.191819, longitude=25.025756)
    )
    delivery: PointConfig = Field(
        default_factory=lambda: PointConfig(latitude=60.177872, longitude=24.812258)
    )
    pickup_duration_seconds: int = Field(default=123, ge=0)
    delivery_duration_seconds: int = Field(default=123, ge=0)
    pickup_window: WindowConfig = Field(
        default_factory=lambda: WindowConfig(start_seconds=1005, end_seconds=2005)
    )
    delivery_window: WindowConfig = Field(
        default_factory=lambda: WindowConfig(start_seconds=3005, end_seconds=4005)
    )
    load_demands: Dict[str, int] = Field(default_factory=lambda: {"Weight": 10})


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR)$"
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


class AppConfig(BaseModel):
    """Complete application configuration loaded from params.yaml."""
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    route_optimization: RouteOptimizationConfig = Field(default_factory=RouteOptimizationConfig)
    fleet_engine: FleetEngineConfig = Field(default_factory=FleetEngineConfig)
    tasks: TasksConfig = Field(default_factory=TasksConfig)
    use_cases: UseCasesConfig = Field(default_factory=UseCasesConfig)
    new_stop: NewStopConfig = Field(default_factory=NewStopConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class Settings(BaseSettings):
    """Environment-based settings (bearer tokens for both services)."""
    route_optimization_token: Optional[str] = Field(default=None)
    fleet_engine_token: Optional[str] = Field(default=None)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
