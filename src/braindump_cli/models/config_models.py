"""Configuration models for braindump.

A single ``AppConfig`` is loaded once at startup by ``ConfigService`` and
handed explicitly to the objects that need it.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class ServiceConfig(BaseModel):
    """Classification / timetable service configuration."""

    endpoint: str = Field(default="http://localhost:3000/api")
    timeout: int = Field(default=60)
    retry: int = Field(default=2)

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Strip whitespace and the trailing slash from the endpoint."""
        if not v or not v.strip():
            raise ValueError("endpoint cannot be empty")
        return v.strip().rstrip("/")


class FocusConfig(BaseModel):
    """Focus timer configuration."""

    session_minutes: int = Field(default=25, gt=0)
    tick_seconds: float = Field(default=1.0, gt=0)


class PlanConfig(BaseModel):
    """Daily plan behaviour."""

    completion_delay_seconds: float = Field(default=0.8, ge=0)


class OutputConfig(BaseModel):
    """Output configuration."""

    color: bool = Field(default=True)
    notifications: bool = Field(default=True)


class StorageConfig(BaseModel):
    """Where plan state lives on disk. ``None`` means the platform data dir."""

    data_dir: str | None = Field(default=None)


class AppConfig(BaseModel):
    """Main braindump configuration"""

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    focus: FocusConfig = Field(default_factory=FocusConfig)
    plan: PlanConfig = Field(default_factory=PlanConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
