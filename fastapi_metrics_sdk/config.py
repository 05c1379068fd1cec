# fastapi-metrics-sdk/fastapi_metrics_sdk/config.py
"""
Configuration management for FastAPI Metrics SDK.

Settings are resolved once from environment variables (or a ``.env`` file)
and decide whether the metrics exporter is started, where it listens and
whether it shares the process-wide debug application.

Environment variables:
    METRIC_ENABLE   start the exporter on ``initialize_metrics()`` (default false)
    METRIC_PATH     exposition path (default ``/metric``)
    METRIC_PORT     listen port (default ``18089``)
    METRIC_HOST     listen address (default ``0.0.0.0``)
    PPROF_ENABLE    serve metrics from the shared debug app (default false)
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_METRIC_PATH = "/metric"
DEFAULT_METRIC_PORT = 18089


class MetricsSettings(BaseSettings):
    """Settings for the metrics exporter."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    metric_enable: bool = Field(
        default=False,
        description="Start the metrics exporter at initialization"
    )

    metric_path: str = Field(
        default=DEFAULT_METRIC_PATH,
        description="HTTP path serving the text exposition"
    )

    metric_port: int = Field(
        default=DEFAULT_METRIC_PORT,
        description="Port for the metrics exporter"
    )

    metric_host: str = Field(
        default="0.0.0.0",
        description="Address the metrics exporter binds to"
    )

    pprof_enable: bool = Field(
        default=False,
        description="Share the process-wide debug application with the exporter"
    )

    @field_validator('metric_path')
    @classmethod
    def validate_metric_path(cls, v):
        if not v.startswith('/'):
            raise ValueError("Metric path must start with '/'")
        return v

    @field_validator('metric_port')
    @classmethod
    def validate_metric_port(cls, v):
        if v < 0 or v > 65535:
            raise ValueError("Metric port must be within 0-65535")
        return v


@lru_cache()
def get_settings() -> MetricsSettings:
    """
    Get the process-wide metrics settings.

    Settings are read from the environment on first call and cached.
    Call ``get_settings.cache_clear()`` to force a reload.
    """
    return MetricsSettings()
