from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from hkvisor.exceptions import ConfigError
from hkvisor.utils.paths import DEFAULT_SNAPSHOT_DIR
from hkvisor.utils.time_utils import DEFAULT_TIMEZONE

DEFAULT_CONFIG_FILE = "hkvisor.yml"


class CameraConfig(BaseModel):
    name: str
    ip_address: str
    username: str
    password: str

    model_config = {"frozen": True}


class SmtpReceiverConfig(BaseModel):
    from_address: str = Field(alias="from")
    to: str
    server: str
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None

    model_config = {"validate_by_name": True}


class ReceiversConfig(BaseModel):
    smtp: SmtpReceiverConfig


class AppConfig(BaseModel):
    timezone: str = DEFAULT_TIMEZONE
    snapshot_dir: str = DEFAULT_SNAPSHOT_DIR
    # 0 means unbounded
    event_queue_size: int = Field(default=1, ge=0)


class DeliveryConfig(BaseModel):
    max_attempts: int = Field(default=5, ge=1)
    # None keeps retries tied to event arrival
    retry_interval_seconds: Optional[float] = Field(default=None, gt=0)


class StreamConfig(BaseModel):
    reconnect_delay: float = Field(default=5.0, gt=0)
    max_reconnect_delay: float = Field(default=300.0, gt=0)
    max_reconnect_attempts: Optional[int] = Field(default=None, ge=0)
    connect_timeout: float = Field(default=10.0, gt=0)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_file: Optional[str] = None
    max_log_size: int = 10485760
    backup_count: int = 5


class Config(BaseModel):
    cameras: list[CameraConfig] = Field(default_factory=list)
    receivers: ReceiversConfig
    app: AppConfig = Field(default_factory=AppConfig)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("cameras")
    @classmethod
    def _unique_camera_names(cls, cameras: list[CameraConfig]) -> list[CameraConfig]:
        seen = set()
        for camera in cameras:
            if camera.name in seen:
                raise ValueError(f"duplicate camera name: {camera.name}")
            seen.add(camera.name)
        return cameras


def load_config(config_path: Path) -> Config:
    config_path = Path(config_path)
    try:
        with config_path.open("r") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Unable to read configuration file {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {config_path} must contain a mapping")

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e
