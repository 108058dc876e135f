"""Configuration management for Spot Scheduler."""

from spot_scheduler.config.schema import AppConfig, DeviceConfig, GridPackageConfig
from spot_scheduler.config.manager import ConfigManager

__all__ = ["AppConfig", "ConfigManager", "DeviceConfig", "GridPackageConfig"]
