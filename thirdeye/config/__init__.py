"""
Configuration Module
====================

Provides configuration loading with Pydantic validation.

Usage:
    from thirdeye.config import ThirdEyeConfig
    config = ThirdEyeConfig.from_yaml("config/thirdeye/config.yaml")
"""
from .schemas import (
    ThirdEyeConfig,
    DetectionSettings,
    QualitySettings,
    StabilizationSettings,
    CameraSettings,
    AudioSettings,
    MQTTSettings,
    LoggingSettings,
)

__all__ = [
    'ThirdEyeConfig',
    'DetectionSettings',
    'QualitySettings',
    'StabilizationSettings',
    'CameraSettings',
    'AudioSettings',
    'MQTTSettings',
    'LoggingSettings',
]
