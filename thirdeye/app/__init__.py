"""
Application Layer - Controller, Builder, Entry Point
"""
from .controller import CAMERA_DENIED_MESSAGE, DetectionController, DetectionState
from .permissions import CameraPermissionProvider, DevicePermissionProvider, StaticPermissionProvider
from .ticker import PeriodicTicker
from .builder import SessionBuilder, register_commands
from .main import ThirdEyeApplication, load_config, main

__all__ = [
    "CAMERA_DENIED_MESSAGE",
    "DetectionController",
    "DetectionState",
    "CameraPermissionProvider",
    "DevicePermissionProvider",
    "StaticPermissionProvider",
    "PeriodicTicker",
    "SessionBuilder",
    "register_commands",
    "ThirdEyeApplication",
    "load_config",
    "main",
]
